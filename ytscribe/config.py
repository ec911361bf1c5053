"""
config.py

Runtime configuration, built once at startup and passed to every stage.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Mapping, Optional

from .errors import ConfigError

VIDEO_DIR_NAME = "_downloads"
AUDIO_DIR_NAME = "_audio_extracts"
TRANSCRIPT_DIR_NAME = "_transcriptions"
COOKIES_FILE_NAME = "cookies.json"

DEFAULT_METADATA_TIMEOUT = 30.0
DEFAULT_DOWNLOAD_TIMEOUT = 60.0
DEFAULT_TRANSCODE_TIMEOUT = 1800.0
DEFAULT_TRANSCRIPTION_TIMEOUT = 600.0
DEFAULT_AUDIO_BITRATE = "128k"


@dataclass(frozen=True)
class Config:
    """
    Immutable settings for one pipeline run.

    Attributes:
        deepgram_api_key: Speech-recognition API key
        base_dir: Directory holding the three artifact directories
        cookies_path: JSON cookies file used for authenticated downloads
        cookies: Parsed cookie entries from cookies_path
        metadata_timeout: Seconds allowed for the metadata request
        download_timeout: Socket timeout in seconds for the stream download
        transcode_timeout: Seconds allowed for one ffmpeg run
        transcription_timeout: Seconds allowed for the recognition request
        audio_bitrate: Constant bitrate of the extracted mp3
    """

    deepgram_api_key: str
    base_dir: Path
    cookies_path: Path
    cookies: List[Dict] = field(default_factory=list)
    metadata_timeout: float = DEFAULT_METADATA_TIMEOUT
    download_timeout: float = DEFAULT_DOWNLOAD_TIMEOUT
    transcode_timeout: float = DEFAULT_TRANSCODE_TIMEOUT
    transcription_timeout: float = DEFAULT_TRANSCRIPTION_TIMEOUT
    audio_bitrate: str = DEFAULT_AUDIO_BITRATE

    @property
    def video_dir(self) -> Path:
        return self.base_dir / VIDEO_DIR_NAME

    @property
    def audio_dir(self) -> Path:
        return self.base_dir / AUDIO_DIR_NAME

    @property
    def transcript_dir(self) -> Path:
        return self.base_dir / TRANSCRIPT_DIR_NAME

    def ensure_directories(self) -> None:
        """Create the artifact directories if they do not exist yet."""
        for directory in (self.video_dir, self.audio_dir, self.transcript_dir):
            directory.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_env(cls, base_dir: Optional[Path] = None,
                 environ: Optional[Mapping[str, str]] = None) -> "Config":
        """
        Build the configuration from environment variables.

        Nothing is created on disk here: a missing API key or cookies file
        fails before any directory exists.

        Args:
            base_dir: Base directory override (default: YTSCRIBE_HOME or cwd)
            environ: Mapping to read instead of os.environ

        Returns:
            Config: Validated configuration

        Raises:
            ConfigError: If a required setting is missing or malformed
        """
        env = os.environ if environ is None else environ

        api_key = (env.get("DEEPGRAM_API_KEY") or "").strip()
        if not api_key:
            raise ConfigError("DEEPGRAM_API_KEY environment variable is not set")

        if base_dir is None:
            base_dir = Path(env.get("YTSCRIBE_HOME") or Path.cwd())
        base_dir = Path(base_dir).resolve()

        cookies_path = Path(env.get("YTSCRIBE_COOKIES") or base_dir / COOKIES_FILE_NAME)

        return cls(
            deepgram_api_key=api_key,
            base_dir=base_dir,
            cookies_path=cookies_path,
            cookies=load_cookies(cookies_path),
            metadata_timeout=_read_timeout(env, "YTSCRIBE_METADATA_TIMEOUT", DEFAULT_METADATA_TIMEOUT),
            download_timeout=_read_timeout(env, "YTSCRIBE_DOWNLOAD_TIMEOUT", DEFAULT_DOWNLOAD_TIMEOUT),
            transcode_timeout=_read_timeout(env, "YTSCRIBE_TRANSCODE_TIMEOUT", DEFAULT_TRANSCODE_TIMEOUT),
            transcription_timeout=_read_timeout(env, "YTSCRIBE_TRANSCRIPTION_TIMEOUT",
                                                DEFAULT_TRANSCRIPTION_TIMEOUT),
            audio_bitrate=env.get("YTSCRIBE_AUDIO_BITRATE") or DEFAULT_AUDIO_BITRATE,
        )


def load_cookies(path: Path) -> List[Dict]:
    """
    Read a browser-exported cookies file.

    Args:
        path: Path to a JSON array of cookie objects

    Returns:
        List[Dict]: Cookie entries, each with at least 'name' and 'value'

    Raises:
        ConfigError: If the file is missing or not a list of cookies
    """
    if not path.is_file():
        raise ConfigError(
            f"{path.name} file not found at {path}. "
            "Export your browser cookies to this location before running."
        )

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigError(f"Could not read cookies file {path}: {e}") from e

    if not isinstance(data, list):
        raise ConfigError(f"Cookies file {path} must contain a JSON array")

    for index, entry in enumerate(data):
        if not isinstance(entry, dict) or "name" not in entry or "value" not in entry:
            raise ConfigError(f"Cookie #{index} in {path} needs 'name' and 'value'")

    return data


def _read_timeout(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number of seconds, got {raw!r}") from None
    if value <= 0:
        raise ConfigError(f"{name} must be positive, got {raw!r}")
    return value
