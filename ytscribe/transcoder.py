"""
transcoder.py

Audio extraction with ffmpeg: drops the video stream and re-encodes the
audio track to a constant-bitrate mp3.
"""

import logging
import subprocess
from pathlib import Path

import ffmpeg

from .artifacts import staged_write
from .errors import StageTimeoutError, TranscodeError
from .models import Stage

logger = logging.getLogger(__name__)

AUDIO_CODEC = "libmp3lame"
AUDIO_FORMAT = "mp3"


class AudioExtractor:
    """
    Extracts a compressed audio track from a local video file.

    Args:
        bitrate: Constant audio bitrate passed to ffmpeg (e.g. "128k")
        timeout: Seconds to wait for ffmpeg before killing it
    """

    def __init__(self, bitrate: str = "128k", timeout: float = 1800.0):
        self.bitrate = bitrate
        self.timeout = timeout

    def build_stream(self, video_path: Path, output_path: Path):
        return (
            ffmpeg
            .input(str(video_path))
            .output(str(output_path), vn=None, acodec=AUDIO_CODEC,
                    audio_bitrate=self.bitrate, format=AUDIO_FORMAT)
            .overwrite_output()
        )

    def extract(self, video_path: Path, audio_path: Path) -> Path:
        """
        Extract audio from video.

        Returns only after ffmpeg exited and the output was renamed into place.

        Raises:
            TranscodeError: If the input is unreadable or ffmpeg fails
            StageTimeoutError: If ffmpeg runs past the timeout
        """
        if not video_path.is_file():
            raise TranscodeError(f"Video file not found: {video_path}")

        logger.info(f"Extracting audio: {video_path.name} -> {audio_path.name}")
        try:
            with staged_write(audio_path) as temp_path:
                self._run(self.build_stream(video_path, temp_path))
        except OSError as e:
            raise TranscodeError(f"Could not write {audio_path}: {e}") from e

        logger.info(f"Audio extracted successfully: {audio_path}")
        return audio_path

    def _run(self, stream) -> None:
        try:
            process = stream.run_async(quiet=True)
        except FileNotFoundError as e:
            raise TranscodeError("ffmpeg executable not found on PATH") from e

        try:
            _, stderr = process.communicate(timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            process.kill()
            process.communicate()
            raise StageTimeoutError(Stage.TRANSCODE.value, self.timeout) from e

        if process.returncode != 0:
            message = (stderr or b"").decode("utf-8", errors="replace").strip()
            tail = message.splitlines()[-1] if message else f"exit code {process.returncode}"
            logger.debug(f"ffmpeg stderr:\n{message}")
            raise TranscodeError(f"ffmpeg failed: {tail}")
