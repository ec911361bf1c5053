"""
artifacts.py

Deterministic artifact locations and staged writes.

Each stage produces one file named <stable_id>.<ext> in its own directory.
A file at that final path is the only evidence that the stage completed,
so stages write to a hidden temp file beside it and rename on success.
"""

import logging
import os
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator

from .config import Config
from .models import Stage

logger = logging.getLogger(__name__)

ARTIFACT_EXTENSIONS: Dict[Stage, str] = {
    Stage.FETCH: "mp4",
    Stage.TRANSCODE: "mp3",
    Stage.TRANSCRIBE: "txt",
}


def artifact_path(config: Config, stage: Stage, stable_id: str) -> Path:
    """
    Return the final artifact path for a stage.

    Args:
        config: Runtime configuration (supplies the directories)
        stage: One of FETCH, TRANSCODE, TRANSCRIBE
        stable_id: Cache key of the job

    Returns:
        Path: <stage dir>/<stable_id>.<ext>
    """
    directories = {
        Stage.FETCH: config.video_dir,
        Stage.TRANSCODE: config.audio_dir,
        Stage.TRANSCRIBE: config.transcript_dir,
    }
    if stage not in directories:
        raise ValueError(f"Stage {stage.value!r} has no artifact")
    return directories[stage] / f"{stable_id}.{ARTIFACT_EXTENSIONS[stage]}"


def temp_path_for(final_path: Path) -> Path:
    # keep the real suffix last so ffmpeg and yt-dlp still see .mp3/.mp4
    return final_path.with_name(f".{final_path.stem}.partial{final_path.suffix}")


def discard(path: Path) -> None:
    """Remove a file if present."""
    try:
        path.unlink()
        logger.debug(f"Removed incomplete file: {path}")
    except FileNotFoundError:
        pass


@contextmanager
def staged_write(final_path: Path) -> Iterator[Path]:
    """
    Yield a temp path to write into, then move it onto final_path.

    The rename happens only when the body finishes without raising. On any
    exception the temp file is removed and final_path is left untouched.

    Raises:
        OSError: If the final rename fails
    """
    temp_path = temp_path_for(final_path)
    discard(temp_path)

    try:
        yield temp_path
    except BaseException:
        discard(temp_path)
        raise

    if not temp_path.exists():
        raise FileNotFoundError(f"Stage finished without producing {temp_path}")

    try:
        os.replace(temp_path, final_path)
    except OSError:
        discard(temp_path)
        raise
