"""
downloader.py

Wrapper for yt-dlp to download a video to a fixed local path.
"""

import errno
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yt_dlp

from .artifacts import staged_write
from .errors import FetchError, StageTimeoutError, WriteError
from .models import Stage
from .progress import MonotonicProgress, ProgressSink
from .ytdl_client import YtdlClient, find_cause

logger = logging.getLogger(__name__)

DISK_ERRNOS = {
    errno.ENOSPC, errno.EACCES, errno.EROFS, errno.EIO, errno.EPERM, errno.EISDIR,
    getattr(errno, "EDQUOT", errno.ENOSPC),
}


def _disk_error(exc: BaseException) -> Optional[OSError]:
    cause = find_cause(exc, OSError)
    if cause is not None and cause.errno in DISK_ERRNOS:
        return cause
    return None


class VideoDownloader:
    """
    Streams a remote video into a local file using a cookie-authenticated session.

    The file appears at the target path only after the download finished;
    a failed download leaves nothing behind.
    """

    def __init__(self, client: YtdlClient, progress: Optional[ProgressSink] = None):
        self.client = client
        self.progress = progress

    def _build_options(self, output_path: Path, sink: ProgressSink) -> Dict[str, Any]:
        def progress_hook(d: Dict[str, Any]) -> None:
            status = d.get("status")
            downloaded = d.get("downloaded_bytes") or 0
            total = d.get("total_bytes") or d.get("total_bytes_estimate")
            if status == "downloading":
                sink.update(downloaded / total if total else 0.0, downloaded, total)
            elif status == "finished":
                sink.update(1.0, downloaded, total or downloaded)

        # Audio is all the pipeline keeps, so prefer the smallest useful stream.
        # m4a first: it is an mp4 container and matches the artifact extension.
        return {
            "format": "m4a/bestaudio/best",
            "outtmpl": str(output_path),
            "nopart": True,
            "overwrites": True,
            "socket_timeout": self.client.config.download_timeout,
            "progress_hooks": [progress_hook],
        }

    def download(self, source_reference: str, target: Path,
                 progress: Optional[ProgressSink] = None) -> Path:
        """
        Download a video.

        Args:
            source_reference: Video URL
            target: Final artifact path
            progress: Sink for this download (default: the one given at construction)

        Returns:
            Path: target, now fully written

        Raises:
            FetchError: On network, authentication or remote stream failure
            WriteError: On local disk failure
            StageTimeoutError: If the connection stalls past the socket timeout
        """
        sink = MonotonicProgress(progress or self.progress)
        timeout = self.client.config.download_timeout

        logger.info(f"Downloading video from: {source_reference}")
        try:
            with staged_write(target) as temp_path:
                with self.client.open(self._build_options(temp_path, sink)) as ydl:
                    retcode = ydl.download([source_reference])
                if retcode:
                    raise FetchError(f"yt-dlp exited with code {retcode} for {source_reference}")
        except yt_dlp.utils.DownloadError as e:
            if find_cause(e, TimeoutError) is not None:
                raise StageTimeoutError(Stage.FETCH.value, timeout) from e
            disk_error = _disk_error(e)
            if disk_error is not None:
                raise WriteError(f"Could not write {target}: {disk_error}") from e
            raise FetchError(f"Download failed for {source_reference}: {e}") from e
        except OSError as e:
            raise WriteError(f"Could not write {target}: {e}") from e
        finally:
            sink.close()

        logger.info(f"Video downloaded successfully: {target}")
        return target
