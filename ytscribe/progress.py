"""
progress.py

Download progress sinks.

The downloader reports fraction-complete values through a ProgressSink.
Reporting is observational only: a failing or absent sink never changes
the outcome of a download.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional

from tqdm import tqdm

logger = logging.getLogger(__name__)

MB = 1024 * 1024


class ProgressSink(ABC):
    """Receiver of download progress events."""

    @abstractmethod
    def update(self, fraction: float, downloaded_bytes: int, total_bytes: Optional[int]) -> None:
        """
        Report progress.

        Args:
            fraction: Completed share of the download, 0.0 to 1.0
            downloaded_bytes: Bytes written so far
            total_bytes: Expected size, or None if unknown
        """

    def close(self) -> None:
        """Called once when the download ends, successfully or not."""


class NullProgress(ProgressSink):
    def update(self, fraction: float, downloaded_bytes: int, total_bytes: Optional[int]) -> None:
        pass


class LoggingProgress(ProgressSink):
    """Logs a line every `step` of progress."""

    def __init__(self, step: float = 0.1):
        self.step = step
        self._next = 0.0

    def update(self, fraction: float, downloaded_bytes: int, total_bytes: Optional[int]) -> None:
        if fraction < self._next and fraction < 1.0:
            return
        size = f"{total_bytes / MB:.2f} MB" if total_bytes else "unknown size"
        logger.info(f"Downloading: {fraction * 100:.2f}% of {size}")
        self._next = (int(fraction / self.step) + 1) * self.step


class TqdmProgress(ProgressSink):
    """Terminal progress bar in bytes."""

    def __init__(self, desc: str = "Downloading video"):
        self.desc = desc
        self._bar = None

    def update(self, fraction: float, downloaded_bytes: int, total_bytes: Optional[int]) -> None:
        if self._bar is None:
            self._bar = tqdm(total=total_bytes, desc=self.desc, unit="B",
                             unit_scale=True, unit_divisor=1024)
        if total_bytes and self._bar.total != total_bytes:
            self._bar.total = total_bytes
        self._bar.update(max(0, downloaded_bytes - self._bar.n))

    def close(self) -> None:
        if self._bar is not None:
            self._bar.close()
            self._bar = None


class MonotonicProgress(ProgressSink):
    """
    Guard around another sink.

    Clamps values to [0, 1], drops values lower than the last one reported,
    and logs sink exceptions instead of letting them reach the download.
    """

    def __init__(self, sink: Optional[ProgressSink] = None):
        self.sink = sink or NullProgress()
        self.last = 0.0
        self._started = False

    def update(self, fraction: float, downloaded_bytes: int, total_bytes: Optional[int]) -> None:
        fraction = min(1.0, max(0.0, fraction))
        if self._started and fraction < self.last:
            return
        self._started = True
        self.last = fraction
        try:
            self.sink.update(fraction, downloaded_bytes, total_bytes)
        except Exception as e:
            logger.warning(f"Progress sink error: {e}")

    def close(self) -> None:
        try:
            self.sink.close()
        except Exception as e:
            logger.warning(f"Progress sink error on close: {e}")
