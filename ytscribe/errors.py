"""
errors.py

Exception hierarchy shared by every pipeline stage.
"""


class PipelineError(RuntimeError):
    """Base class for all errors raised by the transcription pipeline."""


class ConfigError(PipelineError):
    """Raised when required configuration (API key, cookies file) is missing or invalid."""


class ResolutionError(PipelineError):
    """Raised when a video reference is malformed or its metadata cannot be fetched."""


class FetchError(PipelineError):
    """Raised when the video stream cannot be downloaded."""


class WriteError(PipelineError):
    """Raised when a downloaded artifact cannot be written to local disk."""


class TranscodeError(PipelineError):
    """Raised when audio extraction fails."""


class TranscriptionError(PipelineError):
    """Raised when the speech-recognition service rejects or fails a request."""


class StageTimeoutError(PipelineError):
    """Raised when an external call exceeds its configured deadline."""

    def __init__(self, stage: str, timeout: float, message: str = ""):
        self.stage = stage
        self.timeout = timeout
        super().__init__(message or f"{stage} timed out after {timeout:g}s")
