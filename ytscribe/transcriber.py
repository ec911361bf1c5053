"""
transcriber.py

Speech-to-text transcription with pluggable backends.
The production backend uploads audio to Deepgram's pre-recorded API.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

import httpx
from deepgram import DeepgramClient, PrerecordedOptions

from .config import Config
from .errors import StageTimeoutError, TranscriptionError
from .models import Stage

logger = logging.getLogger(__name__)

AUDIO_MIMETYPE = "audio/mp3"
CONNECT_TIMEOUT = 10.0


class BaseTranscriber(ABC):
    """
    Abstract base class for transcription backends.
    All backends return the best-guess transcript as plain text.
    """

    @abstractmethod
    def transcribe(self, audio_path: Path) -> str:
        """
        Transcribe an audio file to text.

        Args:
            audio_path: Path to the audio file

        Returns:
            str: Transcript text, empty if no speech was recognised
        """


def extract_transcript(response: Any) -> str:
    """
    Pull results.channels[0].alternatives[0].transcript out of a response.

    Accepts the SDK response object or an already decoded dict. Any missing
    level yields an empty string: no recognised speech is a valid result.
    """
    if hasattr(response, "to_dict"):
        response = response.to_dict()
    if not isinstance(response, dict):
        raise TranscriptionError(f"Unexpected response type from Deepgram: {type(response).__name__}")

    channels = (response.get("results") or {}).get("channels") or []
    if not channels:
        logger.warning("No channels found in Deepgram response")
        return ""

    alternatives = channels[0].get("alternatives") or []
    if not alternatives:
        logger.warning("No alternatives found in Deepgram response")
        return ""

    return alternatives[0].get("transcript") or ""


class DeepgramTranscriber(BaseTranscriber):
    """
    Deepgram pre-recorded transcription backend.

    One request per call with smart formatting and punctuation enabled.
    No retries: any failure is raised to the caller.
    """

    def __init__(self, api_key: str, timeout: float = 600.0, client: Optional[DeepgramClient] = None):
        """
        Initialize the Deepgram backend.

        Args:
            api_key: Deepgram API key
            timeout: Seconds allowed for the upload and recognition
            client: Preconfigured SDK client (default: one built from api_key)
        """
        if not api_key and client is None:
            raise TranscriptionError("Deepgram API key not configured")

        self.timeout = timeout
        self._client = client or DeepgramClient(api_key)

    def _options(self) -> PrerecordedOptions:
        return PrerecordedOptions(smart_format=True, punctuate=True)

    def transcribe(self, audio_path: Path) -> str:
        logger.info(f"Starting Deepgram transcription: {audio_path}")

        try:
            with open(audio_path, "rb") as f:
                payload: Dict[str, Any] = {"buffer": f.read()}
        except OSError as e:
            raise TranscriptionError(f"Could not read audio file {audio_path}: {e}") from e

        try:
            response = self._client.listen.rest.v("1").transcribe_file(
                payload,
                self._options(),
                headers={"Content-Type": AUDIO_MIMETYPE},
                timeout=httpx.Timeout(self.timeout, connect=CONNECT_TIMEOUT),
            )
        except httpx.TimeoutException as e:
            raise StageTimeoutError(Stage.TRANSCRIBE.value, self.timeout) from e
        except Exception as e:
            logger.error(f"Deepgram API error: {e}")
            raise TranscriptionError(f"Deepgram transcription failed: {e}") from e

        if not response:
            raise TranscriptionError("Empty response from Deepgram API")

        logger.debug(f"Transcription response: {response}")
        transcript = extract_transcript(response)
        logger.info(f"Deepgram transcription completed: {len(transcript)} characters")
        return transcript


def get_transcriber(config: Config) -> BaseTranscriber:
    """
    Create the transcription backend for a configuration.

    Args:
        config: Runtime configuration carrying the API key and timeout

    Returns:
        BaseTranscriber: Configured transcriber instance
    """
    return DeepgramTranscriber(config.deepgram_api_key, timeout=config.transcription_timeout)
