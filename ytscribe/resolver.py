"""
resolver.py

Derives the stable id of a video reference and fetches its metadata.
"""

import logging
import re
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import yt_dlp
from yt_dlp.extractor import gen_extractor_classes

from .errors import ResolutionError, StageTimeoutError
from .models import ResolvedVideo, Stage
from .ytdl_client import YtdlClient, find_cause

logger = logging.getLogger(__name__)

SAFE_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")
UNSAFE_TITLE_CHARS = re.compile(r"[^\w\s]")
# query parameters that turn a single-video URL into a playlist reference
PLAYLIST_PARAMS = {"list", "index", "start_radio"}


def single_video_url(source_reference: str) -> str:
    """Drop playlist parameters so a watch URL inside a playlist names only the video."""
    parts = urlsplit(source_reference.strip())
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k not in PLAYLIST_PARAMS]
    return urlunsplit(parts._replace(query=urlencode(query)))


def extract_video_id(source_reference: str) -> Optional[str]:
    """
    Extract the platform id embedded in a URL without touching the network.

    Uses the URL patterns of yt-dlp's site extractors, so equivalent forms
    (watch?v=, youtu.be/, /shorts/, /embed/) yield the same id. Playlist
    parameters are ignored: a video opened from a playlist keys on the video.

    Args:
        source_reference: Video URL

    Returns:
        Optional[str]: The id, or None if no specific extractor recognises the URL
    """
    if not source_reference.strip():
        return None
    url = single_video_url(source_reference)

    for ie in gen_extractor_classes():
        if ie.ie_key() == "Generic":
            continue
        if not ie.suitable(url):
            continue
        video_id = ie.get_temp_id(url)
        if video_id:
            return str(video_id)
    return None


def sanitize_title(title: str) -> str:
    """Strip punctuation and symbols from a title for display."""
    return " ".join(UNSAFE_TITLE_CHARS.sub("", title or "").split())


class VideoResolver:
    """Resource locator backed by yt-dlp metadata extraction."""

    def __init__(self, client: YtdlClient):
        self.client = client

    def resolve(self, source_reference: str) -> ResolvedVideo:
        """
        Resolve a reference into its stable id, display title and metadata.

        Args:
            source_reference: Video URL

        Returns:
            ResolvedVideo: Identity and raw metadata

        Raises:
            ResolutionError: If the reference is malformed or cannot be described
            StageTimeoutError: If the metadata request times out
        """
        if not source_reference or not source_reference.strip():
            raise ResolutionError("Empty video reference")

        local_id = extract_video_id(source_reference)
        timeout = self.client.config.metadata_timeout
        options = {"skip_download": True, "socket_timeout": timeout}

        logger.info(f"Resolving video: {source_reference}")
        try:
            with self.client.open(options) as ydl:
                info = ydl.extract_info(single_video_url(source_reference), download=False, process=False)
        except yt_dlp.utils.DownloadError as e:
            if find_cause(e, TimeoutError) is not None:
                raise StageTimeoutError(Stage.RESOLVE.value, timeout) from e
            raise ResolutionError(f"Could not describe {source_reference}: {e}") from e

        if not info:
            raise ResolutionError(f"No metadata returned for {source_reference}")

        remote_id = info.get("id")
        stable_id = local_id or remote_id
        if local_id and remote_id and local_id != remote_id:
            logger.warning(f"URL id {local_id} differs from reported id {remote_id}; keeping {local_id}")

        if not stable_id or not SAFE_ID_PATTERN.match(str(stable_id)):
            raise ResolutionError(f"Could not derive a usable video id from {source_reference}")

        display_title = sanitize_title(info.get("title") or "") or str(stable_id)
        logger.info(f"Resolved {stable_id}: {display_title}")

        return ResolvedVideo(
            stable_id=str(stable_id),
            display_title=display_title,
            raw_metadata=info,
        )
