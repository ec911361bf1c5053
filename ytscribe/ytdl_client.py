"""
ytdl_client.py

Shared yt-dlp session for metadata lookups and downloads.

Cookies from the JSON credentials file are installed into every YoutubeDL
instance so age-gated or session-bound videos resolve the same way for
both the resolver and the downloader.
"""

import http.cookiejar
import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List

import yt_dlp

from .config import Config

logger = logging.getLogger(__name__)

DEFAULT_COOKIE_DOMAIN = ".youtube.com"


def to_cookie(entry: Dict[str, Any]) -> http.cookiejar.Cookie:
    """
    Convert one browser-exported cookie object into a cookiejar Cookie.

    Args:
        entry: Dict with 'name' and 'value' and optional 'domain', 'path',
            'secure', 'httpOnly', 'expirationDate'

    Returns:
        http.cookiejar.Cookie: Cookie ready for YoutubeDL.cookiejar
    """
    domain = entry.get("domain") or DEFAULT_COOKIE_DOMAIN
    path = entry.get("path") or "/"
    expires = entry.get("expirationDate")

    return http.cookiejar.Cookie(
        version=0,
        name=str(entry["name"]),
        value=str(entry["value"]),
        port=None,
        port_specified=False,
        domain=domain,
        domain_specified=True,
        domain_initial_dot=domain.startswith("."),
        path=path,
        path_specified=True,
        secure=bool(entry.get("secure", False)),
        expires=int(expires) if expires else None,
        discard=not expires,
        comment=None,
        comment_url=None,
        rest={"HttpOnly": ""} if entry.get("httpOnly") else {},
    )


class YtdlClient:
    """
    Factory for cookie-authenticated YoutubeDL instances.

    Example:
        >>> client = YtdlClient(config)
        >>> with client.open({"skip_download": True}) as ydl:
        ...     info = ydl.extract_info(url, download=False)
    """

    def __init__(self, config: Config):
        self.config = config
        self._cookies: List[http.cookiejar.Cookie] = [to_cookie(c) for c in config.cookies]

    def base_options(self) -> Dict[str, Any]:
        """Options common to every request."""
        return {
            "quiet": True,
            "no_warnings": True,
            "noprogress": True,
            "noplaylist": True,
            "retries": 0,
            "fragment_retries": 0,
            "extractor_retries": 0,
        }

    @contextmanager
    def open(self, options: Dict[str, Any]) -> Iterator[yt_dlp.YoutubeDL]:
        """
        Open a YoutubeDL with the base options, the given overrides and the cookies.

        Args:
            options: Extra yt-dlp options merged over base_options()
        """
        opts = {**self.base_options(), **options}
        with yt_dlp.YoutubeDL(opts) as ydl:
            for cookie in self._cookies:
                ydl.cookiejar.set_cookie(cookie)
            logger.debug(f"Opened yt-dlp session with {len(self._cookies)} cookie(s)")
            yield ydl


def find_cause(exc: BaseException, types) -> Any:
    """
    Walk an exception's cause chain, including yt-dlp's wrapped exc_info.

    Returns:
        The first exception in the chain that is an instance of types, or None
    """
    seen = set()
    current = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        if isinstance(current, types):
            return current
        exc_info = getattr(current, "exc_info", None)
        wrapped = exc_info[1] if isinstance(exc_info, tuple) and len(exc_info) > 1 else None
        current = wrapped or current.__cause__ or current.__context__
    return None
