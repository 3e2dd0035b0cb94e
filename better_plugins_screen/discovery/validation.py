"""Same-origin and shape checks for discovered settings URLs."""

from __future__ import annotations

from typing import Iterable
from urllib.parse import urlsplit

from loguru import logger

_DEFAULT_PORTS = {"http": 80, "https": 443}


def _origin(url: str) -> tuple[str, int | None] | None:
    """Return ``(host, port)`` the way a browser compares ``location.host``."""
    try:
        parts = urlsplit(url)
        hostname = parts.hostname
        port = parts.port
    except ValueError:
        return None
    if not hostname:
        return None
    if port is not None and _DEFAULT_PORTS.get(parts.scheme.lower()) == port:
        port = None
    return hostname.lower(), port


class UrlValidator:
    """Accepts relative URLs and absolute URLs on the current page's host.

    Args:
        page_url: URL of the page being augmented; without it only
            relative candidates pass.
        relative_prefixes: Admin path prefixes accepted without parsing.
    """

    def __init__(
        self,
        page_url: str | None = None,
        relative_prefixes: Iterable[str] = (),
    ) -> None:
        self._page_origin = _origin(page_url) if page_url else None
        self._prefixes = tuple(p for p in relative_prefixes if p)

    def is_valid(self, url: str | None) -> bool:
        if not isinstance(url, str) or not url.strip():
            return False
        url = url.strip()

        # "//host/..." names a host, so it goes through the origin check
        if url.startswith("/") and not url.startswith("//"):
            return True
        if self._prefixes and url.startswith(self._prefixes):
            return True

        try:
            parts = urlsplit(url)
        except ValueError:
            logger.debug(f"Rejected malformed URL: {url}")
            return False

        if not parts.scheme and not parts.netloc:
            return True
        if not parts.netloc:
            # javascript:, mailto: and friends
            logger.debug(f"Rejected non-navigable URL: {url}")
            return False

        origin = _origin(url)
        if origin is None or self._page_origin is None or origin != self._page_origin:
            logger.debug(f"Rejected cross-origin URL: {url}")
            return False
        return True

    __call__ = is_valid
