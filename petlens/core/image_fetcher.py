"""
Image fetching - download the bytes behind a resolved image URL
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional

import requests

from .models import ErrorKind
from .validators import MAX_UPLOAD_BYTES

logger = logging.getLogger("petlens")


class ImageLoadError(RuntimeError):
    """Raised when no usable image bytes could be obtained."""

    kind = ErrorKind.IMAGE_LOAD_FAILED


class SourceBlockedError(ImageLoadError):
    """Raised when every source refused the request at transport level."""

    kind = ErrorKind.CORS_BLOCKED


class ImageFetcher:
    """Fetch image bytes from one or more candidate URLs"""

    def __init__(
        self,
        timeout: float = 15.0,
        max_bytes: int = MAX_UPLOAD_BYTES,
        user_agent: str = "petlens/0.1.0",
        session: Optional[requests.Session] = None,
    ):
        self.timeout = timeout
        self.max_bytes = max_bytes
        self.user_agent = user_agent
        self.session = session or requests.Session()

    def fetch(self, urls: Iterable[str]) -> bytes:
        """
        Return the body of the first URL that yields usable bytes

        Args:
            urls: Candidate URLs in priority order (duplicates and blanks skipped)

        Returns:
            Raw image bytes

        Raises:
            SourceBlockedError: If a request failed at transport level and no URL worked
            ImageLoadError: If every response was unusable
        """
        saw_blocked = False
        for url in self._unique(urls):
            try:
                response = self.session.get(
                    url,
                    headers={"User-Agent": self.user_agent, "Cache-Control": "no-cache"},
                    timeout=self.timeout,
                )
            except requests.RequestException as exc:
                logger.warning("Request for %s failed: %s", url, exc)
                saw_blocked = True
                continue

            if not response.ok:
                logger.warning("Skipping %s: HTTP %s", url, response.status_code)
                continue

            data = response.content
            if not data:
                logger.warning("Skipping %s: empty response", url)
                continue
            if len(data) > self.max_bytes:
                logger.warning(
                    "Skipping %s: image larger than %s bytes",
                    url,
                    self.max_bytes,
                )
                continue
            return data

        if saw_blocked:
            raise SourceBlockedError("Image source refused the request.")
        raise ImageLoadError("No usable image bytes were returned.")

    @staticmethod
    def _unique(urls: Iterable[str]) -> List[str]:
        unique: List[str] = []
        for url in urls:
            value = (url or "").strip()
            if value and value not in unique:
                unique.append(value)
        return unique
