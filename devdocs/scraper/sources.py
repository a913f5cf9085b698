"""Content sources: where page bytes come from.

``HttpSource`` fetches over the network with ``httpx``; ``FileSource`` reads
from a local documentation tree.  Both decode to text and raise
:class:`~devdocs.scraper.errors.FetchError` subclasses on failure.  Neither
caches anything.
"""

from __future__ import annotations

import abc
import logging
import mimetypes
import re
from pathlib import Path
from typing import Optional, Union

import httpx

from devdocs.config import settings
from devdocs.scraper.errors import (
    DecodeError,
    FetchError,
    FetchTimeout,
    FileIOError,
    HttpStatusError,
    NotFoundError,
    PathTraversalError,
)
from devdocs.scraper.models import RawContent
from devdocs.scraper.urls import join_url

logger = logging.getLogger(__name__)

_META_CHARSET = re.compile(rb"""<meta[^>]+charset=["']?\s*([A-Za-z0-9_.:-]+)""", re.IGNORECASE)


def _sniff_charset(data: bytes) -> Optional[str]:
    """Return the charset declared by a ``<meta>`` tag near the top of *data*."""
    match = _META_CHARSET.search(data[:4096])
    if match:
        return match.group(1).decode("ascii").lower()
    return None


def _decode(data: bytes, declared: Optional[str], path: str) -> str:
    encoding = declared or _sniff_charset(data) or "utf-8"
    try:
        return data.decode(encoding)
    except (UnicodeDecodeError, LookupError) as exc:
        raise DecodeError(path, encoding, exc) from exc


class ContentSource(abc.ABC):
    """Fetch decoded content for a logical path."""

    @abc.abstractmethod
    def fetch(self, path: str, base_url: str = "") -> RawContent:
        """Return the content for *path* resolved against *base_url*."""

    def close(self) -> None:
        """Release any held resources."""

    def __enter__(self) -> "ContentSource":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Network
# ---------------------------------------------------------------------------

class HttpSource(ContentSource):
    """Single GET per page, redirects followed up to a bounded hop count.

    Args:
        timeout: Request deadline in seconds.  Defaults to
            ``settings.request_timeout``.
        max_redirects: Maximum redirect hops.  Defaults to
            ``settings.max_redirects``.
        client: Pre-built ``httpx.Client`` (tests).  When given, *timeout*
            and *max_redirects* are ignored.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        max_redirects: Optional[int] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.timeout = settings.request_timeout if timeout is None else timeout
        self.max_redirects = settings.max_redirects if max_redirects is None else max_redirects
        self._owns_client = client is None
        self._client = client or httpx.Client(
            headers={"User-Agent": settings.user_agent},
            timeout=self.timeout,
            follow_redirects=True,
            max_redirects=self.max_redirects,
        )

    def fetch(self, path: str, base_url: str = "") -> RawContent:
        """GET *path* (absolute, or relative to *base_url*).

        Raises:
            HttpStatusError: Non-2xx final response.
            FetchTimeout: The deadline was exceeded.
            DecodeError: The body is not valid text in its charset.
            FetchError: Any other transport failure, including too many
                redirects.
        """
        url = join_url(base_url, path) if base_url else path
        try:
            response = self._client.get(url)
        except httpx.TimeoutException as exc:
            raise FetchTimeout(url, self.timeout) from exc
        except httpx.TooManyRedirects as exc:
            raise FetchError(url, f"more than {self.max_redirects} redirects") from exc
        except httpx.HTTPError as exc:
            raise FetchError(url, f"transport error: {exc}") from exc

        if not response.is_success:
            raise HttpStatusError(url, response.status_code)

        text = _decode(response.content, response.charset_encoding, url)
        effective = str(response.url)
        if effective != url:
            logger.debug("Redirected %s -> %s", url, effective)

        return RawContent(
            url=url,
            text=text,
            effective_url=effective,
            status_code=response.status_code,
            content_type=response.headers.get("content-type", "text/html"),
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()


# ---------------------------------------------------------------------------
# Filesystem
# ---------------------------------------------------------------------------

class FileSource(ContentSource):
    """Read files below *root*, refusing anything that resolves outside it."""

    def __init__(self, root: Union[str, Path]) -> None:
        self.root = Path(root).expanduser().resolve()

    def resolve(self, path: str) -> Path:
        """Map *path* to a file inside the root.

        Raises:
            PathTraversalError: The resolved path escapes the root (``..``
                segments, absolute paths or symlinks pointing outside).
        """
        target = (self.root / path.lstrip("/")).resolve()
        try:
            target.relative_to(self.root)
        except ValueError:
            raise PathTraversalError(path) from None
        return target

    def fetch(self, path: str, base_url: str = "") -> RawContent:
        target = self.resolve(path)
        if not target.is_file():
            raise NotFoundError(path)
        try:
            data = target.read_bytes()
        except OSError as exc:
            raise FileIOError(path, exc) from exc

        content_type = mimetypes.guess_type(target.name)[0] or "text/html"
        return RawContent(url=str(target), text=_decode(data, None, path), content_type=content_type)
