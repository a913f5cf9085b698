"""URL helpers shared by the scrapers and filters."""

from __future__ import annotations

from urllib.parse import urldefrag, urljoin, urlsplit, urlunsplit

# References that never point at a crawlable page.
_NON_PAGE_PREFIXES = ("mailto:", "javascript:", "data:", "tel:", "ftp:")


def is_http_url(url: str) -> bool:
    """Return ``True`` for absolute ``http(s)`` URLs with a host."""
    parts = urlsplit(url)
    return parts.scheme in ("http", "https") and bool(parts.netloc)


def is_page_reference(href: str) -> bool:
    """Return ``False`` for fragment-only, empty and non-HTTP references."""
    href = href.strip()
    if not href or href.startswith("#"):
        return False
    return not href.lower().startswith(_NON_PAGE_PREFIXES)


def _remove_dot_segments(path: str) -> str:
    output: list[str] = []
    segments = path.split("/")
    for i, segment in enumerate(segments):
        last = i == len(segments) - 1
        if segment == ".":
            if last:
                output.append("")
            continue
        if segment == "..":
            if len(output) > 1:
                output.pop()
            if last:
                output.append("")
            continue
        output.append(segment)
    result = "/".join(output)
    if path.startswith("/") and not result.startswith("/"):
        result = "/" + result
    return result


def normalize_url(url: str) -> str:
    """Canonical form used for scope checks and deduplication.

    The fragment is dropped, ``.``/``..`` segments are resolved and the
    scheme and host are lower-cased.  The query string is kept.
    """
    url, _ = urldefrag(url.strip())
    parts = urlsplit(url)
    path = _remove_dot_segments(parts.path) if parts.path else "/"
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, parts.query, ""))


def ensure_trailing_slash(url: str) -> str:
    return url if url.endswith("/") else url + "/"


def join_url(base_url: str, path: str) -> str:
    """Append a base-relative *path* to *base_url*.

    Absolute URLs are returned unchanged; a leading ``/`` on *path* is
    treated as relative to the base, not to the host.
    """
    if is_http_url(path):
        return path
    return ensure_trailing_slash(base_url) + path.lstrip("/")


def resolve_href(page_url: str, href: str) -> str:
    """Resolve *href* as found on *page_url* into an absolute URL."""
    return urljoin(page_url, href.strip())


def split_fragment(url: str) -> tuple[str, str]:
    """Return ``(url_without_fragment, fragment)``."""
    return urldefrag(url)
