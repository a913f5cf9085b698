"""Data models for the scraping engine."""

from __future__ import annotations

import enum
import re
from dataclasses import asdict, dataclass, field
from functools import cached_property
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlsplit

from devdocs.scraper.errors import InvalidSpecError
from devdocs.scraper.urls import ensure_trailing_slash, is_http_url, join_url, normalize_url


# ---------------------------------------------------------------------------
# Document specification
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FilterSpec:
    """A filter name plus its per-document options."""

    name: str
    options: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DocumentSpec:
    """Identity and crawl policy for one document/version.

    Paths are always *base-relative*: ``"Element/div"`` under
    ``https://developer.mozilla.org/en-US/docs/Web/HTML/``.  The empty path
    (the base URL itself) is stored as :attr:`root_path`.
    """

    name: str
    version: str
    base_urls: Tuple[str, ...] = ()
    slug: str = ""
    release: str = ""
    output_path: str = ""
    initial_paths: Tuple[str, ...] = ()
    skip_paths: Tuple[str, ...] = ()
    skip_patterns: Tuple[str, ...] = ()
    skip_links: Tuple[str, ...] = ()
    only_paths: Optional[Tuple[str, ...]] = None
    only_patterns: Optional[Tuple[str, ...]] = None
    replace_paths: Dict[str, str] = field(default_factory=dict)
    trailing_slash: bool = False
    filters: Tuple[FilterSpec, ...] = ()
    source_dir: Optional[str] = None
    rate_limit: Optional[int] = None
    root_path: str = "index"
    attribution: str = ""
    links: Tuple[Tuple[str, str], ...] = ()

    def __post_init__(self) -> None:
        bases = tuple(ensure_trailing_slash(normalize_url(u)) for u in self.base_urls)
        object.__setattr__(self, "base_urls", bases)
        if not self.slug:
            object.__setattr__(self, "slug", self.name.lower().replace(" ", "_"))
        if not self.release:
            object.__setattr__(self, "release", self.version)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def validate(self) -> None:
        """Raise :class:`InvalidSpecError` if this spec cannot be crawled."""
        if not self.base_urls and not self.initial_paths:
            raise InvalidSpecError(f"{self.slug}: no base URLs and no initial paths")
        if not self.base_urls:
            raise InvalidSpecError(f"{self.slug}: paths need a base URL to resolve against")
        for url in self.base_urls:
            if not is_http_url(url):
                raise InvalidSpecError(f"{self.slug}: base URL {url!r} is not an absolute http(s) URL")
        for pattern in (*self.skip_patterns, *(self.only_patterns or ())):
            try:
                re.compile(pattern)
            except re.error as exc:
                raise InvalidSpecError(f"{self.slug}: invalid pattern {pattern!r}: {exc}") from exc

    @cached_property
    def _skip_regexes(self) -> List[re.Pattern]:
        return [re.compile(p) for p in self.skip_patterns]

    @cached_property
    def _only_regexes(self) -> Optional[List[re.Pattern]]:
        if self.only_patterns is None:
            return None
        return [re.compile(p) for p in self.only_patterns]

    # ------------------------------------------------------------------
    # URL <-> path
    # ------------------------------------------------------------------
    @property
    def primary_base_url(self) -> str:
        return self.base_urls[0] if self.base_urls else ""

    def match_base(self, url: str) -> Optional[str]:
        """Return the longest base URL that *url* falls under, if any."""
        url = normalize_url(url)
        matches = [b for b in self.base_urls if url.startswith(b) or url == b.rstrip("/")]
        if not matches:
            return None
        return max(matches, key=len)

    def url_to_path(self, url: str) -> str:
        """Strip the longest matching base URL from *url*."""
        url = normalize_url(url)
        base = self.match_base(url)
        if base is not None:
            rest = url[len(base):] if url.startswith(base) else ""
        else:
            rest = urlsplit(url).path
        return rest.lstrip("/") or self.root_path

    def path_to_url(self, path: str, base_url: Optional[str] = None) -> str:
        base = base_url or self.primary_base_url
        if path in ("", "/", self.root_path):
            return base
        return join_url(base, path)

    def replace_path(self, path: str) -> str:
        return self.replace_paths.get(path, path)

    def canonical(self, url: str) -> Optional[Tuple[str, str, str]]:
        """Return ``(base_url, path, url)`` after normalisation and replace.

        ``None`` when *url* lies under none of the base URLs.
        """
        if not is_http_url(url):
            return None
        base = self.match_base(url)
        if base is None:
            return None
        path = self.replace_path(self.url_to_path(url))
        if self.trailing_slash and path != self.root_path and not path.endswith("/"):
            last = path.rsplit("/", 1)[-1]
            if "." not in last and "?" not in last:
                path += "/"
        return base, path, normalize_url(self.path_to_url(path, base))

    # ------------------------------------------------------------------
    # Scope
    # ------------------------------------------------------------------
    def is_skipped(self, path: str, url: str) -> bool:
        """Apply skip and only rules to an already-canonical path/URL pair."""
        bare = path.strip("/")
        for skip in self.skip_paths:
            skip = skip.strip("/")
            if bare == skip or bare.startswith(skip + "/"):
                return True
        if any(link in url for link in self.skip_links):
            return True
        url_path = urlsplit(url).path
        if any(rx.search(path) or rx.search(url_path) for rx in self._skip_regexes):
            return True
        if self.only_paths is not None:
            if not any(bare == p.strip("/") or bare.startswith(p.strip("/") + "/") for p in self.only_paths):
                return True
        if self._only_regexes is not None:
            if not any(rx.search(path) or rx.search(url_path) for rx in self._only_regexes):
                return True
        return False

    def should_process(self, url: str) -> bool:
        """In scope iff under a base URL and not excluded by any skip rule."""
        canonical = self.canonical(url)
        if canonical is None:
            return False
        _, path, canonical_url = canonical
        return not self.is_skipped(path, canonical_url)


# ---------------------------------------------------------------------------
# Crawl state
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FrontierEntry:
    """A path waiting to be fetched, with its provenance."""

    path: str
    url: str
    base_url: str
    referrer: Optional[str] = None
    file: Optional[str] = None

    @property
    def key(self) -> str:
        """Visited Set key.

        The normalised absolute URL, or for local files the root-relative
        path of the real file, so symlinked aliases are processed once.
        """
        if self.file is not None:
            return f"file:{self.file}"
        return normalize_url(self.url)


class RunState(str, enum.Enum):
    SEEDING = "seeding"
    DRAINING = "draining"
    DONE = "done"
    CANCELLED = "cancelled"
    FAILED = "failed"


# ---------------------------------------------------------------------------
# Per-page data
# ---------------------------------------------------------------------------

@dataclass
class RawContent:
    """Decoded content returned by a :class:`~devdocs.scraper.sources.ContentSource`."""

    url: str
    text: str
    effective_url: str = ""
    status_code: int = 200
    content_type: str = "text/html"

    def __post_init__(self) -> None:
        if not self.effective_url:
            self.effective_url = self.url

    @property
    def is_html(self) -> bool:
        return "html" in self.content_type.lower()


@dataclass
class PageContext:
    """Transient state threaded through the filter pipeline for one page."""

    spec: DocumentSpec
    path: str
    url: str
    base_url: str
    raw: str
    scratch: Dict[str, Any] = field(default_factory=dict)

    @property
    def base_urls(self) -> Tuple[str, ...]:
        return self.spec.base_urls


@dataclass
class IndexEntry:
    """One search-index entry (``name``/``path``/``type``)."""

    name: str
    path: str
    type: str


@dataclass
class ScrapedPage:
    """The pipeline's output unit, handed to the store and then dropped."""

    path: str
    title: str
    content: str
    links: List[str] = field(default_factory=list)
    entries: List[IndexEntry] = field(default_factory=list)
    source_url: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Run outcome
# ---------------------------------------------------------------------------

@dataclass
class PageFailure:
    """A page-level failure recorded during a run."""

    path: str
    url: str
    stage: str
    cause: str


@dataclass
class ScrapeReport:
    """Summary of one scraper run."""

    name: str
    version: str
    state: RunState = RunState.SEEDING
    pages_stored: int = 0
    fetched: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    failures: List[PageFailure] = field(default_factory=list)
    redirections: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """``True`` when the run reached :attr:`RunState.DONE`."""
        return self.state is RunState.DONE

    def record_failure(self, path: str, url: str, stage: str, cause: object) -> PageFailure:
        failure = PageFailure(path=path, url=url, stage=stage, cause=str(cause))
        self.failures.append(failure)
        return failure
