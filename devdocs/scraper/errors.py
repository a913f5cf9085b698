"""Exception types raised by the scraping engine.

Two families matter to callers:

* **Page-level** errors (:class:`FetchError`, :class:`PipelineError`) concern
  a single path.  The crawl loop records them and moves on.
* **Run-level** errors (:class:`RunError`) stop the run immediately.

Every message carries the path, stage and underlying cause so a log line is
useful on its own.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from devdocs.scraper.models import ScrapeReport


# ---------------------------------------------------------------------------
# Page-level: fetching
# ---------------------------------------------------------------------------

class FetchError(Exception):
    """Content for *path* could not be obtained."""

    stage = "fetch"

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}")
        self.path = path
        self.reason = reason


class HttpStatusError(FetchError):
    """The server answered with a non-2xx status."""

    def __init__(self, path: str, status: int) -> None:
        super().__init__(path, f"HTTP {status}")
        self.status = status


class FetchTimeout(FetchError):
    """The request deadline was exceeded."""

    def __init__(self, path: str, timeout: float) -> None:
        super().__init__(path, f"timed out after {timeout:g}s")
        self.timeout = timeout


class DecodeError(FetchError):
    """Bytes could not be decoded under the declared or sniffed charset."""

    def __init__(self, path: str, encoding: str, cause: Exception) -> None:
        super().__init__(path, f"cannot decode as {encoding}: {cause}")
        self.encoding = encoding


class NotFoundError(FetchError):
    """A local file does not exist."""

    def __init__(self, path: str) -> None:
        super().__init__(path, "no such file")


class FileIOError(FetchError):
    """A local file exists but could not be read."""

    def __init__(self, path: str, cause: OSError) -> None:
        super().__init__(path, f"I/O error: {cause}")


class PathTraversalError(FetchError):
    """A path resolved outside the configured root directory."""

    def __init__(self, path: str) -> None:
        super().__init__(path, "resolves outside the source root")


# ---------------------------------------------------------------------------
# Page-level: filtering
# ---------------------------------------------------------------------------

class FilterError(Exception):
    """Raised by a single :class:`~devdocs.scraper.filters.Filter`."""


class PipelineError(Exception):
    """A filter failed; wraps the cause with filter name and page path."""

    stage = "filter"

    def __init__(self, pipeline: str, filter_name: str, path: str, cause: Exception) -> None:
        super().__init__(f"{path}: filter {filter_name!r} in pipeline {pipeline!r} failed: {cause}")
        self.pipeline = pipeline
        self.filter_name = filter_name
        self.path = path
        self.cause = cause


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

class StoreError(Exception):
    """The store could not persist a page."""


# ---------------------------------------------------------------------------
# Run-level
# ---------------------------------------------------------------------------

class RunError(Exception):
    """A run was aborted.  Pages stored before the abort remain valid."""

    def __init__(self, message: str, report: Optional[ScrapeReport] = None) -> None:
        super().__init__(message)
        self.report = report


class InvalidSpecError(RunError):
    """The document specification cannot be crawled."""


class StoreUnavailableError(RunError):
    """The store rejected a write."""


class ScrapeCancelled(RunError):
    """The run was cancelled between two page iterations."""
