"""The crawl loop shared by every scraper.

A run moves through ``SEEDING -> DRAINING -> DONE``:

* **Seeding**: every entry from the resolver's ``seed()`` goes through the
  enqueue-and-dedupe procedure.
* **Draining**: pop the oldest entry, fetch it, enqueue what the page
  links to, run the pipeline, hand the page to the store.  Repeat until the
  frontier is empty.

Page-level failures are recorded in the :class:`ScrapeReport` and the loop
continues.  A store failure or a cancellation ends the run with a
:class:`RunError` that carries the partial report.
"""

from __future__ import annotations

import abc
import logging
import threading
from typing import TYPE_CHECKING, Optional

from devdocs.scraper.entries import EntriesResolver
from devdocs.scraper.errors import (
    FetchError,
    InvalidSpecError,
    PipelineError,
    ScrapeCancelled,
    StoreError,
    StoreUnavailableError,
)
from devdocs.scraper.frontier import Frontier
from devdocs.scraper.models import (
    DocumentSpec,
    FrontierEntry,
    PageContext,
    RawContent,
    RunState,
    ScrapedPage,
    ScrapeReport,
)
from devdocs.scraper.pipeline import Pipeline
from devdocs.scraper.rate_limiter import RateLimiter
from devdocs.scraper.sources import ContentSource

if TYPE_CHECKING:
    from devdocs.db.store import Store

logger = logging.getLogger(__name__)


class Scraper(abc.ABC):
    """Scrape one document/version into a :class:`Store`.

    Subclasses bind a content source and an entries resolver and decide how
    a fetched entry becomes a :class:`PageContext`.
    """

    def __init__(
        self,
        spec: DocumentSpec,
        pipeline: Pipeline,
        source: ContentSource,
        resolver: EntriesResolver,
        rate_limiter: Optional[RateLimiter] = None,
    ) -> None:
        self.spec = spec
        self.pipeline = pipeline
        self.source = source
        self.resolver = resolver
        self.rate_limiter = rate_limiter
        self.state = RunState.SEEDING

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def version(self) -> str:
        return self.spec.version

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.spec.slug}@{self.spec.version}>"

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------
    def fetch(self, entry: FrontierEntry) -> RawContent:
        return self.source.fetch(entry.url)

    def build_context(
        self,
        entry: FrontierEntry,
        raw: RawContent,
        frontier: Frontier,
        report: ScrapeReport,
    ) -> Optional[PageContext]:
        """Turn fetched content into a context, or ``None`` to skip the page."""
        return PageContext(
            spec=self.spec,
            path=entry.path,
            url=entry.url,
            base_url=entry.base_url,
            raw=raw.text,
        )

    def validate(self) -> None:
        """Raise :class:`InvalidSpecError` if this scraper cannot run."""
        self.spec.validate()

    def entry_for(self, path: str) -> FrontierEntry:
        """Frontier entry for a base-relative *path* (single-page scrapes).

        Raises:
            ValueError: *path* is outside the document.
        """
        canonical = self.spec.canonical(self.spec.path_to_url(path))
        if canonical is None:
            raise ValueError(f"{path!r} is outside {self.spec.slug}")
        base_url, resolved_path, url = canonical
        return FrontierEntry(path=resolved_path, url=url, base_url=base_url)

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------
    def _set_state(self, report: ScrapeReport, state: RunState) -> None:
        self.state = state
        report.state = state

    def _enqueue(self, frontier: Frontier, entry: FrontierEntry, report: ScrapeReport) -> bool:
        """Enqueue *entry* if it is in scope, not skipped and not yet seen."""
        if self.spec.match_base(entry.url) is None or self.spec.is_skipped(entry.path, entry.url):
            report.skipped.append(entry.path)
            return False
        queued = frontier.push(entry)
        if queued:
            logger.debug("Queued %s (from %s)", entry.path, entry.referrer or "seed")
        return queued

    def run(self, store: "Store", cancel: Optional[threading.Event] = None) -> ScrapeReport:
        """Scrape the whole document into *store*.

        Args:
            store: Sink for every successfully processed page.
            cancel: Checked once per loop iteration; when set the run stops
                before the next page.

        Returns:
            The run's :class:`ScrapeReport`.  Page-level failures are listed
            in ``report.failures`` and do not make the run fail.

        Raises:
            InvalidSpecError: The document spec cannot be crawled.
            StoreUnavailableError: The store rejected a page.
            ScrapeCancelled: *cancel* was set.
        """
        report = ScrapeReport(name=self.spec.name, version=self.spec.version)
        try:
            self.validate()
        except InvalidSpecError as exc:
            self._set_state(report, RunState.FAILED)
            exc.report = report
            raise

        frontier = Frontier()
        self._set_state(report, RunState.SEEDING)
        for entry in self.resolver.seed():
            self._enqueue(frontier, entry, report)
        logger.info("%s: seeded %d path(s)", self.spec.slug, len(frontier))

        self._set_state(report, RunState.DRAINING)
        while True:
            if cancel is not None and cancel.is_set():
                self._set_state(report, RunState.CANCELLED)
                logger.warning(
                    "%s: cancelled with %d page(s) stored, %d queued",
                    self.spec.slug, report.pages_stored, len(frontier),
                )
                raise ScrapeCancelled(f"{self.spec.slug}: run cancelled", report)

            entry = frontier.pop()
            if entry is None:
                break
            self._process(entry, frontier, store, report)

        self._set_state(report, RunState.DONE)
        logger.info(
            "%s: done, %d page(s) stored, %d fetched, %d failure(s)",
            self.spec.slug, report.pages_stored, len(report.fetched), len(report.failures),
        )
        return report

    def _process(
        self,
        entry: FrontierEntry,
        frontier: Frontier,
        store: "Store",
        report: ScrapeReport,
    ) -> None:
        if self.rate_limiter is not None:
            self.rate_limiter.wait()

        try:
            raw = self.fetch(entry)
        except FetchError as exc:
            logger.warning("Fetch failed: %s", exc)
            report.record_failure(entry.path, entry.url, exc.stage, exc)
            return
        report.fetched.append(entry.key)

        context = self.build_context(entry, raw, frontier, report)
        if context is None:
            return

        for candidate in self.resolver.discover(context):
            self._enqueue(frontier, candidate, report)

        try:
            page = self.pipeline.run(context)
        except PipelineError as exc:
            logger.warning("Filter failed: %s", exc)
            report.record_failure(context.path, context.url, exc.stage, exc)
            return

        try:
            store.put(page)
        except StoreError as exc:
            self._set_state(report, RunState.FAILED)
            raise StoreUnavailableError(f"{self.spec.slug}: cannot store {page.path!r}: {exc}", report) from exc
        report.pages_stored += 1
        logger.debug("Stored %s", page.path)

    def scrape_page(self, path: str) -> ScrapedPage:
        """Fetch and filter a single page without crawling.

        Raises:
            ValueError: *path* is outside the document.
            FetchError: The page could not be fetched.
            PipelineError: A filter failed.
        """
        entry = self.entry_for(path)
        raw = self.fetch(entry)
        context = self.build_context(entry, raw, Frontier(), ScrapeReport(self.spec.name, self.spec.version))
        if context is None:
            raise ValueError(f"{path!r} did not produce an HTML page")
        return self.pipeline.run(context)

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------
    def close(self) -> None:
        self.source.close()

    def __enter__(self) -> "Scraper":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
