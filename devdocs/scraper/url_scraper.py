"""Breadth-first crawler over one or more base URLs."""

from __future__ import annotations

import logging
from typing import Optional

from devdocs.scraper.base import Scraper
from devdocs.scraper.entries import CrawlResolver
from devdocs.scraper.frontier import Frontier
from devdocs.scraper.models import DocumentSpec, FrontierEntry, PageContext, RawContent, ScrapeReport
from devdocs.scraper.pipeline import Pipeline
from devdocs.scraper.rate_limiter import RateLimiter
from devdocs.scraper.sources import ContentSource, HttpSource
from devdocs.scraper.urls import normalize_url

logger = logging.getLogger(__name__)


class UrlScraper(Scraper):
    """Crawl a document over HTTP.

    Every base URL of the document spec is part of one scope: a link from a page
    under the first base to a page under the second is followed like any
    other.  Non-HTML responses are skipped.  A redirect to another in-scope
    page is processed under the target's path (once, even if several
    sources redirect there); a redirect out of scope is a page failure.
    """

    def __init__(
        self,
        spec: DocumentSpec,
        pipeline: Pipeline,
        source: Optional[ContentSource] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ) -> None:
        if rate_limiter is None and spec.rate_limit:
            rate_limiter = RateLimiter(spec.rate_limit)
        super().__init__(
            spec,
            pipeline,
            source or HttpSource(),
            CrawlResolver(spec),
            rate_limiter,
        )

    def build_context(
        self,
        entry: FrontierEntry,
        raw: RawContent,
        frontier: Frontier,
        report: ScrapeReport,
    ) -> Optional[PageContext]:
        if not raw.is_html:
            logger.debug("Skipping %s: content type %s", entry.path, raw.content_type)
            report.skipped.append(entry.path)
            return None

        path, url, base_url = entry.path, entry.url, entry.base_url
        effective = normalize_url(raw.effective_url)
        if effective != entry.key:
            canonical = self.spec.canonical(effective)
            if canonical is None or self.spec.is_skipped(canonical[1], canonical[2]):
                logger.warning("Redirect out of scope: %s -> %s", entry.url, effective)
                report.record_failure(entry.path, entry.url, "redirect", f"redirected out of scope to {effective}")
                return None
            base_url, path, url = canonical
            if url != entry.key:
                if path != entry.path:
                    report.redirections[entry.path] = path
                if not frontier.mark_visited(url):
                    logger.debug("Redirect target %s already seen, skipping %s", path, entry.path)
                    return None

        return PageContext(spec=self.spec, path=path, url=url, base_url=base_url, raw=raw.text)
