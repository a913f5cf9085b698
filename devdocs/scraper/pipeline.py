"""Filter pipeline: ordered, short-circuiting application of filters."""

from __future__ import annotations

from typing import Iterable, List

from devdocs.scraper.errors import PipelineError
from devdocs.scraper.filters import Filter
from devdocs.scraper.models import PageContext, ScrapedPage


class Pipeline:
    """A named, ordered sequence of :class:`Filter` objects.

    ``run`` feeds each filter the previous one's output and stops at the
    first failure.  Nothing is returned on failure, so no partial page can
    reach the store.
    """

    def __init__(self, name: str, filters: Iterable[Filter] = ()) -> None:
        self.name = name
        self.filters: List[Filter] = list(filters)

    def __len__(self) -> int:
        return len(self.filters)

    def __repr__(self) -> str:
        names = ", ".join(f.name for f in self.filters)
        return f"<Pipeline {self.name!r} [{names}]>"

    def process(self, context: PageContext, content: str) -> str:
        """Apply every filter to *content* and return the final content.

        Raises:
            PipelineError: A filter raised; wraps the cause with the
                filter's name and the page path.
        """
        for flt in self.filters:
            try:
                content = flt.apply(context, content)
            except Exception as exc:
                raise PipelineError(self.name, flt.name, context.path, exc) from exc
        return content

    def run(self, context: PageContext) -> ScrapedPage:
        """Process ``context.raw`` and build the resulting :class:`ScrapedPage`."""
        content = self.process(context, context.raw)
        scratch = context.scratch
        return ScrapedPage(
            path=context.path,
            title=scratch.get("title") or context.path,
            content=content,
            links=list(scratch.get("links", [])),
            entries=list(scratch.get("entries", [])),
            source_url=context.url,
        )
