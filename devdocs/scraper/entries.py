"""Entries resolvers: which paths belong to a document.

``CrawlResolver`` discovers the corpus incrementally from links on fetched
pages.  ``EnumeratedResolver`` knows every path up front by walking a local
directory tree and never discovers anything new during a run.
"""

from __future__ import annotations

import abc
import logging
import os
from pathlib import Path
from typing import Iterator, Optional, Sequence, Set

from devdocs.scraper.filters import EntriesExtractor
from devdocs.scraper.models import DocumentSpec, FrontierEntry, PageContext

logger = logging.getLogger(__name__)

DOCUMENT_EXTENSIONS = (".html", ".htm")


class EntriesResolver(abc.ABC):
    def __init__(self, spec: DocumentSpec) -> None:
        self.spec = spec

    @abc.abstractmethod
    def seed(self) -> Iterator[FrontierEntry]:
        """Entries the frontier starts with."""

    @abc.abstractmethod
    def discover(self, context: PageContext) -> Iterator[FrontierEntry]:
        """Entries found on an already-fetched page."""


class CrawlResolver(EntriesResolver):
    """Seeds from the base URLs and follows links found on each page."""

    def __init__(self, spec: DocumentSpec, extractor: Optional[EntriesExtractor] = None) -> None:
        super().__init__(spec)
        self.extractor = extractor or EntriesExtractor()

    def seed(self) -> Iterator[FrontierEntry]:
        """Initial paths for every base URL, primary first.

        The primary base URL is seeded with ``initial_paths`` (its root when
        there are none); each additional base URL is seeded with its root.
        """
        spec = self.spec
        for index, base_url in enumerate(spec.base_urls):
            paths = (spec.initial_paths or (spec.root_path,)) if index == 0 else (spec.root_path,)
            for path in paths:
                url = spec.path_to_url(path, base_url)
                canonical = spec.canonical(url)
                if canonical is None:
                    logger.warning("%s: initial path %r is outside every base URL", spec.slug, path)
                    continue
                resolved_base, resolved_path, resolved_url = canonical
                yield FrontierEntry(path=resolved_path, url=resolved_url, base_url=resolved_base)

    def discover(self, context: PageContext) -> Iterator[FrontierEntry]:
        return self.extractor.extract(context, context.raw)


class EnumeratedResolver(EntriesResolver):
    """Walks *root* and yields one entry per recognised document file.

    Symlinked directories are followed but each real directory is walked
    once, so symlink cycles terminate.  Walk order is sorted, which makes
    the seed order reproducible.
    """

    def __init__(
        self,
        spec: DocumentSpec,
        root: Path,
        extensions: Sequence[str] = DOCUMENT_EXTENSIONS,
    ) -> None:
        super().__init__(spec)
        self.root = Path(root).expanduser().resolve()
        self.extensions = tuple(ext.lower() for ext in extensions)

    def _files(self) -> Iterator[Path]:
        seen_dirs: Set[str] = set()
        for dirpath, dirnames, filenames in os.walk(self.root, followlinks=True):
            real = os.path.realpath(dirpath)
            if real in seen_dirs:
                dirnames[:] = []
                continue
            seen_dirs.add(real)
            dirnames.sort()
            for filename in sorted(filenames):
                if os.path.splitext(filename)[1].lower() in self.extensions:
                    yield Path(dirpath) / filename

    def seed(self) -> Iterator[FrontierEntry]:
        spec = self.spec
        for file_path in self._files():
            relative = file_path.relative_to(self.root).as_posix()
            logical = os.path.splitext(relative)[0]
            try:
                real = file_path.resolve().relative_to(self.root).as_posix()
            except ValueError:
                # Points outside the root; FileSource refuses it at fetch time.
                real = relative
            canonical = spec.canonical(spec.path_to_url(logical))
            if canonical is None:
                logger.warning("%s: %s maps outside every base URL, not scraped", spec.slug, relative)
                continue
            base_url, path, url = canonical
            yield FrontierEntry(path=path, url=url, base_url=base_url, file=real)

    def discover(self, context: PageContext) -> Iterator[FrontierEntry]:
        return iter(())
