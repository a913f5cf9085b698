"""Scraper for documentation trees that already exist on disk."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence, Union

from devdocs.scraper.base import Scraper
from devdocs.scraper.entries import DOCUMENT_EXTENSIONS, EnumeratedResolver
from devdocs.scraper.errors import InvalidSpecError, NotFoundError
from devdocs.scraper.models import DocumentSpec, FrontierEntry, RawContent
from devdocs.scraper.pipeline import Pipeline
from devdocs.scraper.sources import FileSource


class FileScraper(Scraper):
    """Process every document file below *root*.

    Each file's logical path is its root-relative path without extension,
    and its page URL is that path under the primary base URL, so the
    pipeline sees exactly what a :class:`UrlScraper` would see for the same
    page served online.
    """

    def __init__(
        self,
        spec: DocumentSpec,
        pipeline: Pipeline,
        root: Union[str, Path, None] = None,
        extensions: Sequence[str] = DOCUMENT_EXTENSIONS,
    ) -> None:
        root = root if root is not None else spec.source_dir
        if root is None:
            raise ValueError(f"{spec.slug}: no source directory configured")
        source = FileSource(root)
        self.extensions = tuple(extensions)
        super().__init__(spec, pipeline, source, EnumeratedResolver(spec, source.root, self.extensions))

    @property
    def root(self) -> Path:
        return self.source.root  # type: ignore[attr-defined]

    def validate(self) -> None:
        super().validate()
        if not self.root.is_dir():
            raise InvalidSpecError(f"{self.spec.slug}: source directory {str(self.root)!r} does not exist")

    def fetch(self, entry: FrontierEntry) -> RawContent:
        return self.source.fetch(entry.file if entry.file is not None else entry.path)

    def entry_for(self, path: str) -> FrontierEntry:
        entry = super().entry_for(path)
        stem = "index" if entry.path == self.spec.root_path else entry.path.rstrip("/")
        for ext in self.extensions:
            candidate = f"{stem}{ext}"
            if (self.root / candidate).is_file():
                return FrontierEntry(path=entry.path, url=entry.url, base_url=entry.base_url, file=candidate)
        raise NotFoundError(path)
