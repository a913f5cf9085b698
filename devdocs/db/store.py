"""Page sinks for scraper runs.

A scraper hands every processed page to ``Store.put`` and forgets it.  Any
failure to persist a page must surface as :class:`StoreError` so the run
can abort with its partial report.
"""

from __future__ import annotations

import abc
import logging
import sqlite3
import threading
from typing import Dict, List

from devdocs.db import pages
from devdocs.scraper.errors import StoreError
from devdocs.scraper.models import DocumentSpec, ScrapedPage

logger = logging.getLogger(__name__)


class Store(abc.ABC):
    @abc.abstractmethod
    def put(self, page: ScrapedPage) -> None:
        """Persist *page*, replacing any earlier page with the same path."""


class MemoryStore(Store):
    """Keeps pages in a dict keyed by path, in insertion order."""

    def __init__(self) -> None:
        self.pages: Dict[str, ScrapedPage] = {}
        self._lock = threading.Lock()

    def put(self, page: ScrapedPage) -> None:
        with self._lock:
            self.pages[page.path] = page

    @property
    def paths(self) -> List[str]:
        return list(self.pages)

    def __len__(self) -> int:
        return len(self.pages)

    def __contains__(self, path: object) -> bool:
        return path in self.pages


class SqliteStore(Store):
    """Writes pages of one document/version into the workspace database.

    The ``docs`` row is (re)registered on construction.  Writes through one
    store are serialised with a lock; concurrent runs each open their own
    connection.
    """

    def __init__(self, conn: sqlite3.Connection, spec: DocumentSpec) -> None:
        self.conn = conn
        self.slug = spec.slug
        self.version = spec.version
        self._lock = threading.Lock()
        try:
            with self._lock:
                pages.upsert_doc(conn, spec.slug, spec.version, spec.name, spec.release)
        except sqlite3.Error as exc:
            raise StoreError(f"cannot register {spec.slug}@{spec.version}: {exc}") from exc

    def put(self, page: ScrapedPage) -> None:
        try:
            with self._lock:
                pages.put_page(self.conn, self.slug, self.version, page)
        except sqlite3.Error as exc:
            raise StoreError(f"cannot write {page.path!r}: {exc}") from exc
        logger.debug("Wrote %s/%s", self.slug, page.path)
