"""CRUD operations for the ``docs``, ``pages`` and ``entries`` tables."""

from __future__ import annotations

import json
import sqlite3
from time import time
from typing import Optional

from devdocs.scraper.models import IndexEntry, ScrapedPage


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _row_to_page(conn: sqlite3.Connection, row: sqlite3.Row) -> ScrapedPage:
    return ScrapedPage(
        path=row["path"],
        title=row["title"],
        content=row["content"],
        links=json.loads(row["links"] or "[]"),
        entries=list_entries(conn, row["slug"], row["version"], page_path=row["path"]),
        source_url=row["source_url"],
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def upsert_doc(
    conn: sqlite3.Connection,
    slug: str,
    version: str,
    name: str,
    release: str = "",
) -> None:
    """Register a document/version, refreshing ``scraped_at``."""
    with conn:
        conn.execute(
            """
            INSERT INTO docs (slug, version, name, release, scraped_at)
            VALUES (?, ?, ?, ?, ?)
            ON CONFLICT (slug, version) DO UPDATE SET
                name = excluded.name,
                release = excluded.release,
                scraped_at = excluded.scraped_at
            """,
            (slug, version, name, release, int(time())),
        )


def list_docs(conn: sqlite3.Connection) -> list[sqlite3.Row]:
    """Return every stored document with its page count."""
    return conn.execute(
        """
        SELECT d.slug, d.version, d.name, d.release, d.scraped_at,
               COUNT(p.path) AS page_count
        FROM docs d LEFT JOIN pages p ON p.slug = d.slug AND p.version = d.version
        GROUP BY d.slug, d.version
        ORDER BY d.slug, d.version
        """
    ).fetchall()


def put_page(conn: sqlite3.Connection, slug: str, version: str, page: ScrapedPage) -> None:
    """Insert or replace *page* and its index entries in one transaction."""
    with conn:
        conn.execute(
            "DELETE FROM entries WHERE slug = ? AND version = ? AND page_path = ?",
            (slug, version, page.path),
        )
        conn.execute(
            """
            INSERT OR REPLACE INTO pages (slug, version, path, title, content, links, source_url, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                slug,
                version,
                page.path,
                page.title,
                page.content,
                json.dumps(page.links),
                page.source_url,
                int(time()),
            ),
        )
        conn.executemany(
            """
            INSERT INTO entries (slug, version, page_path, name, path, type)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            [(slug, version, page.path, e.name, e.path, e.type) for e in page.entries],
        )


def get_page(conn: sqlite3.Connection, slug: str, version: str, path: str) -> Optional[ScrapedPage]:
    """Fetch a single page.  Returns ``None`` if not found."""
    row = conn.execute(
        "SELECT * FROM pages WHERE slug = ? AND version = ? AND path = ?",
        (slug, version, path),
    ).fetchone()
    return _row_to_page(conn, row) if row else None


def list_pages(conn: sqlite3.Connection, slug: str, version: str) -> list[ScrapedPage]:
    """Return every page of a document, ordered by path."""
    rows = conn.execute(
        "SELECT * FROM pages WHERE slug = ? AND version = ? ORDER BY path",
        (slug, version),
    ).fetchall()
    return [_row_to_page(conn, r) for r in rows]


def list_entries(
    conn: sqlite3.Connection,
    slug: str,
    version: str,
    page_path: Optional[str] = None,
) -> list[IndexEntry]:
    """Return index entries of a document, optionally for one page only."""
    if page_path is not None:
        rows = conn.execute(
            """
            SELECT name, path, type FROM entries
            WHERE slug = ? AND version = ? AND page_path = ?
            ORDER BY rowid
            """,
            (slug, version, page_path),
        ).fetchall()
    else:
        rows = conn.execute(
            "SELECT name, path, type FROM entries WHERE slug = ? AND version = ? ORDER BY rowid",
            (slug, version),
        ).fetchall()
    return [IndexEntry(name=r["name"], path=r["path"], type=r["type"]) for r in rows]


def delete_doc(conn: sqlite3.Connection, slug: str, version: str) -> None:
    """Delete a document with its pages and entries (via CASCADE).

    This is a no-op if the document does not exist.
    """
    with conn:
        conn.execute("DELETE FROM docs WHERE slug = ? AND version = ?", (slug, version))
