"""Write a stored document out as ``db.json`` + ``index.json``.

``db.json`` maps each page path to its HTML content.  ``index.json`` holds
the search index: every entry plus one type record per entry type, with
the number of entries of that type.
"""

from __future__ import annotations

import json
import logging
import re
import sqlite3
from pathlib import Path
from typing import Union

from devdocs.db import pages

logger = logging.getLogger(__name__)


def type_slug(name: str) -> str:
    """``"Global Objects"`` -> ``"global-objects"``."""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def build_index(conn: sqlite3.Connection, slug: str, version: str) -> dict:
    entries = pages.list_entries(conn, slug, version)
    counts: dict[str, int] = {}
    for entry in entries:
        counts[entry.type] = counts.get(entry.type, 0) + 1
    return {
        "entries": [{"name": e.name, "path": e.path, "type": e.type} for e in entries],
        "types": [
            {"name": name, "count": counts[name], "slug": type_slug(name)}
            for name in sorted(counts, key=str.lower)
        ],
    }


def export_doc(
    conn: sqlite3.Connection,
    slug: str,
    version: str,
    out_dir: Union[str, Path],
) -> Path:
    """Export one document/version into *out_dir*.

    Returns:
        The directory the files were written to.

    Raises:
        LookupError: No pages are stored for ``slug``/``version``.
    """
    stored = pages.list_pages(conn, slug, version)
    if not stored:
        raise LookupError(f"no pages stored for {slug}@{version}")

    out = Path(out_dir)
    out.mkdir(parents=True, exist_ok=True)
    db = {page.path: page.content for page in stored}
    (out / "db.json").write_text(json.dumps(db, ensure_ascii=False), encoding="utf-8")
    (out / "index.json").write_text(
        json.dumps(build_index(conn, slug, version), ensure_ascii=False),
        encoding="utf-8",
    )
    logger.info("Exported %d page(s) of %s@%s to %s", len(db), slug, version, out)
    return out
