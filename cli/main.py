"""DevDocs CLI: scrape documentation sites into the local workspace.

Usage:
    python cli/main.py --help

Commands:
    list    → registered documentation types (and stored documents)
    scrape  → crawl one or more types into the workspace database
    page    → fetch and filter a single page, print the result
    export  → write a stored document as db.json + index.json
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from devdocs.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

import signal
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import List, Optional, Tuple, Union

import typer

from devdocs.config import settings
from devdocs.db import get_connection, init_db
from devdocs.db.export import export_doc
from devdocs.db.pages import list_docs
from devdocs.db.store import SqliteStore
from devdocs.docs import available_scrapers, create
from devdocs.logging_config import setup_logging
from devdocs.scraper.base import Scraper
from devdocs.scraper.errors import FetchError, PipelineError, RunError, StoreError
from devdocs.scraper.models import ScrapeReport

app = typer.Typer(
    name="devdocs",
    help="DevDocs scraping engine CLI.",
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log at DEBUG level."),
) -> None:
    """Configure logging for every command."""
    setup_logging("DEBUG" if verbose else settings.log_level, settings.log_json)


def _create_or_exit(
    type_id: str,
    version: Optional[str] = None,
    source_dir: Optional[Path] = None,
) -> Scraper:
    scraper = create(type_id, version, source_dir=source_dir)
    if scraper is None:
        known = ", ".join(sorted(available_scrapers()))
        typer.echo(f"Unknown documentation type {type_id!r}. Available: {known}", err=True)
        raise typer.Exit(1)
    return scraper


# ---------------------------------------------------------------------------
# list
# ---------------------------------------------------------------------------
@app.command("list")
def list_cmd(
    stored: bool = typer.Option(False, "--stored", help="List documents stored in the workspace."),
) -> None:
    """List the registered documentation types."""
    if not stored:
        for type_id in sorted(available_scrapers()):
            typer.echo(f"  {type_id}")
        return

    conn = get_connection()
    init_db(conn)
    try:
        docs = list_docs(conn)
    finally:
        conn.close()
    if not docs:
        typer.echo("[list] No documents stored.")
        return
    for d in docs:
        typer.echo(f"  {d['slug']}@{d['version']}  {d['name']!r}  pages={d['page_count']}")


# ---------------------------------------------------------------------------
# scrape
# ---------------------------------------------------------------------------
def _run_one(scraper: Scraper, cancel: threading.Event) -> ScrapeReport:
    """Scrape into a connection of its own; concurrent jobs share nothing."""
    conn = get_connection()
    init_db(conn)
    try:
        with scraper:
            store = SqliteStore(conn, scraper.spec)
            return scraper.run(store, cancel)
    finally:
        conn.close()


def _summary(report: ScrapeReport) -> str:
    return (
        f"{report.name}@{report.version}: {report.state.value}, "
        f"{report.pages_stored} stored, {len(report.fetched)} fetched, "
        f"{len(report.failures)} failed"
    )


@app.command("scrape")
def scrape(
    types: List[str] = typer.Argument(..., help="Documentation type(s) to scrape."),
    version: Optional[str] = typer.Option(None, "--version", help="Version alias or release."),
    source_dir: Optional[Path] = typer.Option(None, "--source-dir", help="Local tree for file-based types."),
    jobs: int = typer.Option(settings.scrape_jobs, "--jobs", "-j", min=1, help="Documents scraped in parallel."),
) -> None:
    """Scrape documentation into the workspace database."""
    scrapers = [_create_or_exit(t, version, source_dir) for t in types]
    settings.ensure_workspace()

    cancel = threading.Event()

    def _on_sigint(signum, frame) -> None:
        typer.echo("\n[scrape] Interrupted, stopping after the current page …", err=True)
        cancel.set()

    previous = signal.signal(signal.SIGINT, _on_sigint)
    results: List[Tuple[Scraper, Union[ScrapeReport, Exception]]] = []
    try:
        with ThreadPoolExecutor(max_workers=jobs) as pool:
            futures = {pool.submit(_run_one, s, cancel): s for s in scrapers}
            for future in as_completed(futures):
                scraper = futures[future]
                try:
                    results.append((scraper, future.result()))
                except (RunError, StoreError) as exc:
                    results.append((scraper, exc))
    finally:
        signal.signal(signal.SIGINT, previous)

    failed = False
    for scraper, outcome in results:
        if isinstance(outcome, Exception):
            failed = True
            typer.echo(f"[scrape] {scraper.spec.slug}: {outcome}", err=True)
            report = getattr(outcome, "report", None)
            if report is not None:
                typer.echo(f"[scrape] {_summary(report)}")
            continue
        for failure in outcome.failures:
            typer.echo(f"[scrape] warning: {failure.path} ({failure.stage}): {failure.cause}", err=True)
        typer.echo(f"[scrape] {_summary(outcome)}")

    if failed:
        raise typer.Exit(1)


# ---------------------------------------------------------------------------
# page
# ---------------------------------------------------------------------------
@app.command("page")
def page(
    type_id: str = typer.Argument(..., metavar="TYPE", help="Documentation type."),
    path: str = typer.Argument(..., help="Base-relative page path."),
    version: Optional[str] = typer.Option(None, "--version", help="Version alias or release."),
) -> None:
    """Fetch and filter a single page, then print it."""
    scraper = _create_or_exit(type_id, version)
    try:
        with scraper:
            result = scraper.scrape_page(path)
    except (FetchError, PipelineError, ValueError) as exc:
        typer.echo(f"[page] {exc}", err=True)
        raise typer.Exit(1)

    typer.echo(f"[page] Title  : {result.title or '(none)'}")
    typer.echo(f"[page] Source : {result.source_url}")
    typer.echo(f"[page] Links  : {len(result.links)}")
    typer.echo(f"[page] Entries: {len(result.entries)}")
    typer.echo("")
    typer.echo(result.content)


# ---------------------------------------------------------------------------
# export
# ---------------------------------------------------------------------------
@app.command("export")
def export(
    type_id: str = typer.Argument(..., metavar="TYPE", help="Documentation type."),
    out: Optional[Path] = typer.Option(None, "--out", help="Output directory (default: the type's output path)."),
    version: Optional[str] = typer.Option(None, "--version", help="Version alias or release."),
) -> None:
    """Export a stored document as db.json and index.json."""
    scraper = _create_or_exit(type_id, version)
    scraper.close()
    spec = scraper.spec
    target = out or Path(spec.output_path)

    conn = get_connection()
    init_db(conn)
    try:
        written = export_doc(conn, spec.slug, spec.version, target)
    except LookupError as exc:
        typer.echo(f"[export] {exc}", err=True)
        raise typer.Exit(1)
    finally:
        conn.close()
    typer.echo(f"[export] Wrote {written / 'db.json'} and {written / 'index.json'}")


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
