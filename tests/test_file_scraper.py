"""Tests for ``FileScraper`` and its parity with ``UrlScraper``."""

from __future__ import annotations

import os
from pathlib import Path

import httpx
import pytest
import respx

from devdocs.db.store import MemoryStore
from devdocs.scraper.errors import InvalidSpecError, NotFoundError, PathTraversalError
from devdocs.scraper.file_scraper import FileScraper
from devdocs.scraper.filters import HtmlCleaner, IndexEntries, TextExtractor, UrlNormalizer
from devdocs.scraper.models import DocumentSpec, FrontierEntry, RunState
from devdocs.scraper.pipeline import Pipeline
from devdocs.scraper.url_scraper import UrlScraper


_BASE = "https://docs.test/docs/"

_INTRO = """\
<html><head><title>Intro</title></head>
<body>
  <nav><a href="../index.html">Home</a></nav>
  <main class="body">
    <h1>Introduction</h1>
    <p>Read the <a href="setup">setup guide</a> and the <a href="/docs/api/Map">Map API</a>.</p>
    <p>External: <a href="https://python.test/">python</a></p>
    <h2 id="next">Next steps</h2>
  </main>
</body></html>
"""


def _pipeline() -> Pipeline:
    return Pipeline(
        "test",
        [HtmlCleaner(container=".body"), UrlNormalizer(), TextExtractor(), IndexEntries(headings=True)],
    )


@pytest.fixture()
def tree(tmp_path: Path) -> Path:
    root = tmp_path / "site"
    (root / "guide").mkdir(parents=True)
    (root / "index.html").write_text("<h1>Home</h1><a href='guide/intro.html'>Intro</a>", encoding="utf-8")
    (root / "guide" / "intro.html").write_text(_INTRO, encoding="utf-8")
    (root / "guide" / "setup.htm").write_text("<h1>Setup</h1>", encoding="utf-8")
    (root / "README.txt").write_text("ignored", encoding="utf-8")
    return root


def _spec(root: Path) -> DocumentSpec:
    return DocumentSpec(name="Site", version="1", base_urls=(_BASE,), source_dir=str(root))


# ---------------------------------------------------------------------------
# Runs
# ---------------------------------------------------------------------------

class TestFileScraperRun:
    def test_stores_every_document(self, tree: Path) -> None:
        store = MemoryStore()
        with FileScraper(_spec(tree), _pipeline()) as scraper:
            report = scraper.run(store)

        assert report.ok
        assert store.paths == ["index", "guide/intro", "guide/setup"]
        assert report.fetched == ["file:index.html", "file:guide/intro.html", "file:guide/setup.htm"]

    def test_page_urls_under_primary_base(self, tree: Path) -> None:
        store = MemoryStore()
        with FileScraper(_spec(tree), _pipeline()) as scraper:
            scraper.run(store)
        assert store.pages["guide/intro"].source_url == _BASE + "guide/intro"
        assert store.pages["index"].source_url == _BASE

    def test_symlink_cycle_terminates(self, tree: Path) -> None:
        os.symlink(tree / "guide", tree / "guide" / "again")
        store = MemoryStore()
        with FileScraper(_spec(tree), _pipeline()) as scraper:
            report = scraper.run(store)
        assert report.ok
        assert len(store) == 3

    def test_symlinked_file_alias_processed_once(self, tree: Path) -> None:
        os.symlink(tree / "guide" / "intro.html", tree / "guide" / "start.html")
        with FileScraper(_spec(tree), _pipeline()) as scraper:
            report = scraper.run(MemoryStore())
        assert report.fetched.count("file:guide/intro.html") == 1

    def test_symlink_outside_root_is_page_failure(self, tree: Path, tmp_path: Path) -> None:
        (tmp_path / "secret.html").write_text("<h1>Secret</h1>", encoding="utf-8")
        os.symlink(tmp_path / "secret.html", tree / "leak.html")
        store = MemoryStore()
        with FileScraper(_spec(tree), _pipeline()) as scraper:
            report = scraper.run(store)

        assert report.ok
        assert "leak" not in store
        [failure] = report.failures
        assert failure.path == "leak"
        assert "outside the source root" in failure.cause

    def test_skip_rules_apply(self, tree: Path) -> None:
        spec = DocumentSpec(
            name="Site", version="1", base_urls=(_BASE,), source_dir=str(tree), skip_paths=("guide/setup",)
        )
        store = MemoryStore()
        with FileScraper(spec, _pipeline()) as scraper:
            report = scraper.run(store)
        assert "guide/setup" not in store
        assert "guide/setup" in report.skipped

    def test_requires_root(self) -> None:
        spec = DocumentSpec(name="Site", version="1", base_urls=(_BASE,))
        with pytest.raises(ValueError, match="no source directory"):
            FileScraper(spec, _pipeline())

    def test_missing_root_is_run_error(self, tmp_path: Path) -> None:
        store = MemoryStore()
        with FileScraper(_spec(tmp_path / "nope"), _pipeline()) as scraper:
            with pytest.raises(InvalidSpecError, match="does not exist") as exc_info:
                scraper.run(store)
        assert exc_info.value.report.state is RunState.FAILED
        assert len(store) == 0

    def test_no_base_url_is_run_error(self, tree: Path) -> None:
        spec = DocumentSpec(name="Site", version="1", initial_paths=("index",), source_dir=str(tree))
        with FileScraper(spec, _pipeline()) as scraper:
            with pytest.raises(InvalidSpecError, match="base URL"):
                scraper.run(MemoryStore())


# ---------------------------------------------------------------------------
# Single pages
# ---------------------------------------------------------------------------

class TestFileScraperPage:
    def test_scrape_page_finds_extension(self, tree: Path) -> None:
        with FileScraper(_spec(tree), _pipeline()) as scraper:
            assert scraper.scrape_page("guide/setup").title == "Setup"
            assert scraper.scrape_page("index").title == "Home"

    def test_missing_page(self, tree: Path) -> None:
        with FileScraper(_spec(tree), _pipeline()) as scraper:
            with pytest.raises(NotFoundError):
                scraper.scrape_page("guide/missing")

    def test_traversal_refused(self, tree: Path) -> None:
        with FileScraper(_spec(tree), _pipeline()) as scraper:
            with pytest.raises(PathTraversalError):
                scraper.fetch(FrontierEntry(path="x", url=_BASE + "x", base_url=_BASE, file="../../etc/passwd"))


# ---------------------------------------------------------------------------
# Parity
# ---------------------------------------------------------------------------

class TestParity:
    def test_same_html_same_page(self, tree: Path) -> None:
        spec = _spec(tree)
        with FileScraper(spec, _pipeline()) as scraper:
            from_file = scraper.scrape_page("guide/intro")

        with respx.mock:
            respx.get(_BASE + "guide/intro").mock(return_value=httpx.Response(200, html=_INTRO))
            with UrlScraper(spec, _pipeline()) as scraper:
                from_url = scraper.scrape_page("guide/intro")

        assert from_file.to_dict() == from_url.to_dict()
        assert 'href="setup"' in from_file.content
        assert 'href="../api/Map"' in from_file.content
        assert [e.path for e in from_file.entries] == ["guide/intro", "guide/intro#next"]
