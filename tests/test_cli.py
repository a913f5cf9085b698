"""Tests for the devdocs CLI (list, scrape, page, export)."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
import respx
from typer.testing import CliRunner

from cli.main import app
from devdocs.db import get_connection, init_db
from devdocs.db.pages import get_page, list_pages
from devdocs.docs import DocType, register
from devdocs.docs import registry

runner = CliRunner()

_BASE = "https://docs.test/docs/"


def _page(title: str, links=()) -> str:
    anchors = "".join(f'<a href="{href}">{href}</a>' for href in links)
    return f"<html><body><main><h1>{title}</h1>{anchors}</main></body></html>"


@pytest.fixture(autouse=True)
def site_type(workspace: Path, monkeypatch: pytest.MonkeyPatch) -> DocType:
    """Register a small test site on an isolated registry."""
    monkeypatch.setattr(registry, "_REGISTRY", dict(registry._REGISTRY))
    return register(DocType(
        type_id="site",
        name="Site",
        versions={"1": "1.0.0"},
        default_version="1",
        spec={"base_urls": (_BASE,)},
        filters=(
            ("clean_html", {"container": "main"}),
            ("normalize_urls", {}),
            ("extract_text", {}),
            ("index_entries", {"skip_root": False}),
        ),
    ))


def _serve_site() -> None:
    respx.get(_BASE).mock(return_value=httpx.Response(200, html=_page("Home", ["a", "b"])))
    respx.get(_BASE + "a").mock(return_value=httpx.Response(200, html=_page("A", ["b"])))
    respx.get(_BASE + "b").mock(return_value=httpx.Response(500))


# ---------------------------------------------------------------------------
# list
# ---------------------------------------------------------------------------

class TestList:
    def test_lists_types(self) -> None:
        result = runner.invoke(app, ["list"])
        assert result.exit_code == 0
        for type_id in ("babel", "css", "html", "javascript", "python", "site"):
            assert type_id in result.stdout

    def test_stored_empty(self) -> None:
        result = runner.invoke(app, ["list", "--stored"])
        assert result.exit_code == 0
        assert "No documents stored" in result.stdout


# ---------------------------------------------------------------------------
# scrape
# ---------------------------------------------------------------------------

class TestScrape:
    def test_unknown_type_exits_1(self) -> None:
        result = runner.invoke(app, ["scrape", "cobol"])
        assert result.exit_code == 1
        assert "Unknown documentation type 'cobol'" in result.output

    def test_unknown_type_among_known_runs_nothing(self) -> None:
        with respx.mock(assert_all_called=False) as router:
            home = router.get(_BASE).mock(return_value=httpx.Response(200, html=_page("Home")))
            result = runner.invoke(app, ["scrape", "site", "cobol"])
        assert result.exit_code == 1
        assert home.call_count == 0

    def test_scrape_stores_pages_and_warns(self, workspace: Path) -> None:
        with respx.mock:
            _serve_site()
            result = runner.invoke(app, ["scrape", "site"])

        assert result.exit_code == 0, result.output
        assert "warning: b (fetch)" in result.output
        assert "2 stored" in result.output

        conn = get_connection()
        init_db(conn)
        try:
            paths = [p.path for p in list_pages(conn, "site", "1")]
            home = get_page(conn, "site", "1", "index")
        finally:
            conn.close()
        assert paths == ["a", "index"]
        assert home.title == "Home"
        assert home.entries[0].name == "Home"

    def test_list_stored_after_scrape(self) -> None:
        with respx.mock:
            _serve_site()
            runner.invoke(app, ["scrape", "site"])
        result = runner.invoke(app, ["list", "--stored"])
        assert "site@1" in result.stdout
        assert "pages=2" in result.stdout

    def test_run_level_error_exits_1(self) -> None:
        register(DocType(type_id="broken", name="Broken", spec={"base_urls": ("https://docs.test/",),
                                                                 "skip_patterns": ("(",)}))
        result = runner.invoke(app, ["scrape", "broken"])
        assert result.exit_code == 1
        assert "invalid pattern" in result.output

    def test_file_type_with_source_dir(self, tmp_path: Path) -> None:
        tree = tmp_path / "python-docs"
        (tree / "library").mkdir(parents=True)
        (tree / "index.html").write_text("<div class='body'><h1>Python</h1></div>", encoding="utf-8")
        (tree / "library" / "os.html").write_text("<div class='body'><h1>os</h1></div>", encoding="utf-8")

        result = runner.invoke(app, ["scrape", "python", "--source-dir", str(tree)])
        assert result.exit_code == 0, result.output

        conn = get_connection()
        init_db(conn)
        try:
            page = get_page(conn, "python", "3.12", "library/os")
        finally:
            conn.close()
        assert page is not None
        assert page.entries[0].type == "Library"

    def test_file_type_missing_source_dir_exits_1(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["scrape", "python", "--source-dir", str(tmp_path / "nope")])
        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_several_types_in_parallel(self, tmp_path: Path) -> None:
        tree = tmp_path / "python-docs"
        tree.mkdir()
        (tree / "index.html").write_text("<h1>Python</h1>", encoding="utf-8")
        with respx.mock:
            _serve_site()
            result = runner.invoke(
                app, ["scrape", "site", "python", "--source-dir", str(tree), "--jobs", "2"]
            )
        assert result.exit_code == 0, result.output
        assert "Site@1" in result.output
        assert "Python@3.12" in result.output


# ---------------------------------------------------------------------------
# page
# ---------------------------------------------------------------------------

class TestPage:
    def test_prints_page(self) -> None:
        with respx.mock:
            respx.get(_BASE + "a").mock(return_value=httpx.Response(200, html=_page("A", ["b"])))
            result = runner.invoke(app, ["page", "site", "a"])
        assert result.exit_code == 0, result.output
        assert "Title  : A" in result.stdout
        assert '<a href="b">' in result.stdout

    def test_fetch_error_exits_1(self) -> None:
        with respx.mock:
            respx.get(_BASE + "missing").mock(return_value=httpx.Response(404))
            result = runner.invoke(app, ["page", "site", "missing"])
        assert result.exit_code == 1
        assert "HTTP 404" in result.output

    def test_unknown_type(self) -> None:
        result = runner.invoke(app, ["page", "cobol", "x"])
        assert result.exit_code == 1


# ---------------------------------------------------------------------------
# export
# ---------------------------------------------------------------------------

class TestExport:
    def test_export_after_scrape(self, tmp_path: Path) -> None:
        with respx.mock:
            _serve_site()
            runner.invoke(app, ["scrape", "site"])

        out = tmp_path / "export"
        result = runner.invoke(app, ["export", "site", "--out", str(out)])
        assert result.exit_code == 0, result.output

        db = json.loads((out / "db.json").read_text(encoding="utf-8"))
        assert set(db) == {"index", "a"}
        index = json.loads((out / "index.json").read_text(encoding="utf-8"))
        assert {e["name"] for e in index["entries"]} == {"Home", "A"}
        assert index["types"] == [{"name": "Miscellaneous", "count": 2, "slug": "miscellaneous"}]

    def test_export_default_output_path(self, workspace: Path) -> None:
        with respx.mock:
            _serve_site()
            runner.invoke(app, ["scrape", "site"])
        result = runner.invoke(app, ["export", "site"])
        assert result.exit_code == 0, result.output
        assert (workspace / "docs" / "site" / "1" / "db.json").exists()

    def test_export_nothing_stored(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["export", "site", "--out", str(tmp_path)])
        assert result.exit_code == 1
        assert "no pages stored" in result.output
