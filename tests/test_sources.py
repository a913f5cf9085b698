"""Tests for content sources.

Mocking strategy:
- ``respx`` patches ``httpx`` at the transport layer so ``HttpSource`` never
  touches the network.  Redirects are followed by httpx itself, through the
  mocked routes.
- ``FileSource`` runs against a real directory under ``tmp_path``.
"""

from __future__ import annotations

import os
from pathlib import Path

import httpx
import pytest
import respx

from devdocs.config import settings
from devdocs.scraper.errors import (
    DecodeError,
    FetchError,
    FetchTimeout,
    HttpStatusError,
    NotFoundError,
    PathTraversalError,
)
from devdocs.scraper.sources import FileSource, HttpSource, _sniff_charset


_PAGE = "<html><head><title>Page</title></head><body><h1>Hello</h1></body></html>"


# ---------------------------------------------------------------------------
# HttpSource
# ---------------------------------------------------------------------------

class TestHttpSource:
    def test_successful_fetch(self) -> None:
        with respx.mock:
            respx.get("https://docs.test/docs/a").mock(return_value=httpx.Response(200, html=_PAGE))
            with HttpSource() as source:
                raw = source.fetch("https://docs.test/docs/a")

        assert raw.url == "https://docs.test/docs/a"
        assert raw.effective_url == "https://docs.test/docs/a"
        assert raw.status_code == 200
        assert raw.is_html
        assert "<h1>Hello</h1>" in raw.text

    def test_relative_path_joined_to_base(self) -> None:
        with respx.mock:
            route = respx.get("https://docs.test/docs/Element/div").mock(
                return_value=httpx.Response(200, html=_PAGE)
            )
            with HttpSource() as source:
                source.fetch("Element/div", base_url="https://docs.test/docs/")
        assert route.call_count == 1

    def test_sends_user_agent(self) -> None:
        with respx.mock:
            route = respx.get("https://docs.test/docs/a").mock(return_value=httpx.Response(200, html=_PAGE))
            with HttpSource() as source:
                source.fetch("https://docs.test/docs/a")
        assert route.calls.last.request.headers["user-agent"] == settings.user_agent

    def test_non_2xx_raises_status_error(self) -> None:
        with respx.mock:
            respx.get("https://docs.test/docs/missing").mock(return_value=httpx.Response(404, text="nope"))
            with HttpSource() as source:
                with pytest.raises(HttpStatusError) as exc_info:
                    source.fetch("https://docs.test/docs/missing")
        assert exc_info.value.status == 404
        assert exc_info.value.stage == "fetch"
        assert "docs/missing" in str(exc_info.value)

    def test_timeout_raises_fetch_timeout(self) -> None:
        with respx.mock:
            respx.get("https://docs.test/docs/slow").mock(side_effect=httpx.ReadTimeout("slow"))
            with HttpSource(timeout=2) as source:
                with pytest.raises(FetchTimeout, match="2s"):
                    source.fetch("https://docs.test/docs/slow")

    def test_transport_error_raises_fetch_error(self) -> None:
        with respx.mock:
            respx.get("https://docs.test/docs/down").mock(side_effect=httpx.ConnectError("refused"))
            with HttpSource() as source:
                with pytest.raises(FetchError, match="transport error"):
                    source.fetch("https://docs.test/docs/down")

    def test_redirect_followed(self) -> None:
        with respx.mock:
            respx.get("https://docs.test/docs/old").mock(
                return_value=httpx.Response(301, headers={"Location": "https://docs.test/docs/new"})
            )
            respx.get("https://docs.test/docs/new").mock(return_value=httpx.Response(200, html=_PAGE))
            with HttpSource() as source:
                raw = source.fetch("https://docs.test/docs/old")
        assert raw.url == "https://docs.test/docs/old"
        assert raw.effective_url == "https://docs.test/docs/new"

    def test_redirect_loop_bounded(self) -> None:
        with respx.mock:
            respx.get("https://docs.test/docs/a").mock(
                return_value=httpx.Response(302, headers={"Location": "https://docs.test/docs/b"})
            )
            respx.get("https://docs.test/docs/b").mock(
                return_value=httpx.Response(302, headers={"Location": "https://docs.test/docs/a"})
            )
            with HttpSource(max_redirects=3) as source:
                with pytest.raises(FetchError, match="more than 3 redirects"):
                    source.fetch("https://docs.test/docs/a")

    def test_declared_charset_used(self) -> None:
        body = "<html><body><h1>Café</h1></body></html>".encode("iso-8859-1")
        with respx.mock:
            respx.get("https://docs.test/docs/latin").mock(
                return_value=httpx.Response(
                    200, content=body, headers={"Content-Type": "text/html; charset=iso-8859-1"}
                )
            )
            with HttpSource() as source:
                raw = source.fetch("https://docs.test/docs/latin")
        assert "Café" in raw.text

    def test_undecodable_body_raises_decode_error(self) -> None:
        with respx.mock:
            respx.get("https://docs.test/docs/bad").mock(
                return_value=httpx.Response(200, content=b"<p>\xff\xfe\xfa</p>", headers={"Content-Type": "text/html"})
            )
            with HttpSource() as source:
                with pytest.raises(DecodeError, match="utf-8"):
                    source.fetch("https://docs.test/docs/bad")

    def test_injected_client_not_closed(self) -> None:
        client = httpx.Client()
        source = HttpSource(client=client)
        source.close()
        assert client.is_closed is False
        client.close()


class TestSniffCharset:
    def test_meta_charset(self) -> None:
        assert _sniff_charset(b'<html><head><meta charset="Shift_JIS"></head>') == "shift_jis"

    def test_http_equiv(self) -> None:
        data = b'<meta http-equiv="Content-Type" content="text/html; charset=windows-1252">'
        assert _sniff_charset(data) == "windows-1252"

    def test_none(self) -> None:
        assert _sniff_charset(b"<html></html>") is None


# ---------------------------------------------------------------------------
# FileSource
# ---------------------------------------------------------------------------

@pytest.fixture()
def tree(tmp_path: Path) -> Path:
    root = tmp_path / "root"
    (root / "guide").mkdir(parents=True)
    (root / "index.html").write_text(_PAGE, encoding="utf-8")
    (root / "guide" / "intro.html").write_text(_PAGE, encoding="utf-8")
    (root / "latin.html").write_bytes(
        b'<html><head><meta charset="iso-8859-1"></head><body>Caf\xe9</body></html>'
    )
    (root / "broken.html").write_bytes(b"<p>\xff\xfe\xfa</p>")
    (tmp_path / "secret.html").write_text("secret", encoding="utf-8")
    return root


class TestFileSource:
    def test_reads_file(self, tree: Path) -> None:
        raw = FileSource(tree).fetch("guide/intro.html")
        assert "<h1>Hello</h1>" in raw.text
        assert raw.is_html

    def test_missing_file(self, tree: Path) -> None:
        with pytest.raises(NotFoundError):
            FileSource(tree).fetch("guide/missing.html")

    def test_directory_is_not_a_file(self, tree: Path) -> None:
        with pytest.raises(NotFoundError):
            FileSource(tree).fetch("guide")

    def test_dot_dot_traversal_refused(self, tree: Path) -> None:
        with pytest.raises(PathTraversalError):
            FileSource(tree).fetch("../secret.html")

    def test_absolute_path_stays_under_root(self, tree: Path) -> None:
        raw = FileSource(tree).fetch("/index.html")
        assert "Hello" in raw.text

    def test_symlink_escaping_root_refused(self, tree: Path) -> None:
        os.symlink(tree.parent / "secret.html", tree / "leak.html")
        with pytest.raises(PathTraversalError):
            FileSource(tree).fetch("leak.html")

    def test_sniffed_charset(self, tree: Path) -> None:
        assert "Café" in FileSource(tree).fetch("latin.html").text

    def test_undecodable_file(self, tree: Path) -> None:
        with pytest.raises(DecodeError):
            FileSource(tree).fetch("broken.html")
