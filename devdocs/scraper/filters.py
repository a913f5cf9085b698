"""Content filters: one transform each, composed by a :class:`Pipeline`.

Every filter implements ``apply(context, content) -> str`` and must not do
any network or disk I/O, so a pipeline is deterministic and each filter can
be tested on its own.  Filters pass derived data forward through
``context.scratch``:

============  =========================================
key           written by
============  =========================================
``title``     :class:`TextExtractor`
``text``      :class:`TextExtractor`
``links``     :class:`UrlNormalizer`
``entries``   :class:`IndexEntries`
============  =========================================
"""

from __future__ import annotations

import abc
import logging
import posixpath
import re
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Type

import trafilatura
from bs4 import BeautifulSoup, Comment

from devdocs.scraper.errors import FilterError
from devdocs.scraper.models import FilterSpec, FrontierEntry, IndexEntry, PageContext
from devdocs.scraper.urls import is_http_url, is_page_reference, resolve_href, split_fragment

logger = logging.getLogger(__name__)


def _parse(content: str) -> BeautifulSoup:
    return BeautifulSoup(content, "html.parser")


def relative_path(from_path: str, to_path: str) -> str:
    """Link target *to_path* as seen from the page stored at *from_path*."""
    start = posixpath.dirname(from_path) or "."
    rel = posixpath.relpath(to_path, start)
    if to_path.endswith("/") and not rel.endswith("/"):
        rel += "/"
    return rel


class Filter(abc.ABC):
    """A single content transform."""

    name = "filter"

    @abc.abstractmethod
    def apply(self, context: PageContext, content: str) -> str:
        """Return the transformed *content*.

        Raises:
            FilterError: The content cannot be transformed.
        """

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


# ---------------------------------------------------------------------------
# HtmlCleaner
# ---------------------------------------------------------------------------

class HtmlCleaner(Filter):
    """Remove non-content chrome.

    Args:
        container: CSS selector of the main content element.  When it
            matches, that element's children are kept inside a
            ``<div data-devdocs-content>`` wrapper; a document that already
            starts with the wrapper is not narrowed again.  A missing
            container is not an error: the whole document is cleaned.
        remove: Extra CSS selectors removed on top of the defaults.
        strip_attributes: Attributes dropped from every element
            (``class`` and ``style`` for most documentation sites).
        require_container: Raise :class:`FilterError` instead of falling
            back to the whole document when *container* does not match.

    Applying the cleaner to its own output changes nothing.
    """

    name = "clean_html"

    DEFAULT_REMOVE = ("script", "style", "link", "noscript", "iframe", "nav")
    MARKER = "data-devdocs-content"

    def __init__(
        self,
        container: Optional[str] = None,
        remove: Sequence[str] = (),
        strip_attributes: Sequence[str] = (),
        require_container: bool = False,
    ) -> None:
        self.container = container
        self.remove = tuple(self.DEFAULT_REMOVE) + tuple(remove)
        self.strip_attributes = tuple(strip_attributes)
        self.require_container = require_container

    def apply(self, context: PageContext, content: str) -> str:
        soup = _parse(content)

        root: Any = soup
        wrapper = soup.find(attrs={self.MARKER: True}, recursive=False)
        if wrapper is None and self.container:
            node = soup.select_one(self.container)
            if node is not None:
                root = _parse("")
                wrapper = root.new_tag("div", attrs={self.MARKER: ""})
                root.append(wrapper)
                for child in list(node.contents):
                    wrapper.append(child.extract())
            elif self.require_container:
                raise FilterError(f"container {self.container!r} not found")

        for comment in root.find_all(string=lambda s: isinstance(s, Comment)):
            comment.extract()

        for selector in self.remove:
            for element in root.select(selector):
                if element is not wrapper and not element.decomposed:
                    element.decompose()

        self._tag_code_languages(root)

        if self.strip_attributes:
            for tag in root.find_all(True):
                for attr in self.strip_attributes:
                    tag.attrs.pop(attr, None)

        return str(root)

    @staticmethod
    def _tag_code_languages(root: Any) -> None:
        """Copy ``language-*`` classes of code blocks to ``data-language``."""
        for pre in root.find_all("pre"):
            if pre.get("data-language"):
                continue
            candidates = [pre, *pre.find_all(class_=True)]
            for node in candidates:
                for cls in node.get("class") or ():
                    if cls.startswith("language-"):
                        pre["data-language"] = cls[len("language-"):]
                        break
                if pre.get("data-language"):
                    break


# ---------------------------------------------------------------------------
# UrlNormalizer
# ---------------------------------------------------------------------------

class UrlNormalizer(Filter):
    """Rewrite links for offline browsing.

    In-scope page links become paths relative to the current page; links
    outside the document, or excluded by its skip rules, become absolute
    external URLs.  Image sources are made absolute.
    """

    name = "normalize_urls"

    def apply(self, context: PageContext, content: str) -> str:
        soup = _parse(content)
        links: List[str] = []

        for anchor in soup.find_all("a", href=True):
            href = anchor["href"]
            if not is_page_reference(href):
                continue
            absolute = resolve_href(context.url, href)
            if not is_http_url(absolute):
                continue
            rewritten = self._rewrite(context, absolute)
            anchor["href"] = rewritten
            links.append(rewritten)

        for image in soup.find_all("img", src=True):
            src = image["src"]
            if is_page_reference(src):
                image["src"] = resolve_href(context.url, src)

        context.scratch["links"] = links
        return str(soup)

    @staticmethod
    def _rewrite(context: PageContext, absolute: str) -> str:
        url, fragment = split_fragment(absolute)
        suffix = f"#{fragment}" if fragment else ""
        spec = context.spec
        canonical = spec.canonical(url)
        if canonical is None or spec.is_skipped(canonical[1], canonical[2]):
            return absolute
        return relative_path(context.path, canonical[1]) + suffix


# ---------------------------------------------------------------------------
# TextExtractor
# ---------------------------------------------------------------------------

_TITLE_RE = re.compile(r"<title[^>]*>([^<]+)</title>", re.IGNORECASE)


def _extract_title(html: str) -> str:
    """Return the text content of the first ``<title>`` tag, or empty string."""
    match = _TITLE_RE.search(html)
    if match:
        return match.group(1).strip()
    return ""


def _bs4_text(html: str) -> str:
    """Readable text using ``<main>``/``<article>`` heuristics."""
    soup = _parse(html)
    for tag in soup(["script", "style", "nav", "footer", "header"]):
        tag.decompose()
    container = soup.find("main") or soup.find("article") or soup.body or soup
    return container.get_text(separator=" ", strip=True)


class TextExtractor(Filter):
    """Store the page title and readable text in ``context.scratch``.

    The title is the first ``<h1>``, else the raw document's ``<title>``,
    else the page path.  Text comes from ``trafilatura`` with a
    BeautifulSoup fallback for pages it returns nothing for.
    """

    name = "extract_text"

    def __init__(self, title_selector: str = "h1") -> None:
        self.title_selector = title_selector

    def apply(self, context: PageContext, content: str) -> str:
        soup = _parse(content)
        heading = soup.select_one(self.title_selector)
        title = heading.get_text(" ", strip=True) if heading is not None else ""
        context.scratch["title"] = title or _extract_title(context.raw) or context.path

        text = trafilatura.extract(
            content,
            include_links=False,
            include_images=False,
            include_tables=True,
            url=context.url,
        )
        context.scratch["text"] = text or _bs4_text(content)
        return content


# ---------------------------------------------------------------------------
# IndexEntries
# ---------------------------------------------------------------------------

class IndexEntries(Filter):
    """Produce the page's search-index entries.

    Args:
        types: Ordered mapping of entry type to name/path prefixes.  The
            first type with a prefix matching the entry name or the page
            path wins.
        default_type: Type used when nothing matches.
        headings: Also emit one entry per ``<h2 id=...>`` on the page.
        skip_root: Emit no default entry for the document's root page.
    """

    name = "index_entries"

    def __init__(
        self,
        types: Optional[Mapping[str, Iterable[str]]] = None,
        default_type: str = "Miscellaneous",
        headings: bool = False,
        skip_root: bool = True,
    ) -> None:
        self.types = {name: tuple(prefixes) for name, prefixes in (types or {}).items()}
        self.default_type = default_type
        self.headings = headings
        self.skip_root = skip_root

    def entry_type(self, name: str, path: str) -> str:
        for type_name, prefixes in self.types.items():
            if any(name.startswith(p) or path.startswith(p) for p in prefixes):
                return type_name
        return self.default_type

    def apply(self, context: PageContext, content: str) -> str:
        entries: List[IndexEntry] = []
        name = context.scratch.get("title") or context.path
        page_type = self.entry_type(name, context.path)

        if not (self.skip_root and context.path == context.spec.root_path):
            entries.append(IndexEntry(name=name, path=context.path, type=page_type))

        if self.headings:
            for heading in _parse(content).find_all("h2", id=True):
                label = heading.get_text(" ", strip=True)
                if label:
                    entries.append(
                        IndexEntry(name=f"{name}: {label}", path=f"{context.path}#{heading['id']}", type=page_type)
                    )

        context.scratch["entries"] = entries
        return content


# ---------------------------------------------------------------------------
# EntriesExtractor
# ---------------------------------------------------------------------------

class EntriesExtractor(Filter):
    """Discover candidate paths linked from a page.

    :meth:`extract` yields each in-scope, non-skipped link as a
    :class:`FrontierEntry` (``replace_paths`` already applied).  The
    generator is single-pass and holds no state across pages;
    deduplication is the frontier's job.  Inside a pipeline the filter is a
    no-op.
    """

    name = "entries"

    def __init__(self, selector: str = "a[href]") -> None:
        self.selector = selector

    def extract(self, context: PageContext, content: str) -> Iterator[FrontierEntry]:
        spec = context.spec
        for anchor in _parse(content).select(self.selector):
            href = anchor.get("href")
            if not href or not is_page_reference(href):
                continue
            url, _ = split_fragment(resolve_href(context.url, href))
            canonical = spec.canonical(url)
            if canonical is None:
                continue
            base_url, path, canonical_url = canonical
            if spec.is_skipped(path, canonical_url):
                continue
            yield FrontierEntry(path=path, url=canonical_url, base_url=base_url, referrer=context.path)

    def apply(self, context: PageContext, content: str) -> str:
        return content


# ---------------------------------------------------------------------------
# Name -> filter construction
# ---------------------------------------------------------------------------

FILTERS: Dict[str, Type[Filter]] = {
    HtmlCleaner.name: HtmlCleaner,
    UrlNormalizer.name: UrlNormalizer,
    TextExtractor.name: TextExtractor,
    IndexEntries.name: IndexEntries,
    EntriesExtractor.name: EntriesExtractor,
}


def build_filter(filter_spec: FilterSpec) -> Filter:
    """Instantiate the filter named by *filter_spec* with its options.

    Raises:
        KeyError: Unknown filter name.
    """
    try:
        cls = FILTERS[filter_spec.name]
    except KeyError:
        raise KeyError(f"unknown filter {filter_spec.name!r}") from None
    return cls(**filter_spec.options)
