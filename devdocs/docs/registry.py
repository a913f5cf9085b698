"""Static registry of documentation types.

A doc type is configuration, not code: the crawl policy and the ordered
filter list of one documentation site.  :func:`register` adds a type at
runtime; :mod:`devdocs.docs.factory` turns a type into a ready scraper.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, KeysView, Mapping, Optional, Tuple

from devdocs.scraper.models import DocumentSpec, FilterSpec


@dataclass(frozen=True)
class DocType:
    """Everything needed to build a :class:`DocumentSpec` for one site.

    Args:
        type_id: Registry key (``"babel"``).
        name: Display name.
        kind: ``"url"`` to crawl over HTTP, ``"file"`` to read a local tree.
        versions: Version alias -> release, e.g. ``{"6": "6.26.1"}``.
        default_version: Alias used when none (or an unknown one) is given.
        spec: Extra :class:`DocumentSpec` fields.
        filters: Ordered ``(filter name, options)`` pairs.
    """

    type_id: str
    name: str
    kind: str = "url"
    versions: Mapping[str, str] = field(default_factory=dict)
    default_version: str = ""
    spec: Mapping[str, Any] = field(default_factory=dict)
    filters: Tuple[Tuple[str, Mapping[str, Any]], ...] = ()

    def resolve_version(self, version: Optional[str] = None) -> Tuple[str, str]:
        """Map a requested version to ``(version, release)``.

        Known aliases and releases resolve to themselves; anything else
        falls back to the default version.  A type that declares no
        versions takes whatever it is given.
        """
        if not self.versions:
            resolved = version or self.default_version
            return resolved, resolved
        if version and version in self.versions:
            return version, self.versions[version]
        if version and version in self.versions.values():
            alias = next(a for a, r in self.versions.items() if r == version)
            return alias, version
        default = self.default_version
        return default, self.versions.get(default, default)

    def document_spec(self, version: Optional[str] = None, **overrides: Any) -> DocumentSpec:
        resolved, release = self.resolve_version(version)
        fields = dict(self.spec)
        fields.update({k: v for k, v in overrides.items() if v is not None})
        return DocumentSpec(
            name=self.name,
            version=resolved,
            slug=self.type_id,
            release=release,
            filters=tuple(FilterSpec(name, dict(options)) for name, options in self.filters),
            **fields,
        )


# ---------------------------------------------------------------------------
# Built-in types
# ---------------------------------------------------------------------------

_MDN_CHROME = ("header", "footer", ".article-actions", ".section-edit",
               ".documentation-actions", ".metadata-container", ".sidebar")

BABEL = DocType(
    type_id="babel",
    name="Babel",
    versions={"6": "6.26.1", "7": "7.21.4"},
    default_version="7",
    spec={
        "base_urls": ("https://babeljs.io/docs/",),
        "trailing_slash": True,
        "skip_patterns": (
            r"usage/.*", r"configuration/.*", r"learn/.*", r"v7-migration/.*",
            r"v7-migration-api/.*", r"editors/.*", r"presets/.*", r"caveats/.*",
            r"faq/.*", r"roadmap/.*",
        ),
        "skip_links": ("https://babeljs.io/docs/en/",),
        "attribution": "© 2014-present Sebastian McKenzie<br>Licensed under the MIT License.",
        "links": (("home", "https://babeljs.io/"), ("code", "https://github.com/babel/babel")),
    },
    filters=(
        ("clean_html", {
            "container": ".theme-doc-markdown",
            "remove": (".fixedHeaderContainer", ".toc", ".toc-headings", ".nav-footer", ".docs-prevnext"),
            "strip_attributes": ("class", "style"),
        }),
        ("normalize_urls", {}),
        ("extract_text", {}),
        ("index_entries", {
            "types": {
                "Usage": ("Options", "Plugins", "Config Files", "Compiler assumptions", "@babel/cli",
                          "@babel/polyfill", "@babel/plugin-transform-runtime", "@babel/register"),
                "Presets": ("@babel/preset",),
                "Tooling": ("@babel/parser", "@babel/core", "@babel/generator", "@babel/code-frame",
                            "@babel/helper", "@babel/runtime", "@babel/template", "@babel/traverse",
                            "@babel/types", "@babel/standalone"),
                "Other Plugins": ("babel-plugin",),
            },
        }),
    ),
)

JAVASCRIPT = DocType(
    type_id="javascript",
    name="JavaScript",
    versions={"latest": "ES2023"},
    default_version="latest",
    spec={
        "base_urls": ("https://developer.mozilla.org/en-US/docs/Web/JavaScript/Reference/",),
        "skip_paths": ("/Global_Objects", "/Operators", "/Statements"),
        "skip_patterns": (r"/additional_examples", r"/noSuchMethod", r"/Deprecated_and_obsolete_features"),
        "replace_paths": {
            "template_strings": "Template_literals",
            "default_parameters": "Default_parameters",
            "rest_parameters": "Rest_parameters",
            "spread_operator": "Spread_syntax",
            "destructuring_assignment": "Destructuring_assignment",
        },
        "attribution": "© 2005–2023 MDN contributors.\n"
                       "Licensed under the Creative Commons Attribution-ShareAlike License v2.5 or later.",
        "links": (
            ("home", "https://developer.mozilla.org/en-US/docs/Web/JavaScript"),
            ("code", "https://github.com/mdn/content/tree/main/files/en-us/web/javascript"),
        ),
    },
    filters=(
        ("clean_html", {"container": "#content > .main-page-content", "remove": _MDN_CHROME}),
        ("normalize_urls", {}),
        ("extract_text", {}),
        ("index_entries", {
            "types": {
                "Statements": ("Statements/",),
                "Operators": ("Operators/",),
                "Functions": ("Functions/",),
                "Objects": ("Global_Objects/", "Classes/"),
            },
            "default_type": "Others",
        }),
    ),
)

HTML = DocType(
    type_id="html",
    name="HTML",
    versions={"latest": "latest"},
    default_version="latest",
    spec={
        "base_urls": ("https://developer.mozilla.org/en-US/docs/Web/HTML/",),
        "initial_paths": ("index", "Element", "Global_attributes"),
        "attribution": "© 2005–2023 MDN contributors.\n"
                       "Licensed under the Creative Commons Attribution-ShareAlike License v2.5 or later.",
    },
    filters=(
        ("clean_html", {"container": "#content > .main-page-content", "remove": _MDN_CHROME}),
        ("normalize_urls", {}),
        ("extract_text", {}),
        ("index_entries", {
            "types": {
                "Miscellaneous": ("CORS", "Using"),
                "Attributes": ("Global_attr",),
                "Elements": ("Element/",),
            },
            "headings": True,
        }),
    ),
)

CSS = DocType(
    type_id="css",
    name="CSS",
    versions={"latest": "latest"},
    default_version="latest",
    spec={
        "base_urls": ("https://developer.mozilla.org/en-US/docs/Web/CSS/",),
        "initial_paths": ("index", "Reference", "Selectors"),
    },
    filters=(
        ("clean_html", {"container": "#content > .main-page-content", "remove": ("footer",)}),
        ("normalize_urls", {}),
        ("extract_text", {}),
    ),
)

PYTHON = DocType(
    type_id="python",
    name="Python",
    kind="file",
    versions={"3.12": "3.12", "3.11": "3.11"},
    default_version="3.12",
    spec={
        "base_urls": ("https://docs.python.org/3/",),
        "skip_paths": ("_sources", "_static", "genindex", "search", "py-modindex"),
        "attribution": "© 2001–2023 Python Software Foundation<br>"
                       "Licensed under the PSF License.",
    },
    filters=(
        ("clean_html", {
            "container": ".body",
            "remove": (".headerlink", ".related", ".sphinxsidebar", "#searchbox"),
        }),
        ("normalize_urls", {}),
        ("extract_text", {}),
        ("index_entries", {
            "types": {"Library": ("library/",), "Reference": ("reference/",), "Tutorial": ("tutorial/",)},
            "default_type": "Guides",
        }),
    ),
)


_REGISTRY: Dict[str, DocType] = {}


def register(doc_type: DocType) -> DocType:
    """Add (or replace) *doc_type* in the registry and return it."""
    if doc_type.kind not in ("url", "file"):
        raise ValueError(f"{doc_type.type_id}: unknown scraper kind {doc_type.kind!r}")
    _REGISTRY[doc_type.type_id] = doc_type
    return doc_type


def get(type_id: str) -> Optional[DocType]:
    return _REGISTRY.get(type_id)


def available_scrapers() -> KeysView[str]:
    """Live view of the registered type ids.

    Iterating the view is finite and can be restarted any number of times.
    """
    return _REGISTRY.keys()


for _doc_type in (BABEL, HTML, JAVASCRIPT, CSS, PYTHON):
    register(_doc_type)
