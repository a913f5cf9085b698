"""Build ready-to-run scrapers from registered doc types."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

from devdocs.config import settings
from devdocs.docs import registry
from devdocs.scraper.base import Scraper
from devdocs.scraper.file_scraper import FileScraper
from devdocs.scraper.filters import build_filter
from devdocs.scraper.models import DocumentSpec
from devdocs.scraper.pipeline import Pipeline
from devdocs.scraper.url_scraper import UrlScraper

logger = logging.getLogger(__name__)


def build_pipeline(spec: DocumentSpec) -> Pipeline:
    """Instantiate the document's filters, in declaration order."""
    return Pipeline(spec.slug, [build_filter(f) for f in spec.filters])


def create(
    type_id: str,
    version: Optional[str] = None,
    *,
    output_path: Union[str, Path, None] = None,
    source_dir: Union[str, Path, None] = None,
) -> Optional[Scraper]:
    """Return a configured scraper for *type_id*, or ``None`` if unknown.

    Args:
        type_id: A key of :func:`available_scrapers`.
        version: Version alias or release; the type's default when omitted.
        output_path: Where exports go.  Defaults to
            ``settings.docs_dir/<type>/<version>``.
        source_dir: Local tree for file-based types.  Defaults to
            ``settings.sources_dir/<type>``.
    """
    doc_type = registry.get(type_id)
    if doc_type is None:
        logger.debug("Unknown doc type %r", type_id)
        return None

    resolved, _ = doc_type.resolve_version(version)
    if output_path is None:
        output_path = settings.docs_dir / type_id / resolved
    if doc_type.kind == "file" and source_dir is None:
        source_dir = settings.sources_dir / type_id

    spec = doc_type.document_spec(
        version,
        output_path=str(output_path),
        source_dir=str(source_dir) if source_dir is not None else None,
    )
    pipeline = build_pipeline(spec)

    if doc_type.kind == "file":
        return FileScraper(spec, pipeline)
    return UrlScraper(spec, pipeline)


def available_scrapers():
    """Registered type ids (see :func:`devdocs.docs.registry.available_scrapers`)."""
    return registry.available_scrapers()


register = registry.register
