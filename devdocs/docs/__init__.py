"""Documentation types and the scraper factory."""

from devdocs.docs.factory import available_scrapers, build_pipeline, create, register
from devdocs.docs.registry import DocType

__all__ = ["available_scrapers", "build_pipeline", "create", "register", "DocType"]
