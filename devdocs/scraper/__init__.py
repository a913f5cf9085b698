"""Scraper package: crawl loop, content sources and filters."""

from devdocs.scraper.base import Scraper
from devdocs.scraper.errors import (
    DecodeError,
    FetchError,
    FetchTimeout,
    FileIOError,
    FilterError,
    HttpStatusError,
    InvalidSpecError,
    NotFoundError,
    PathTraversalError,
    PipelineError,
    RunError,
    ScrapeCancelled,
    StoreError,
    StoreUnavailableError,
)
from devdocs.scraper.file_scraper import FileScraper
from devdocs.scraper.models import DocumentSpec, FilterSpec, ScrapedPage, ScrapeReport
from devdocs.scraper.pipeline import Pipeline
from devdocs.scraper.url_scraper import UrlScraper

__all__ = [
    "Scraper",
    "UrlScraper",
    "FileScraper",
    "Pipeline",
    "DocumentSpec",
    "FilterSpec",
    "ScrapedPage",
    "ScrapeReport",
    "FetchError",
    "HttpStatusError",
    "FetchTimeout",
    "DecodeError",
    "NotFoundError",
    "FileIOError",
    "PathTraversalError",
    "FilterError",
    "PipelineError",
    "StoreError",
    "RunError",
    "InvalidSpecError",
    "StoreUnavailableError",
    "ScrapeCancelled",
]
