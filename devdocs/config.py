"""Centralised settings for the devdocs scraper.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Workspace / storage
    # ------------------------------------------------------------------
    workspace_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("DEVDOCS_WORKSPACE", Path.home() / ".devdocs_data")
        )
    )

    @property
    def db_path(self) -> Path:
        """Absolute path to the SQLite page database."""
        return self.workspace_dir / "devdocs.db"

    @property
    def docs_dir(self) -> Path:
        """Directory that exported ``db.json`` / ``index.json`` files land in."""
        return self.workspace_dir / "docs"

    @property
    def sources_dir(self) -> Path:
        """Default parent directory of local documentation trees."""
        return self.workspace_dir / "sources"

    @property
    def schema_path(self) -> Path:
        """Absolute path to the schema SQL file bundled with the package."""
        return Path(__file__).resolve().parent / "db" / "schema.sql"

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )
    max_redirects: int = field(
        default_factory=lambda: int(os.environ.get("MAX_REDIRECTS", "10"))
    )
    user_agent: str = field(
        default_factory=lambda: os.environ.get(
            "USER_AGENT", "Mozilla/5.0 (compatible; DevDocs-Scraper/1.0)"
        )
    )
    min_request_interval: float = field(
        default_factory=lambda: float(os.environ.get("MIN_REQUEST_INTERVAL", "0.1"))
    )

    # ------------------------------------------------------------------
    # Runs
    # ------------------------------------------------------------------
    scrape_jobs: int = field(
        default_factory=lambda: int(os.environ.get("SCRAPE_JOBS", "2"))
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO")
    )
    log_json: bool = field(default_factory=lambda: _env_bool("LOG_JSON", "false"))

    def ensure_workspace(self) -> None:
        """Create the workspace directory if it does not exist."""
        self.workspace_dir.mkdir(parents=True, exist_ok=True)


# Module-level singleton, import this everywhere:
#   from devdocs.config import settings
settings = Settings()
