"""Centralised settings for uniscope.

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


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Workspace / storage
    # ------------------------------------------------------------------
    workspace_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("UNISCOPE_WORKSPACE", Path.home() / ".uniscope_data")
        )
    )

    @property
    def db_path(self) -> Path:
        """Absolute path to the SQLite database file."""
        return self.workspace_dir / "uniscope.db"

    @property
    def schema_path(self) -> Path:
        """Absolute path to the schema SQL file bundled with the package."""
        return Path(__file__).resolve().parent / "db" / "schema.sql"

    # ------------------------------------------------------------------
    # Target organisation
    # ------------------------------------------------------------------
    target_domain: str = field(
        default_factory=lambda: os.environ.get("TARGET_DOMAIN", "gtu.edu.tr")
    )
    start_url: str = field(
        default_factory=lambda: os.environ.get("START_URL", "https://www.gtu.edu.tr/en")
    )
    default_query: str = field(
        default_factory=lambda: os.environ.get("DEFAULT_QUERY", "Gebze Teknik Üniversitesi")
    )

    # ------------------------------------------------------------------
    # Fetch layer
    # ------------------------------------------------------------------
    user_agent: str = field(
        default_factory=lambda: os.environ.get(
            "USER_AGENT",
            "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
            "AppleWebKit/537.36 (KHTML, like Gecko) "
            "Chrome/120.0.0.0 Safari/537.36",
        )
    )
    accept_language: str = field(
        default_factory=lambda: os.environ.get(
            "ACCEPT_LANGUAGE", "tr-TR,tr;q=0.9,en-US;q=0.8,en;q=0.7"
        )
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "20.0"))
    )
    max_redirects: int = field(
        default_factory=lambda: int(os.environ.get("MAX_REDIRECTS", "5"))
    )
    fetch_attempts: int = field(
        default_factory=lambda: int(os.environ.get("FETCH_ATTEMPTS", "3"))
    )
    static_backoff: float = field(
        default_factory=lambda: float(os.environ.get("STATIC_BACKOFF", "2.0"))
    )
    browser_backoff: float = field(
        default_factory=lambda: float(os.environ.get("BROWSER_BACKOFF", "3.0"))
    )
    browser_timeout: float = field(
        default_factory=lambda: float(os.environ.get("BROWSER_TIMEOUT", "30.0"))
    )
    render_settle_delay: float = field(
        default_factory=lambda: float(os.environ.get("RENDER_SETTLE_DELAY", "2.0"))
    )

    # ------------------------------------------------------------------
    # Politeness delays (seconds)
    # ------------------------------------------------------------------
    crawl_delay: float = field(
        default_factory=lambda: float(os.environ.get("CRAWL_DELAY", "1.0"))
    )
    extract_delay: float = field(
        default_factory=lambda: float(os.environ.get("EXTRACT_DELAY", "2.0"))
    )
    search_delay: float = field(
        default_factory=lambda: float(os.environ.get("SEARCH_DELAY", "3.0"))
    )
    search_retry_max: int = field(
        default_factory=lambda: int(os.environ.get("SEARCH_RETRY_MAX", "3"))
    )
    search_retry_base_delay: float = field(
        default_factory=lambda: float(os.environ.get("SEARCH_RETRY_BASE_DELAY", "2.0"))
    )

    # ------------------------------------------------------------------
    # Crawl defaults
    # ------------------------------------------------------------------
    crawl_max_depth: int = field(
        default_factory=lambda: int(os.environ.get("CRAWL_MAX_DEPTH", "2"))
    )
    crawl_max_pages: int = field(
        default_factory=lambda: int(os.environ.get("CRAWL_MAX_PAGES", "50"))
    )

    # ------------------------------------------------------------------
    # NLP
    # ------------------------------------------------------------------
    default_language: str = field(
        default_factory=lambda: os.environ.get("DEFAULT_LANGUAGE", "tr")
    )
    batch_limit: int = field(
        default_factory=lambda: int(os.environ.get("BATCH_LIMIT", "50"))
    )

    def ensure_workspace(self) -> None:
        """Create the workspace directory if it does not exist."""
        self.workspace_dir.mkdir(parents=True, exist_ok=True)


# Module-level singleton, import this everywhere:
#   from uniscope.config import settings
settings = Settings()
