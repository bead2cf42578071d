"""
Application settings loaded from environment variables.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator


class Settings(BaseSettings):
    """Application configuration from environment."""

    # Frontend URL for CORS
    frontend_url: str = "http://localhost:3000"

    # Logging
    log_level: str = "INFO"

    # Output - combined JSON documents are written here unless the caller overrides it
    output_dir: str = "data"

    # Batch orchestration
    concurrency: int = 6  # Parallel pages per chunk
    chunk_size: int = 100  # Items per chunk (chunks run one after another)
    restart_every: int = 200  # Relaunch the browser after N processed items
    per_item_retries: int = 2  # Retries for resolve+scrape (attempts = retries + 1)
    retry_base_delay: float = 0.4  # Backoff before retry N is base + step * N
    retry_step_delay: float = 0.4
    polite_delay: float = 0.2  # Delay between items inside a worker
    chunk_pause: float = 0.5  # Pause between chunks

    # Scrape limits
    default_scrape_limit: int = 200  # Used when the caller gives no usable limit
    max_scrape_limit: int = 2000  # Hard ceiling regardless of caller input

    # Browser (Playwright) settings
    headless: bool = True
    navigation_timeout: float = 45.0  # Per navigation (seconds)
    resolve_settle_delay: float = 1.2  # Wait after DOMContentLoaded for JS redirects

    # Article fetch settings
    article_fetch_timeout: float = 60.0  # Individual article fetch timeout (seconds)
    max_redirects: int = 7

    # Google News RSS search
    feed_timeout: float = 20.0
    feed_language: str = "bn"  # hl
    feed_country: str = "BD"  # gl
    feed_year_delay: float = 0.25  # Delay between year-wise feed requests
    default_search_limit: int = 50  # Items returned by /search when no usable limit is given
    resolved_search_delay: float = 0.15  # Delay between links in /resolved-search

    # Direct scrape (no browser)
    direct_scrape_delay: float = 0.3  # Delay between URLs in /scrape

    @field_validator("concurrency", "chunk_size", "restart_every", mode="before")
    @classmethod
    def at_least_one(cls, v) -> int:
        """Worker counts and batch sizes must be positive."""
        v = int(v)
        if v < 1:
            raise ValueError("must be >= 1")
        return v

    @field_validator("per_item_retries", mode="before")
    @classmethod
    def non_negative_retries(cls, v) -> int:
        v = int(v)
        if v < 0:
            raise ValueError("must be >= 0")
        return v

    @property
    def feed_ceid(self) -> str:
        """Google News edition id, e.g. "BD:bn"."""
        return f"{self.feed_country}:{self.feed_language}"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )


# Create settings instance at import time (singleton pattern)
# All code should import: from ..config.settings import settings
settings = Settings()
