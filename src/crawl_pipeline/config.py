"""Centralized configuration for crawl-pipeline using Pydantic Settings."""

from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; CrawlPipelineBot/1.0)"


class Settings(BaseSettings):
    """Strictly typed configuration loaded from environment variables.

    Constructed once by the caller and handed to ``build_pipeline``; nothing in the
    package reads the environment on its own.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    # Fetch settings
    fetch_timeout_ms: int = Field(default=15000, ge=1, description="Hard timeout for a single outbound GET")
    user_agent: str = Field(default=DEFAULT_USER_AGENT, description="User-Agent sent with every fetch")
    http_max_connections: int = Field(default=20, ge=1, description="Connection pool size of the shared client")
    follow_redirects: bool = Field(default=True, description="Let the HTTP client follow redirects")

    # Sitemap settings
    max_visited_urls: int = Field(
        default=1000, ge=1, description="Ceiling on URLs returned across one recursive sitemap parse"
    )

    # Cache settings
    cache_ttl_seconds: int = Field(default=86400, ge=60, description="TTL for cached pipeline responses")
    enable_read_cache: bool = Field(default=True, description="Cache read responses")
    enable_links_cache: bool = Field(default=True, description="Cache links responses")
    cache_backend: Literal["memory", "filesystem"] = Field(default="memory", description="Cache store backend")
    cache_dir: Path = Field(default=Path(".crawl-cache"), description="Directory for the filesystem cache store")
    cache_put_attempts: int = Field(default=3, ge=1, description="Attempts for a cache write before giving up")
    cache_put_backoff_ms: int = Field(default=100, ge=0, description="Initial backoff between cache write attempts")

    # Retry settings
    retry_times: int = Field(default=3, ge=1, description="Maximum attempts for authenticated requests")

    # Auth session service
    auth_base_url: str = Field(default="", description="Primary auth service base URL")
    auth_fallback_url: str = Field(default="", description="HTTP fallback auth base URL")
    auth_timeout_ms: int = Field(default=5000, ge=1, description="Timeout for a session lookup")

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=False, description="Emit structured JSON logs")

    @model_validator(mode="after")
    def _check_log_level(self) -> "Settings":
        if self.log_level.upper() not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level: {self.log_level}")
        return self

    def cache_enabled_for(self, kind: str) -> bool:
        """Return whether caching is switched on for an operation kind ("read" or "links")."""
        if kind == "read":
            return self.enable_read_cache
        if kind == "links":
            return self.enable_links_cache
        return False

    def auth_session_urls(self) -> list[str]:
        """Session endpoints in the order they should be tried."""
        urls = []
        for base in (self.auth_base_url, self.auth_fallback_url):
            if base:
                urls.append(f"{base.rstrip('/')}/api/auth/get-session")
        return urls
