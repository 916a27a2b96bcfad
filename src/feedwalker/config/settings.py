"""Library settings loaded from environment variables.

Uses Pydantic Settings v2 for validated, type-safe configuration.  Every
variable is read with the ``FEEDWALKER_`` prefix, e.g.
``FEEDWALKER_RETRY_MAX_ATTEMPTS=5``.

Usage::

    from feedwalker.config.settings import get_settings

    settings = get_settings()
    policy = RetryPolicy.from_settings(settings)
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library-wide configuration backed by environment variables and an optional .env file.

    Every field has a default, so the library works without any environment
    set up.  Credentials are not part of these settings: authentication is
    configured on the ``httpx.AsyncClient`` handed to the HTTP fetcher.
    """

    model_config = SettingsConfigDict(
        env_prefix="FEEDWALKER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    api_base_url: str = "https://api.twitter.com/1.1"
    """Base URL that endpoint paths are appended to by the HTTP fetcher."""

    request_timeout: float = Field(default=30.0, gt=0)
    """Timeout in seconds for the fetcher's default ``httpx.AsyncClient``."""

    # ------------------------------------------------------------------
    # Paging
    # ------------------------------------------------------------------

    cursor_page_size: int = Field(default=20, ge=1)
    """Default number of items requested per cursor-walker page."""

    timeline_page_size: int = Field(default=20, ge=1)
    """Default number of items requested per ID-timeline page."""

    # ------------------------------------------------------------------
    # Retry / backoff
    # ------------------------------------------------------------------

    retry_max_attempts: int = Field(default=3, ge=1)
    """Total attempts per page fetch, the first try included.  ``1`` disables retries."""

    retry_base_delay: float = Field(default=1.0, ge=0)
    """Backoff before the first transient retry; doubled on each further attempt."""

    retry_max_delay: float = Field(default=30.0, ge=0)
    """Upper bound on a single transient backoff delay."""

    rate_limit_max_wait: float = Field(default=900.0, ge=0)
    """Longest rate-limit wait (seconds) absorbed internally.

    A reset further away than this is surfaced to the caller instead.  The
    default matches the 15-minute rate-limit window of the upstream API.
    """

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    log_level: str = "INFO"
    """Logging verbosity.  One of: DEBUG, INFO, WARNING, ERROR, CRITICAL."""


@lru_cache
def get_settings() -> Settings:
    """Return the cached settings singleton.

    Pydantic Settings reads the environment and .env file exactly once per
    process.  In tests, call ``get_settings.cache_clear()`` after patching
    environment variables.

    Returns:
        Settings: The validated settings object.
    """
    return Settings()
