"""Application settings loaded from environment variables.

Uses Pydantic Settings v2 for validated, type-safe configuration.  Every
variable is prefixed with ``WAYBACK_`` and may also be set in a ``.env``
file in the working directory.  Command-line options override these values
for a single run.

Usage::

    from wayback_archiver.config.settings import get_settings

    settings = get_settings()
    policy = settings.retry_policy()
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from wayback_archiver.archive.config import (
    DEFAULT_USER_AGENT,
    WB_BACKOFF_DECAY_PERCENT,
    WB_INITIAL_BACKOFF_SECONDS,
    WB_JITTER_BASE_SECONDS,
    WB_MAX_RETRIES,
    WB_REQUEST_TIMEOUT,
    WB_SAVE_URL,
    WB_TIMEMAP_URL,
)
from wayback_archiver.core.descriptor import RetryPolicy

_LOG_LEVELS: frozenset[str] = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class Settings(BaseSettings):
    """Client configuration backed by environment variables and an optional .env file."""

    model_config = SettingsConfigDict(
        env_prefix="WAYBACK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    save_endpoint: str = WB_SAVE_URL
    """Save Page Now endpoint; the target URL is appended verbatim."""

    timemap_endpoint: str = WB_TIMEMAP_URL
    """Timemap endpoint queried for capture history."""

    user_agent: str = DEFAULT_USER_AGENT
    """``User-Agent`` header sent with every request."""

    request_timeout: float = Field(default=WB_REQUEST_TIMEOUT, gt=0)
    """Per-request timeout in seconds."""

    # ------------------------------------------------------------------
    # Retry policy
    # ------------------------------------------------------------------

    initial_backoff_seconds: float = Field(default=WB_INITIAL_BACKOFF_SECONDS, ge=0, allow_inf_nan=False)
    """Wait before the first retry."""

    max_retries: int = Field(default=WB_MAX_RETRIES, ge=0)
    """Retries allowed after the first attempt."""

    backoff_decay_percent: int = Field(default=WB_BACKOFF_DECAY_PERCENT, ge=1, le=100)
    """Percentage applied to the running backoff after each retry."""

    jitter_base_seconds: float = Field(default=WB_JITTER_BASE_SECONDS, ge=0, allow_inf_nan=False)
    """Base of the randomised pause after each successful save."""

    query_jitter: bool = False
    """Apply the post-success pause to timemap queries as well.  Off by
    default: a query is a single request, so there is nothing to pace."""

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------

    log_level: str = "INFO"
    """Logging verbosity.  One of: DEBUG, INFO, WARNING, ERROR, CRITICAL."""

    log_dir: Optional[str] = None
    """Directory for timestamped run logs.  ``None`` disables log files
    unless ``--log-dir`` is passed on the command line."""

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        upper = value.upper()
        if upper not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(_LOG_LEVELS)}")
        return upper

    def retry_policy(self, *, jitter: bool = True) -> RetryPolicy:
        """Build a :class:`RetryPolicy` from these settings.

        Args:
            jitter: Keep the post-success pause.  Pass ``False`` for
                single-shot calls.
        """
        return RetryPolicy(
            initial_backoff_seconds=self.initial_backoff_seconds,
            max_retries=self.max_retries,
            backoff_decay_percent=self.backoff_decay_percent,
            jitter_base_seconds=self.jitter_base_seconds if jitter else 0.0,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached application settings instance.

    Call ``get_settings.cache_clear()`` in tests after patching the
    environment.
    """
    return Settings()
