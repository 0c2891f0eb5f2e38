"""Configuration settings for GitHub Issue Backup."""

from functools import lru_cache
from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RateLimitConfig(BaseModel):
    """Rate budget health bands.

    A budget at or above ``healthy_threshold_pct`` percent of its limit is
    healthy; degradations below each band are logged and reported to the
    CLI as warnings.
    """

    healthy_threshold_pct: float = Field(
        default=50.0,
        ge=0.0,
        le=100.0,
        description="Lowest remaining share (%) still reported as healthy",
    )
    warning_threshold_pct: float = Field(
        default=20.0,
        ge=0.0,
        le=100.0,
        description="Lowest remaining share (%) reported as warning rather than critical",
    )
    critical_threshold_pct: float = Field(
        default=5.0,
        ge=0.0,
        le=100.0,
        description="Remaining share (%) below which a budget is nearly spent",
    )

    track_from_headers: bool = Field(
        default=True,
        description="Read the budget from x-ratelimit-* headers of every response",
    )


class TransportConfig(BaseModel):
    """Configuration for the rate-limited HTTP transport.

    Controls retry bounds for transient failures and the margin added
    when waiting for a rate limit window to reset.
    """

    max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per request for transient failures (timeouts, 5xx)",
    )
    backoff_base_seconds: float = Field(
        default=1.0,
        ge=0.0,
        description="First retry delay; doubled on every further attempt",
    )
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="Timeout for a single HTTP request",
    )
    reset_margin_seconds: float = Field(
        default=2.0,
        ge=0.0,
        description="Extra wait after the rate limit reset instant (clock skew)",
    )
    per_page: int = Field(
        default=100,
        ge=1,
        le=100,
        description="Items requested per page (GitHub maximum is 100)",
    )


class BackupConfig(BaseModel):
    """Configuration for the on-disk backup layout."""

    state_file_name: str = Field(
        default="state.json",
        description="Name of the sync state document under the destination root",
    )


class LoggingConfig(BaseModel):
    """Optional log file next to the console output."""

    log_file: str | None = Field(
        default=None,
        description="Write a DEBUG-level log of every run to this file",
    )
    rotation: str = Field(
        default="10 MB",
        description="Size or age at which the log file is rotated",
    )
    retention: str = Field(
        default="7 days",
        description="How long rotated log files are kept",
    )
    serialize: bool = Field(
        default=False,
        description="Write the log file as JSON lines",
    )


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --------------------------------------------------------------------------
    # GitHub API
    # --------------------------------------------------------------------------
    github_token: str = Field(
        default="",
        description="GitHub personal access token (fallback when no CLI token given)",
    )
    github_api_url: str = Field(
        default="https://api.github.com",
        description="Base URL of the GitHub REST API",
    )

    # --------------------------------------------------------------------------
    # Application
    # --------------------------------------------------------------------------
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Console log level (overridden by --verbose/--quiet)",
    )

    # --------------------------------------------------------------------------
    # Transport & Rate Limiting
    # --------------------------------------------------------------------------
    transport: TransportConfig = Field(
        default_factory=TransportConfig,
        description="Retry and pagination configuration",
    )
    rate_limit: RateLimitConfig = Field(
        default_factory=RateLimitConfig,
        description="Rate budget health bands",
    )

    # --------------------------------------------------------------------------
    # Backup Layout
    # --------------------------------------------------------------------------
    backup: BackupConfig = Field(
        default_factory=BackupConfig,
        description="Backup destination layout",
    )

    # --------------------------------------------------------------------------
    # Logging Configuration
    # --------------------------------------------------------------------------
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig,
        description="Log file settings",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
