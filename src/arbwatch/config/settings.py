"""
Application settings with environment variable support.

Uses Pydantic Settings for type-safe configuration with automatic
environment variable loading and validation.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from arbwatch.config.constants import (
    AUTO_TRADER_POLL_INTERVAL,
    DEFAULT_API_BASE_PATH,
    DEFAULT_API_ORIGIN,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_TRADE_AMOUNT_USDT,
    EXCHANGE_STATUS_POLL_INTERVAL,
    NOTICE_TTL_SECONDS,
    REPORTER_INTERVAL,
    SETTINGS_DEBOUNCE_SECONDS,
    SIMULATION_STATS_POLL_INTERVAL,
    SPREAD_POLL_INTERVAL,
)


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Settings are read once at startup and passed explicitly to every
    component; nothing reads them from module state afterwards.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Backend Location
    # =========================================================================

    api_url: str | None = Field(
        default=None,
        description="Full backend base URL; overrides origin and base path",
    )

    api_origin: str = Field(
        default=DEFAULT_API_ORIGIN,
        description="Backend origin used when api_url is not set",
    )

    api_base_path: str = Field(
        default=DEFAULT_API_BASE_PATH,
        description="Relative API path appended to the origin",
    )

    request_timeout_seconds: float = Field(
        default=DEFAULT_REQUEST_TIMEOUT,
        gt=0.0,
        le=120.0,
        description="Total timeout for a single API request",
    )

    # =========================================================================
    # Polling Cadence
    # =========================================================================

    spread_poll_interval: float = Field(
        default=SPREAD_POLL_INTERVAL,
        gt=0.0,
        description="Seconds between opportunity feed polls",
    )

    auto_trader_poll_interval: float = Field(
        default=AUTO_TRADER_POLL_INTERVAL,
        gt=0.0,
        description="Seconds between auto-trader status polls",
    )

    simulation_stats_poll_interval: float = Field(
        default=SIMULATION_STATS_POLL_INTERVAL,
        gt=0.0,
        description="Seconds between simulation statistics polls",
    )

    exchange_status_poll_interval: float = Field(
        default=EXCHANGE_STATUS_POLL_INTERVAL,
        gt=0.0,
        description="Seconds between exchange connectivity polls",
    )

    auto_refresh: bool = Field(
        default=True,
        description="Poll the opportunity feed automatically",
    )

    # =========================================================================
    # Settings Pipeline & Notices
    # =========================================================================

    settings_debounce_seconds: float = Field(
        default=SETTINGS_DEBOUNCE_SECONDS,
        ge=0.0,
        le=5.0,
        description="Quiescence window before a threshold edit is committed",
    )

    notice_ttl_seconds: float = Field(
        default=NOTICE_TTL_SECONDS,
        gt=0.0,
        description="Lifetime of transient notices",
    )

    # =========================================================================
    # Trading
    # =========================================================================

    default_trade_amount_usdt: float = Field(
        default=DEFAULT_TRADE_AMOUNT_USDT,
        gt=0.0,
        description="Notional submitted by a manual trade",
    )

    # =========================================================================
    # Operation
    # =========================================================================

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )

    use_uvloop: bool = Field(
        default=True,
        description="Use uvloop for the event loop when installed",
    )

    reporter_interval_seconds: float = Field(
        default=REPORTER_INTERVAL,
        gt=0.0,
        description="Terminal panel refresh interval",
    )

    # =========================================================================
    # Validators
    # =========================================================================

    @field_validator("api_url", mode="after")
    @classmethod
    def normalize_api_url(cls, v: str | None) -> str | None:
        """Normalize the URL so endpoint paths can be appended; blank means unset."""
        if v is None:
            return v
        return v.strip().rstrip("/") or None

    @field_validator("api_origin", mode="after")
    @classmethod
    def normalize_api_origin(cls, v: str) -> str:
        """Strip the trailing slash; an origin is required."""
        v = v.strip().rstrip("/")
        if not v:
            raise ValueError("api_origin must not be empty")
        return v

    @field_validator("api_base_path", mode="after")
    @classmethod
    def normalize_base_path(cls, v: str) -> str:
        """Ensure the base path has a single leading slash."""
        v = v.strip().strip("/")
        return f"/{v}" if v else ""

    # =========================================================================
    # Computed Properties
    # =========================================================================

    @property
    def base_url(self) -> str:
        """Backend base URL every endpoint path is appended to."""
        if self.api_url:
            return self.api_url
        return f"{self.api_origin}{self.api_base_path}"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to ensure settings are loaded only once.
    Clear cache with `get_settings.cache_clear()` if needed.
    """
    return Settings()
