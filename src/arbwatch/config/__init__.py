"""Configuration module for the dashboard client."""

from arbwatch.config.constants import (
    DEFAULT_API_BASE_PATH,
    DEFAULT_API_ORIGIN,
    HOT_SPREAD_THRESHOLD,
    SLIPPAGE_TIERS,
)
from arbwatch.config.settings import Settings, get_settings


__all__ = [
    "Settings",
    "get_settings",
    "DEFAULT_API_BASE_PATH",
    "DEFAULT_API_ORIGIN",
    "HOT_SPREAD_THRESHOLD",
    "SLIPPAGE_TIERS",
]
