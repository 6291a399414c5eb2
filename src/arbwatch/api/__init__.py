"""Backend API client and response models."""

from arbwatch.api.client import (
    ApiClientError,
    ApiResponseError,
    DashboardClient,
    error_detail,
)
from arbwatch.api.models import (
    AutoTraderStatus,
    DisplaySettings,
    ExchangeDepth,
    LiquidityAnalysis,
    Opportunity,
    RiskSettings,
    RiskSummary,
    TradingStatus,
)


__all__ = [
    "ApiClientError",
    "ApiResponseError",
    "AutoTraderStatus",
    "DashboardClient",
    "DisplaySettings",
    "ExchangeDepth",
    "LiquidityAnalysis",
    "Opportunity",
    "RiskSettings",
    "RiskSummary",
    "TradingStatus",
    "error_detail",
]
