"""
Dashboard constants and configuration values.

This module contains all hardcoded values used by the dashboard client.
Values are organized by category for easy maintenance and auditing.
"""

from typing import Final


# =============================================================================
# Backend Location
# =============================================================================

DEFAULT_API_ORIGIN: Final[str] = "http://127.0.0.1:8000"
DEFAULT_API_BASE_PATH: Final[str] = "/api/v1"

# API Endpoints
ENDPOINT_SPREADS_LIVE: Final[str] = "/spreads/live"
ENDPOINT_SPREADS_FALLBACK: Final[str] = "/scanner/test-spreads"
ENDPOINT_LIQUIDITY: Final[str] = "/spreads/liquidity/{pair}"
ENDPOINT_TRADING_STATUS: Final[str] = "/trading/status"
ENDPOINT_TRADING_EXECUTE: Final[str] = "/trading/execute"
ENDPOINT_SIMULATION_STATS: Final[str] = "/trading/stats/simulation"
ENDPOINT_EXCHANGES: Final[str] = "/exchanges"
ENDPOINT_AUTO_STATUS: Final[str] = "/auto/status"
ENDPOINT_AUTO_COMMAND: Final[str] = "/auto/{command}"
ENDPOINT_AUTO_RISK_SETTINGS: Final[str] = "/auto/risk/settings"
ENDPOINT_SETTINGS: Final[str] = "/settings"
ENDPOINT_MIN_THRESHOLD: Final[str] = "/settings/threshold"
ENDPOINT_MAX_THRESHOLD: Final[str] = "/settings/max-threshold"
ENDPOINT_BLACKLIST: Final[str] = "/settings/blacklist/{coin}"
ENDPOINT_API_KEYS: Final[str] = "/settings/api-keys"
ENDPOINT_API_KEYS_EXCHANGE: Final[str] = "/settings/api-keys/{exchange}"

DEFAULT_REQUEST_TIMEOUT: Final[float] = 10.0  # seconds


# =============================================================================
# Polling Cadence
# =============================================================================

SPREAD_POLL_INTERVAL: Final[float] = 5.0  # seconds
AUTO_TRADER_POLL_INTERVAL: Final[float] = 5.0  # seconds
SIMULATION_STATS_POLL_INTERVAL: Final[float] = 30.0  # seconds
EXCHANGE_STATUS_POLL_INTERVAL: Final[float] = 60.0  # seconds


# =============================================================================
# Settings Pipeline
# =============================================================================

SETTINGS_DEBOUNCE_SECONDS: Final[float] = 0.3
NOTICE_TTL_SECONDS: Final[float] = 3.0

# Used when the backend omits the upper display threshold
DEFAULT_MAX_SPREAD_THRESHOLD: Final[float] = 15.0


# =============================================================================
# Opportunity Classification
# =============================================================================

# Net spread (percent) at or above which an opportunity is "hot"
HOT_SPREAD_THRESHOLD: Final[float] = 1.5

# Notional used by the backend when quoting profit_usdt
PROFIT_REFERENCE_NOTIONAL: Final[float] = 1000.0

# Order-book slippage tiers quoted by the liquidity endpoint (USDT)
SLIPPAGE_TIERS: Final[tuple[str, ...]] = ("100", "500", "1000", "5000")

# Display-only weight applied to the sell leg when summing tier slippage
SELL_SLIPPAGE_WEIGHT: Final[float] = 0.5


# =============================================================================
# Trading
# =============================================================================

DEFAULT_TRADE_AMOUNT_USDT: Final[float] = 100.0

# Exchanges that accept API credentials
SUPPORTED_EXCHANGES: Final[tuple[str, ...]] = (
    "binance",
    "bybit",
    "okx",
    "kucoin",
    "mexc",
    "gateio",
)


# =============================================================================
# Logging & Telemetry
# =============================================================================

LOG_FORMAT: Final[str] = "%(asctime)s.%(msecs)03d | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

# Terminal panel refresh interval (seconds)
REPORTER_INTERVAL: Final[float] = 1.0

# Maximum log queue size
MAX_LOG_QUEUE_SIZE: Final[int] = 10_000
