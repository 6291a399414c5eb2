"""Auto-trader control, trading mode selection and manual execution."""

from arbwatch.trading.autotrader import AutoTraderController, RiskSettingsForm
from arbwatch.trading.executor import TradeExecutor
from arbwatch.trading.mode import TradingModeSelector


__all__ = [
    "AutoTraderController",
    "RiskSettingsForm",
    "TradeExecutor",
    "TradingModeSelector",
]
