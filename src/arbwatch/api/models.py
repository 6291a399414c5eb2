"""
Pydantic models for dashboard backend responses.

These models provide type-safe parsing of backend payloads with
automatic validation. Unknown fields are ignored so the backend can
grow its responses without breaking the client.
"""

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from arbwatch.config.constants import (
    DEFAULT_MAX_SPREAD_THRESHOLD,
    HOT_SPREAD_THRESHOLD,
)
from arbwatch.core.types import (
    AutoTraderState,
    OpportunityKey,
    RiskLevel,
    TradingMode,
)


class Opportunity(BaseModel):
    """Cross-exchange spread quote."""

    model_config = ConfigDict(frozen=True)

    pair: str
    buy_exchange: str
    sell_exchange: str
    buy_price: float
    sell_price: float
    spread_pct: float
    net_spread_pct: float | None = None
    profit_usdt: float
    timestamp: str | None = None

    @property
    def key(self) -> OpportunityKey:
        """Identity key (pair, buy exchange, sell exchange)."""
        return OpportunityKey(self.pair, self.buy_exchange, self.sell_exchange)

    @property
    def effective_spread_pct(self) -> float:
        """Net spread when the backend supplies it, raw spread otherwise."""
        return self.net_spread_pct if self.net_spread_pct is not None else self.spread_pct

    @property
    def is_profitable(self) -> bool:
        """Check if the spread is positive after costs."""
        return self.effective_spread_pct > 0

    @property
    def is_hot(self) -> bool:
        """Check if the spread reaches the hot threshold."""
        return self.effective_spread_pct >= HOT_SPREAD_THRESHOLD


class LiveSpreads(BaseModel):
    """Primary feed response."""

    spreads: list[Opportunity] | None = None


# =============================================================================
# Liquidity
# =============================================================================


class ExchangeDepth(BaseModel):
    """Order-book depth for one side of an opportunity."""

    exchange: str
    liquidity_score: float = Field(ge=0, le=10)
    depth_usdt: float = 0.0
    optimal_size: float = 0.0
    slippage: dict[str, float] = Field(default_factory=dict)


class RiskSummary(BaseModel):
    """Backend risk assessment of an opportunity."""

    risk_level: RiskLevel = RiskLevel.MEDIUM
    total_slippage_pct: float = 0.0
    optimal_amount_usdt: float = 0.0
    risk_factors: list[str] = Field(default_factory=list)

    @field_validator("risk_level", mode="before")
    @classmethod
    def unknown_level_is_medium(cls, v: object) -> RiskLevel:
        if isinstance(v, str):
            try:
                return RiskLevel(v.strip().upper())
            except ValueError:
                pass
        return RiskLevel.MEDIUM

    @field_validator("total_slippage_pct", mode="before")
    @classmethod
    def missing_slippage_is_zero(cls, v: object) -> object:
        return 0.0 if v is None else v


class LiquidityAnalysis(BaseModel):
    """Depth and slippage analysis for both legs of an opportunity."""

    buy: ExchangeDepth | None = None
    sell: ExchangeDepth | None = None
    summary: RiskSummary | None = None


# =============================================================================
# Trading
# =============================================================================


class TradingStatus(BaseModel):
    """Global trading module status."""

    use_testnet: bool = False


class TradeRequest(BaseModel):
    """Manual trade submission body."""

    pair: str
    buy_exchange: str
    sell_exchange: str
    amount_usdt: float
    mode: TradingMode


class TradeDetails(BaseModel):
    """Executed trade as reported by the backend."""

    actual_profit: float | None = None
    buy_order_id: str | None = None
    sell_order_id: str | None = None
    error: str | None = None

    @field_validator("buy_order_id", "sell_order_id", mode="before")
    @classmethod
    def order_id_as_str(cls, v: object) -> object:
        if v is None or v == "":
            return None
        return str(v)


class TradeResult(BaseModel):
    """Manual trade response."""

    success: bool = False
    trade: TradeDetails | None = None


class SimulationStats(BaseModel):
    """Aggregate statistics of simulated trades."""

    total_trades: int = 0
    win_rate: float = 0.0
    total_profit: float = 0.0
    average_profit: float = 0.0


class ExchangeConnection(BaseModel):
    """Connectivity of one exchange."""

    name: str
    display_name: str | None = None
    connected: bool = False

    @property
    def label(self) -> str:
        return self.display_name or self.name


class ExchangeList(BaseModel):
    """Exchange connectivity response."""

    exchanges: list[ExchangeConnection] = Field(default_factory=list)


# =============================================================================
# Auto-trader
# =============================================================================


class RiskSettings(BaseModel):
    """Auto-trader risk policy."""

    min_spread_pct: float
    max_trade_size_usdt: float
    max_trades_per_hour: int
    max_daily_loss_usdt: float
    max_trades_per_day: int | None = None

    def to_payload(self) -> dict[str, float | int]:
        """Body for a full replace; read-only fields are left out."""
        return self.model_dump(exclude={"max_trades_per_day"})


class RiskStats(BaseModel):
    """Auto-trader counters for the current day."""

    daily_profit: float = 0.0
    trades_today: int = 0


class AutoTraderStatus(BaseModel):
    """Auto-trader status snapshot."""

    state: AutoTraderState
    session_trades: int = 0
    session_profit: float = 0.0
    risk_stats: RiskStats = Field(default_factory=RiskStats)
    risk_settings: RiskSettings | None = None


# =============================================================================
# Display settings
# =============================================================================


class DisplaySettings(BaseModel):
    """Display filter configuration."""

    min_spread_threshold: float = 1.5
    max_spread_threshold: float = DEFAULT_MAX_SPREAD_THRESHOLD
    blacklisted_coins: set[str] = Field(default_factory=set)
    trading_mode: TradingMode = TradingMode.SIMULATION
    notifications_enabled: bool = True

    @field_validator("max_spread_threshold", mode="before")
    @classmethod
    def default_max_threshold(cls, v: object) -> object:
        # A missing or zero upper bound means "not configured"
        return v or DEFAULT_MAX_SPREAD_THRESHOLD

    @field_validator("blacklisted_coins", mode="before")
    @classmethod
    def null_blacklist_is_empty(cls, v: object) -> object:
        return v or set()


class BlacklistResponse(BaseModel):
    """Authoritative blacklist returned after an edit."""

    blacklist: set[str] = Field(default_factory=set)


class ApiCredentials(BaseModel):
    """Exchange API credentials submitted by the user."""

    exchange: str
    api_key: SecretStr
    api_secret: SecretStr

    def to_payload(self) -> dict[str, str]:
        """Body for the credential endpoint; the only place secrets are revealed."""
        return {
            "exchange": self.exchange,
            "api_key": self.api_key.get_secret_value(),
            "api_secret": self.api_secret.get_secret_value(),
        }


class ConfiguredExchanges(BaseModel):
    """Exchanges that have stored credentials."""

    exchanges: list[str] = Field(default_factory=list)
