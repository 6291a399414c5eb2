"""
Mock dashboard backend client for testing.

Provides an in-memory stand-in for DashboardClient that simulates the
backend without network calls. Every call is recorded; any endpoint can
be made to fail or to block until released.
"""

import asyncio
from collections.abc import Callable
from typing import Any

from arbwatch.api.client import ApiClientError, ApiResponseError
from arbwatch.api.models import (
    ApiCredentials,
    AutoTraderStatus,
    DisplaySettings,
    ExchangeConnection,
    ExchangeDepth,
    LiquidityAnalysis,
    Opportunity,
    RiskSettings,
    RiskSummary,
    SimulationStats,
    TradeDetails,
    TradeRequest,
    TradeResult,
    TradingStatus,
)
from arbwatch.core.types import AutoTraderCommand, AutoTraderState, OpportunityKey, RiskLevel


# =============================================================================
# Sample Data
# =============================================================================


def make_opportunity(
    pair: str = "BTC/USDT",
    buy_exchange: str = "binance",
    sell_exchange: str = "okx",
    spread_pct: float = 1.0,
    net_spread_pct: float | None = None,
    profit_usdt: float = 10.0,
) -> Opportunity:
    """Build an opportunity with sensible prices."""
    return Opportunity(
        pair=pair,
        buy_exchange=buy_exchange,
        sell_exchange=sell_exchange,
        buy_price=100.0,
        sell_price=100.0 * (1 + spread_pct / 100),
        spread_pct=spread_pct,
        net_spread_pct=net_spread_pct,
        profit_usdt=profit_usdt,
    )


def make_analysis(
    total_slippage_pct: float = 0.5,
    buy_slippage: dict[str, float] | None = None,
    sell_slippage: dict[str, float] | None = None,
) -> LiquidityAnalysis:
    """Build a liquidity analysis for both legs."""
    return LiquidityAnalysis(
        buy=ExchangeDepth(
            exchange="binance",
            liquidity_score=8.5,
            depth_usdt=250_000.0,
            optimal_size=5_000.0,
            slippage=buy_slippage if buy_slippage is not None else {"1000": 0.3},
        ),
        sell=ExchangeDepth(
            exchange="okx",
            liquidity_score=6.0,
            depth_usdt=120_000.0,
            optimal_size=2_500.0,
            slippage=sell_slippage if sell_slippage is not None else {"1000": 0.4},
        ),
        summary=RiskSummary(
            risk_level=RiskLevel.LOW,
            total_slippage_pct=total_slippage_pct,
            optimal_amount_usdt=2_500.0,
        ),
    )


def make_risk_settings() -> RiskSettings:
    return RiskSettings(
        min_spread_pct=0.5,
        max_trade_size_usdt=100.0,
        max_trades_per_hour=10,
        max_daily_loss_usdt=50.0,
        max_trades_per_day=100,
    )


# =============================================================================
# Mock Client
# =============================================================================


_COMMAND_TARGETS = {
    AutoTraderCommand.START: AutoTraderState.RUNNING,
    AutoTraderCommand.STOP: AutoTraderState.IDLE,
    AutoTraderCommand.PAUSE: AutoTraderState.PAUSED,
    AutoTraderCommand.RESUME: AutoTraderState.RUNNING,
}


class MockDashboardClient:
    """
    Mock backend client for testing.

    Simulates backend responses with configurable behavior:
    - `responses[name]` is returned (or called with the arguments if callable)
    - `fail(name)` makes an endpoint raise until `succeed(name)`
    - `hold(name)` blocks an endpoint until `release(name)`
    """

    def __init__(
        self,
        opportunities: list[Opportunity] | None = None,
        auto_state: AutoTraderState = AutoTraderState.IDLE,
        use_testnet: bool = False,
    ) -> None:
        """
        Initialize mock client.

        Args:
            opportunities: Opportunities returned by the live feed.
            auto_state: Initial remote auto-trader state.
            use_testnet: Whether the backend forces testnet.
        """
        self.base_url = "http://mock/api/v1"
        self.closed = False
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.failures: dict[str, Exception] = {}
        self.gates: dict[str, asyncio.Event] = {}

        # Simulated server state
        self.auto_state = auto_state
        self.use_testnet = use_testnet
        self.server_settings = DisplaySettings(min_spread_threshold=0.5, max_spread_threshold=10.0)
        self.server_blacklist: set[str] = set()
        self.configured_exchanges: list[str] = []
        self.risk_settings = make_risk_settings()

        self.responses: dict[str, Any] = {
            "get_live_spreads": list(opportunities or []),
            "get_test_spreads": [],
            "get_liquidity": make_analysis(),
            "get_simulation_stats": SimulationStats(
                total_trades=12, win_rate=75.0, total_profit=3.2, average_profit=0.27
            ),
            "get_exchanges": [
                ExchangeConnection(name="binance", display_name="Binance", connected=True),
                ExchangeConnection(name="okx", connected=False),
            ],
            "execute_trade": TradeResult(
                success=True,
                trade=TradeDetails(actual_profit=1.25, buy_order_id="b-1", sell_order_id="s-1"),
            ),
            "get_auto_status": lambda: AutoTraderStatus(
                state=self.auto_state,
                session_trades=3,
                session_profit=1.5,
                risk_settings=self.risk_settings,
            ),
            "get_trading_status": lambda: TradingStatus(use_testnet=self.use_testnet),
            "get_settings": lambda: self.server_settings.model_copy(
                update={"blacklisted_coins": set(self.server_blacklist)}
            ),
            "add_to_blacklist": self._blacklist_add,
            "remove_from_blacklist": self._blacklist_remove,
            "get_configured_exchanges": lambda: list(self.configured_exchanges),
        }

    # =========================================================================
    # Behaviour Control
    # =========================================================================

    def fail(self, name: str, error: Exception | None = None) -> None:
        """Make an endpoint raise `error` (a generic client error by default)."""
        self.failures[name] = error or ApiClientError("mock failure")

    def fail_with_detail(self, name: str, detail: str, status: int = 400) -> None:
        """Make an endpoint answer with a non-2xx status and a detail message."""
        self.failures[name] = ApiResponseError(f"HTTP {status}: {detail}", status, detail)

    def succeed(self, name: str) -> None:
        self.failures.pop(name, None)

    def hold(self, name: str) -> asyncio.Event:
        """Block calls to an endpoint until `release(name)`."""
        gate = asyncio.Event()
        self.gates[name] = gate
        return gate

    def release(self, name: str) -> None:
        gate = self.gates.pop(name, None)
        if gate is not None:
            gate.set()

    def call_count(self, name: str) -> int:
        return sum(1 for call, _ in self.calls if call == name)

    def calls_to(self, name: str) -> list[tuple[Any, ...]]:
        return [args for call, args in self.calls if call == name]

    async def _call(self, name: str, *args: Any) -> Any:
        self.calls.append((name, args))

        gate = self.gates.get(name)
        if gate is not None:
            await gate.wait()

        failure = self.failures.get(name)
        if failure is not None:
            raise failure

        response = self.responses.get(name)
        if callable(response):
            return response(*args)
        return response

    def _blacklist_add(self, coin: str) -> set[str]:
        self.server_blacklist.add(coin.upper())
        return set(self.server_blacklist)

    def _blacklist_remove(self, coin: str) -> set[str]:
        self.server_blacklist.discard(coin.upper())
        return set(self.server_blacklist)

    # =========================================================================
    # Client Interface
    # =========================================================================

    async def get_live_spreads(self) -> list[Opportunity]:
        return await self._call("get_live_spreads")

    async def get_test_spreads(self) -> list[Opportunity]:
        return await self._call("get_test_spreads")

    async def get_liquidity(self, key: OpportunityKey) -> LiquidityAnalysis:
        return await self._call("get_liquidity", key)

    async def get_trading_status(self) -> TradingStatus:
        return await self._call("get_trading_status")

    async def execute_trade(self, request: TradeRequest) -> TradeResult:
        return await self._call("execute_trade", request)

    async def get_simulation_stats(self) -> SimulationStats:
        return await self._call("get_simulation_stats")

    async def get_exchanges(self) -> list[ExchangeConnection]:
        return await self._call("get_exchanges")

    async def get_auto_status(self) -> AutoTraderStatus:
        return await self._call("get_auto_status")

    async def send_auto_command(self, command: AutoTraderCommand) -> None:
        await self._call("send_auto_command", command)
        self.auto_state = _COMMAND_TARGETS[command]

    async def update_risk_settings(self, settings: RiskSettings) -> None:
        await self._call("update_risk_settings", settings)
        self.risk_settings = settings

    async def get_settings(self) -> DisplaySettings:
        return await self._call("get_settings")

    async def set_min_threshold(self, value: float) -> None:
        await self._call("set_min_threshold", value)
        self.server_settings = self.server_settings.model_copy(
            update={"min_spread_threshold": value}
        )

    async def set_max_threshold(self, value: float) -> None:
        await self._call("set_max_threshold", value)
        self.server_settings = self.server_settings.model_copy(
            update={"max_spread_threshold": value}
        )

    async def add_to_blacklist(self, coin: str) -> set[str]:
        return await self._call("add_to_blacklist", coin)

    async def remove_from_blacklist(self, coin: str) -> set[str]:
        return await self._call("remove_from_blacklist", coin)

    async def get_configured_exchanges(self) -> list[str]:
        return await self._call("get_configured_exchanges")

    async def save_api_keys(self, credentials: ApiCredentials) -> None:
        await self._call("save_api_keys", credentials)
        if credentials.exchange not in self.configured_exchanges:
            self.configured_exchanges.append(credentials.exchange)

    async def delete_api_keys(self, exchange: str) -> None:
        await self._call("delete_api_keys", exchange)
        if exchange in self.configured_exchanges:
            self.configured_exchanges.remove(exchange)

    async def close(self) -> None:
        self.closed = True


def responder(values: list[Any]) -> Callable[..., Any]:
    """Response callable returning `values` in order, repeating the last one."""
    remaining = list(values)

    def _respond(*args: Any) -> Any:
        return remaining.pop(0) if len(remaining) > 1 else remaining[0]

    return _respond


async def wait_for(predicate: Callable[[], bool], timeout: float = 1.0, interval: float = 0.005) -> None:
    """Wait until `predicate()` is true; raises AssertionError on timeout."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not met before timeout")
        await asyncio.sleep(interval)
