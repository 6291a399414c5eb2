"""
Manual trade submission.

Each call submits exactly one trade. Execution is not idempotent, so a
failed submission is reported and never retried.
"""

import logging

from arbwatch.api.client import ApiClientError, DashboardClient, error_detail
from arbwatch.api.models import Opportunity, TradeRequest, TradeResult
from arbwatch.core.event_bus import Event, EventBus, EventType
from arbwatch.core.types import TradeOutcome, TradingMode
from arbwatch.telemetry.metrics import MetricsCollector
from arbwatch.utils.time import LatencyTimer, format_duration_us


logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Trade execution failed"


class TradeExecutor:
    """Submits manual trades for opportunities."""

    def __init__(
        self,
        client: DashboardClient,
        event_bus: EventBus | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        """
        Initialize executor.

        Args:
            client: Backend client.
            event_bus: Optional bus receiving TRADE_EXECUTED.
            metrics: Optional metrics collector.
        """
        self._client = client
        self._bus = event_bus
        self._metrics = metrics

    async def execute(
        self,
        opportunity: Opportunity,
        amount_usdt: float,
        mode: TradingMode,
    ) -> TradeOutcome:
        """
        Execute an opportunity once.

        The mode is forwarded as given; eligibility is the caller's
        concern.

        Args:
            opportunity: Opportunity to trade.
            amount_usdt: Trade notional in USDT.
            mode: Execution context.

        Returns:
            Outcome of the submission. Failures never raise.
        """
        request = TradeRequest(
            pair=opportunity.pair,
            buy_exchange=opportunity.buy_exchange,
            sell_exchange=opportunity.sell_exchange,
            amount_usdt=amount_usdt,
            mode=mode,
        )

        logger.info(
            f"Executing {opportunity.key} for {amount_usdt:.2f} USDT in {mode.value} mode"
        )

        with LatencyTimer() as timer:
            try:
                result = await self._client.execute_trade(request)
            except ApiClientError as e:
                outcome = TradeOutcome(
                    success=False,
                    mode=mode,
                    error=error_detail(e, GENERIC_FAILURE),
                )
            else:
                outcome = self._to_outcome(result, mode)

        self._log_outcome(opportunity, outcome, timer.latency_us)
        if self._metrics is not None:
            self._metrics.increment_counter("trades.ok" if outcome.success else "trades.failed")

        if self._bus is not None:
            await self._bus.publish(Event(EventType.TRADE_EXECUTED, outcome, source="executor"))
        return outcome

    @staticmethod
    def _to_outcome(result: TradeResult, mode: TradingMode) -> TradeOutcome:
        trade = result.trade
        if not result.success:
            error = trade.error if trade is not None and trade.error else GENERIC_FAILURE
            return TradeOutcome(success=False, mode=mode, error=error)
        if trade is None:
            return TradeOutcome(success=True, mode=mode)
        return TradeOutcome(
            success=True,
            mode=mode,
            profit=trade.actual_profit,
            buy_order_id=trade.buy_order_id,
            sell_order_id=trade.sell_order_id,
        )

    @staticmethod
    def _log_outcome(opportunity: Opportunity, outcome: TradeOutcome, latency_us: int) -> None:
        took = format_duration_us(latency_us)
        if not outcome.success:
            logger.warning(f"Trade {opportunity.key} failed in {took}: {outcome.error}")
        elif outcome.is_partial:
            logger.warning(
                f"Trade {opportunity.key} partially executed in {took}: "
                f"buy={outcome.buy_order_id} sell={outcome.sell_order_id}"
            )
        else:
            profit = f"{outcome.profit:.2f}" if outcome.profit is not None else "n/a"
            logger.info(f"Trade {opportunity.key} executed in {took}, profit {profit} USDT")
