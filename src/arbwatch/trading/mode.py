"""Trading mode selection for manual trades."""

import logging

from arbwatch.core.event_bus import Event, EventBus, EventType
from arbwatch.core.types import TradingMode
from arbwatch.trading.autotrader import AutoTraderController


logger = logging.getLogger(__name__)


class TradingModeSelector:
    """
    Selected execution mode for manual trades.

    Live trading is refused while the backend forces testnet. Eligibility
    is read from the auto-trader controller's mirror of the trading
    status, which is the only writer of that policy.
    """

    def __init__(
        self,
        autotrader: AutoTraderController,
        event_bus: EventBus | None = None,
        mode: TradingMode = TradingMode.SIMULATION,
    ) -> None:
        self._autotrader = autotrader
        self._bus = event_bus
        self._mode = mode

    @property
    def mode(self) -> TradingMode:
        return self._mode

    def is_allowed(self, mode: TradingMode) -> bool:
        if mode == TradingMode.LIVE:
            return not self._autotrader.testnet_forced
        return True

    def select(self, mode: TradingMode) -> bool:
        """
        Select a mode.

        Returns:
            False if the mode is not allowed; the selection is unchanged.
        """
        if not self.is_allowed(mode):
            logger.warning(f"Refusing {mode.value} mode: backend forces testnet")
            return False
        self._set(mode)
        return True

    def reconcile(self) -> TradingMode:
        """Downgrade a live selection to testnet once the backend forces testnet."""
        if self._mode == TradingMode.LIVE and not self.is_allowed(TradingMode.LIVE):
            logger.info("Backend forces testnet, switching from live to testnet")
            self._set(TradingMode.TESTNET)
        return self._mode

    def _set(self, mode: TradingMode) -> None:
        if mode == self._mode:
            return
        self._mode = mode
        if self._bus is not None:
            self._bus.publish_sync(Event(EventType.TRADING_MODE_CHANGED, mode, source="mode"))
