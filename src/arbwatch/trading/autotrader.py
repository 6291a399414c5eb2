"""
Remote auto-trader control.

The auto-trader runs on the backend; this module only mirrors its state
and forwards lifecycle commands. The displayed state never changes as a
direct effect of a command: it changes when the following status poll
reports it.

State machine (as observed by the client):

    idle --start--> running --pause--> paused --resume--> running
    running/paused --stop--> idle
    error: set by the backend; no command is offered, cleared by polling
"""

import logging
from collections.abc import Mapping

from arbwatch.api.client import ApiClientError, DashboardClient, error_detail
from arbwatch.api.models import AutoTraderStatus, RiskSettings, TradingStatus
from arbwatch.config.constants import AUTO_TRADER_POLL_INTERVAL
from arbwatch.core.event_bus import Event, EventBus, EventType
from arbwatch.core.scheduler import Scheduler, TimerHandle
from arbwatch.core.types import AutoTraderCommand, AutoTraderState, CommandResult
from arbwatch.telemetry.metrics import MetricsCollector
from arbwatch.telemetry.notices import NoticeBoard


logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: Mapping[AutoTraderCommand, frozenset[AutoTraderState]] = {
    AutoTraderCommand.START: frozenset({AutoTraderState.IDLE}),
    AutoTraderCommand.PAUSE: frozenset({AutoTraderState.RUNNING}),
    AutoTraderCommand.RESUME: frozenset({AutoTraderState.PAUSED}),
    AutoTraderCommand.STOP: frozenset({AutoTraderState.RUNNING, AutoTraderState.PAUSED}),
}

COMMAND_FAILURE_MESSAGES: Mapping[AutoTraderCommand, str] = {
    AutoTraderCommand.START: "Failed to start auto-trader",
    AutoTraderCommand.STOP: "Failed to stop auto-trader",
    AutoTraderCommand.PAUSE: "Failed to pause auto-trader",
    AutoTraderCommand.RESUME: "Failed to resume auto-trader",
}

POLL_NOTICE_KEY = "autotrader.poll"
FAULT_NOTICE_KEY = "autotrader.fault"


class RiskSettingsForm:
    """
    Staged copy of the risk policy being edited.

    Values are coerced on update so the form always holds a valid
    `RiskSettings`; the mirrored policy is untouched until a save
    succeeds.
    """

    _FLOAT_FIELDS = ("min_spread_pct", "max_trade_size_usdt", "max_daily_loss_usdt")
    _INT_FIELDS = ("max_trades_per_hour",)

    def __init__(self, settings: RiskSettings) -> None:
        self._values = settings.model_copy()

    def update(self, **fields: object) -> None:
        """
        Stage new field values.

        Raises:
            ValueError: On an unknown field or a value that cannot be coerced.
        """
        changes: dict[str, float | int] = {}
        for name, raw in fields.items():
            if name in self._FLOAT_FIELDS:
                changes[name] = float(raw)  # type: ignore[arg-type]
            elif name in self._INT_FIELDS:
                changes[name] = int(raw)  # type: ignore[call-overload]
            else:
                raise ValueError(f"Unknown or read-only risk field: {name}")
        self._values = self._values.model_copy(update=changes)

    @property
    def values(self) -> RiskSettings:
        return self._values


class AutoTraderController:
    """
    Mirror of the remote auto-trader and the global trading status.

    Features:
    - 5 s status polling of /auto/status and /trading/status
    - Command gating: one command at a time, only valid transitions
    - Persistent notices for poll failures and the remote error state
    - Staged risk-settings editing
    """

    TIMER_NAME = "autotrader"

    def __init__(
        self,
        client: DashboardClient,
        scheduler: Scheduler,
        notices: NoticeBoard,
        event_bus: EventBus | None = None,
        metrics: MetricsCollector | None = None,
        interval: float = AUTO_TRADER_POLL_INTERVAL,
    ) -> None:
        self._client = client
        self._scheduler = scheduler
        self._notices = notices
        self._bus = event_bus
        self._metrics = metrics
        self._interval = interval

        self._status: AutoTraderStatus | None = None
        self._trading_status: TradingStatus | None = None
        self._form: RiskSettingsForm | None = None
        self._busy = False
        self._timer: TimerHandle | None = None
        self._active = True

    # =========================================================================
    # Polling
    # =========================================================================

    async def refresh(self) -> bool:
        """
        Poll auto-trader and trading status.

        Returns:
            True if the auto-trader status was updated.
        """
        updated = await self._refresh_auto_status()
        await self._refresh_trading_status()

        if updated and self._active:
            await self._publish(EventType.AUTO_STATUS_UPDATED, self._status)
        return updated

    async def _refresh_auto_status(self) -> bool:
        try:
            status = await self._client.get_auto_status()
        except ApiClientError as e:
            logger.warning(f"Auto-trader status poll failed: {e}")
            self._record("autotrader", ok=False)
            if self._active:
                self._notices.set_persistent(POLL_NOTICE_KEY, "Auto-trader status unavailable")
            return False

        if not self._active:
            return False

        self._record("autotrader", ok=True)
        self._notices.clear_persistent(POLL_NOTICE_KEY)

        if status.state == AutoTraderState.ERROR:
            self._notices.set_persistent(FAULT_NOTICE_KEY, "Auto-trader reported an error")
        else:
            self._notices.clear_persistent(FAULT_NOTICE_KEY)

        if self._status is None or self._status.state != status.state:
            logger.info(f"Auto-trader state: {status.state.value}")
        self._status = status
        return True

    async def _refresh_trading_status(self) -> None:
        try:
            trading_status = await self._client.get_trading_status()
        except ApiClientError as e:
            logger.warning(f"Trading status poll failed: {e}")
            self._record("trading_status", ok=False)
            return

        if not self._active:
            return

        self._record("trading_status", ok=True)
        self._trading_status = trading_status

    def start_polling(self, interval: float | None = None) -> TimerHandle:
        """Start the status poll timer (polls immediately)."""
        if interval is not None:
            self._interval = interval
        self._timer = self._scheduler.every(self.TIMER_NAME, self._interval, self.refresh)
        return self._timer

    def stop_polling(self) -> None:
        if self._timer is not None:
            self._scheduler.cancel(self.TIMER_NAME)
            self._timer = None

    def close(self) -> None:
        """Stop polling and ignore late results."""
        self.stop_polling()
        self._active = False
        self._form = None

    # =========================================================================
    # Commands
    # =========================================================================

    def can_send(self, command: AutoTraderCommand) -> bool:
        """True if `command` is valid for the mirrored state and nothing is in flight."""
        state = self.state
        return not self._busy and state is not None and state in ALLOWED_TRANSITIONS[command]

    async def send(self, command: AutoTraderCommand) -> CommandResult:
        """
        Forward a lifecycle command to the backend.

        Invalid or concurrent requests are refused locally without any
        network call. On success the status is refreshed; on failure a
        transient notice carries the backend's explanation.
        """
        if self._busy:
            return CommandResult(False, "Another command is in progress")

        state = self.state
        if state is None or state not in ALLOWED_TRANSITIONS[command]:
            current = state.value if state is not None else "unknown"
            return CommandResult(False, f"Cannot {command.value} while {current}")

        self._busy = True
        try:
            await self._client.send_auto_command(command)
            await self.refresh()
        except ApiClientError as e:
            message = error_detail(e, COMMAND_FAILURE_MESSAGES[command])
            logger.warning(f"Auto-trader {command.value} failed: {e}")
            if self._active:
                self._notices.error(message)
            return CommandResult(False, message)
        finally:
            self._busy = False

        logger.info(f"Auto-trader {command.value} accepted")
        return CommandResult(True)

    async def start(self) -> CommandResult:
        return await self.send(AutoTraderCommand.START)

    async def stop(self) -> CommandResult:
        return await self.send(AutoTraderCommand.STOP)

    async def pause(self) -> CommandResult:
        return await self.send(AutoTraderCommand.PAUSE)

    async def resume(self) -> CommandResult:
        return await self.send(AutoTraderCommand.RESUME)

    async def toggle_pause(self) -> CommandResult:
        """Resume when paused, pause otherwise."""
        if self.state == AutoTraderState.PAUSED:
            return await self.resume()
        return await self.pause()

    # =========================================================================
    # Risk Settings
    # =========================================================================

    def open_risk_form(self) -> RiskSettingsForm | None:
        """Stage a copy of the mirrored risk policy; None if it is not known yet."""
        if self._status is None or self._status.risk_settings is None:
            return None
        self._form = RiskSettingsForm(self._status.risk_settings)
        return self._form

    def cancel_risk_form(self) -> None:
        self._form = None

    async def save_risk_settings(self) -> CommandResult:
        """
        Submit the staged risk policy.

        The form closes only on success; on failure the staged values
        are kept for another attempt.
        """
        form = self._form
        if form is None:
            return CommandResult(False, "No risk settings are being edited")

        try:
            await self._client.update_risk_settings(form.values)
        except ApiClientError as e:
            message = error_detail(e, "Failed to save risk settings")
            logger.warning(f"Risk settings update failed: {e}")
            if self._active:
                self._notices.error(message)
            return CommandResult(False, message)

        if self._form is form:
            self._form = None
        self._notices.success("Risk settings saved")
        await self.refresh()
        return CommandResult(True)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _publish(self, event_type: EventType, payload: object) -> None:
        if self._bus is not None:
            await self._bus.publish(Event(event_type, payload, source="autotrader"))

    def _record(self, name: str, ok: bool) -> None:
        if self._metrics is not None:
            self._metrics.record_poll(name, ok)

    # =========================================================================
    # State
    # =========================================================================

    @property
    def status(self) -> AutoTraderStatus | None:
        """Last polled status, None until the first successful poll."""
        return self._status

    @property
    def state(self) -> AutoTraderState | None:
        return self._status.state if self._status is not None else None

    @property
    def trading_status(self) -> TradingStatus | None:
        return self._trading_status

    @property
    def testnet_forced(self) -> bool:
        """True when the backend restricts trading to testnet."""
        return self._trading_status is not None and self._trading_status.use_testnet

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def risk_form(self) -> RiskSettingsForm | None:
        return self._form

    @property
    def polling(self) -> bool:
        return self._timer is not None and not self._timer.cancelled
