"""
Settings mutation pipeline.

Two kinds of edits reach the backend through this module:

- Scalar thresholds are applied locally at once and committed after a
  quiescence window, so a burst of edits sends only its final value.
  A failed commit keeps the local value but marks the field as failed,
  so the divergence from the persisted value stays visible.
- Blacklist edits are committed immediately, one at a time, and the
  local set is replaced by the set the backend returns.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from functools import partial

from arbwatch.api.client import ApiClientError, DashboardClient, error_detail
from arbwatch.api.models import DisplaySettings
from arbwatch.config.constants import DEFAULT_MAX_SPREAD_THRESHOLD, SETTINGS_DEBOUNCE_SECONDS
from arbwatch.core.event_bus import Event, EventBus, EventType
from arbwatch.core.scheduler import Debouncer
from arbwatch.core.types import CommandResult, TrackedValue, TradingMode
from arbwatch.telemetry.notices import NoticeBoard


logger = logging.getLogger(__name__)

MIN_THRESHOLD = "min_spread_threshold"
MAX_THRESHOLD = "max_spread_threshold"

_THRESHOLD_LABELS = {
    MIN_THRESHOLD: "Min threshold",
    MAX_THRESHOLD: "Max threshold",
}


class SettingsMutationPipeline:
    """
    Local mirror of the display settings with a write path to the backend.

    The mirror is optimistic for thresholds and authoritative-on-reply
    for the blacklist.
    """

    def __init__(
        self,
        client: DashboardClient,
        notices: NoticeBoard,
        event_bus: EventBus | None = None,
        debounce_seconds: float = SETTINGS_DEBOUNCE_SECONDS,
    ) -> None:
        """
        Initialize pipeline.

        Args:
            client: Backend client.
            notices: Board receiving commit results.
            event_bus: Optional bus receiving SETTINGS_CHANGED after commits.
            debounce_seconds: Quiescence window for threshold edits.
        """
        self._client = client
        self._notices = notices
        self._bus = event_bus

        self._fields: dict[str, TrackedValue[float]] = {
            MIN_THRESHOLD: TrackedValue(1.5),
            MAX_THRESHOLD: TrackedValue(DEFAULT_MAX_SPREAD_THRESHOLD),
        }
        self._committers: dict[str, Callable[[float], Awaitable[None]]] = {
            MIN_THRESHOLD: client.set_min_threshold,
            MAX_THRESHOLD: client.set_max_threshold,
        }
        self._debouncers = {
            name: Debouncer(debounce_seconds, partial(self._commit_threshold, name), name=name)
            for name in self._fields
        }
        self._commit_locks = {name: asyncio.Lock() for name in self._fields}

        self._blacklist: frozenset[str] = frozenset()
        self._blacklist_lock = asyncio.Lock()
        self._trading_mode = TradingMode.SIMULATION
        self._notifications_enabled = True
        self._loaded = False
        self._active = True

    # =========================================================================
    # Load
    # =========================================================================

    async def load(self) -> bool:
        """
        Load settings from the backend.

        Fields with an unsaved local edit keep it.

        Returns:
            True if the settings were loaded.
        """
        try:
            settings = await self._client.get_settings()
        except ApiClientError as e:
            logger.error(f"Failed to fetch settings: {e}")
            return False

        if not self._active:
            return False

        self._apply(settings)
        self._loaded = True
        return True

    def _apply(self, settings: DisplaySettings) -> None:
        snapshot = {
            MIN_THRESHOLD: settings.min_spread_threshold,
            MAX_THRESHOLD: settings.max_spread_threshold,
        }
        for name, value in snapshot.items():
            tracked = self._fields[name]
            if tracked.pending is None:
                tracked.reset(value)
            else:
                tracked.confirmed = value

        self._blacklist = frozenset(settings.blacklisted_coins)
        self._trading_mode = settings.trading_mode
        self._notifications_enabled = settings.notifications_enabled

    # =========================================================================
    # Thresholds
    # =========================================================================

    def set_threshold(self, name: str, value: float) -> None:
        """
        Apply a threshold edit locally and schedule its commit.

        Raises:
            ValueError: If `name` is not a threshold field.
        """
        if name not in self._fields:
            raise ValueError(f"Unknown threshold field: {name}")

        value = float(value)
        self._fields[name].stage(value)
        self._debouncers[name].schedule(value)

    def set_min_threshold(self, value: float) -> None:
        self.set_threshold(MIN_THRESHOLD, value)

    def set_max_threshold(self, value: float) -> None:
        self.set_threshold(MAX_THRESHOLD, value)

    async def _commit_threshold(self, name: str, value: float) -> None:
        tracked = self._fields[name]
        label = _THRESHOLD_LABELS[name]

        # One commit per field at a time; replies are applied in firing order
        async with self._commit_locks[name]:
            try:
                await self._committers[name](value)
            except ApiClientError as e:
                logger.warning(f"{label} commit of {value} failed: {e}")
                if not self._active:
                    return
                # A newer edit may already be waiting; only the committed value failed
                if tracked.pending == value:
                    tracked.fail(error_detail(e, "Update rejected"))
                self._notices.error(f"Failed to update {label.lower()}")
                return

            if not self._active:
                return

            tracked.confirm(value)
            self._notices.success(f"{label}: {value}%")

        await self._publish({name: value})

    # =========================================================================
    # Blacklist
    # =========================================================================

    async def add_to_blacklist(self, coin: str) -> CommandResult:
        """Blacklist a coin symbol (case-insensitive)."""
        symbol = coin.strip().upper()
        if not symbol:
            return CommandResult(False, "Coin symbol is empty")
        return await self._edit_blacklist(symbol, add=True)

    async def remove_from_blacklist(self, coin: str) -> CommandResult:
        """Remove a coin symbol from the blacklist."""
        symbol = coin.strip().upper()
        if not symbol:
            return CommandResult(False, "Coin symbol is empty")
        return await self._edit_blacklist(symbol, add=False)

    async def _edit_blacklist(self, symbol: str, add: bool) -> CommandResult:
        # Edits are serialized so replies are applied in request order
        async with self._blacklist_lock:
            try:
                if add:
                    blacklist = await self._client.add_to_blacklist(symbol)
                else:
                    blacklist = await self._client.remove_from_blacklist(symbol)
            except ApiClientError as e:
                action = "add" if add else "remove"
                logger.warning(f"Blacklist {action} of {symbol} failed: {e}")
                message = f"Failed to {action} {symbol}"
                if self._active:
                    self._notices.error(message)
                return CommandResult(False, error_detail(e, message))

            if not self._active:
                return CommandResult(False, "Settings view closed")

            self._blacklist = frozenset(blacklist)
            if add:
                self._notices.success(f"{symbol} added to blacklist")
            else:
                self._notices.success(f"{symbol} removed from blacklist")

        await self._publish({"blacklisted_coins": sorted(blacklist)})
        return CommandResult(True)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def _publish(self, change: dict[str, object]) -> None:
        if self._bus is not None:
            await self._bus.publish(Event(EventType.SETTINGS_CHANGED, change, source="settings"))

    async def flush(self) -> None:
        """Commit scheduled threshold edits now and wait for every commit."""
        await asyncio.gather(*(d.flush() for d in self._debouncers.values()))

    def close(self) -> None:
        """Drop scheduled commits and ignore late replies."""
        for debouncer in self._debouncers.values():
            debouncer.cancel()
        self._active = False

    # =========================================================================
    # State
    # =========================================================================

    @property
    def min_threshold(self) -> TrackedValue[float]:
        return self._fields[MIN_THRESHOLD]

    @property
    def max_threshold(self) -> TrackedValue[float]:
        return self._fields[MAX_THRESHOLD]

    @property
    def blacklist(self) -> frozenset[str]:
        return self._blacklist

    @property
    def blacklist_busy(self) -> bool:
        """True while a blacklist edit is in flight."""
        return self._blacklist_lock.locked()

    @property
    def trading_mode(self) -> TradingMode:
        return self._trading_mode

    @property
    def loaded(self) -> bool:
        return self._loaded

    @property
    def has_unsaved_changes(self) -> bool:
        return any(f.diverged for f in self._fields.values())

    def snapshot(self) -> DisplaySettings:
        """Settings as currently displayed, including unsaved edits."""
        return DisplaySettings(
            min_spread_threshold=self.min_threshold.value,
            max_spread_threshold=self.max_threshold.value,
            blacklisted_coins=set(self._blacklist),
            trading_mode=self._trading_mode,
            notifications_enabled=self._notifications_enabled,
        )
