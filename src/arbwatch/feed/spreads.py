"""
Opportunity feed controller.

Polls the live spread endpoint, falls back to the scanner test endpoint
when the primary source fails, and keeps the last good opportunity list
when both fail. Only one refresh is ever in flight.
"""

import asyncio
import logging

from arbwatch.api.client import ApiClientError, DashboardClient
from arbwatch.api.models import Opportunity
from arbwatch.config.constants import SPREAD_POLL_INTERVAL
from arbwatch.core.event_bus import Event, EventBus, EventType
from arbwatch.core.scheduler import Scheduler, TimerHandle
from arbwatch.telemetry.metrics import MetricsCollector
from arbwatch.utils.time import get_timestamp_ms


logger = logging.getLogger(__name__)

SOURCE_LIVE = "live"
SOURCE_FALLBACK = "fallback"


class SpreadFeedController:
    """
    Owner of the opportunity collection.

    Features:
    - Primary/fallback sources
    - Single-flight refresh (timer and manual calls coalesce)
    - Wholesale replacement on every successful poll
    - Aggregates computed on demand from the current collection
    """

    TIMER_NAME = "spreads"

    def __init__(
        self,
        client: DashboardClient,
        scheduler: Scheduler,
        event_bus: EventBus | None = None,
        metrics: MetricsCollector | None = None,
        interval: float = SPREAD_POLL_INTERVAL,
    ) -> None:
        """
        Initialize feed controller.

        Args:
            client: Backend client.
            scheduler: Scheduler owning the poll timer.
            event_bus: Optional bus receiving SPREADS_UPDATED / SPREADS_FAILED.
            metrics: Optional metrics collector.
            interval: Poll interval in seconds.
        """
        self._client = client
        self._scheduler = scheduler
        self._bus = event_bus
        self._metrics = metrics
        self._interval = interval

        self._opportunities: tuple[Opportunity, ...] = ()
        self._inflight: asyncio.Task[bool] | None = None
        self._timer: TimerHandle | None = None
        self._active = True

        self._source: str | None = None
        self._last_updated_ms = 0

    # =========================================================================
    # Refresh
    # =========================================================================

    async def refresh(self) -> bool:
        """
        Refresh the opportunity list.

        A call made while another refresh is in flight joins it instead
        of issuing a new request.

        Returns:
            True if the collection was replaced, False if it was kept.
        """
        if self._inflight is not None and not self._inflight.done():
            logger.debug("Spread refresh already in flight, joining it")
            return await asyncio.shield(self._inflight)

        if not self._active:
            return False

        self._inflight = asyncio.create_task(self._refresh(), name="spreads:refresh")
        return await asyncio.shield(self._inflight)

    async def _refresh(self) -> bool:
        source = SOURCE_LIVE
        try:
            opportunities = await self._client.get_live_spreads()
        except ApiClientError as e:
            logger.warning(f"Live spread feed failed ({e}), trying fallback")
            self._count("spreads.fallback")
            try:
                opportunities = await self._client.get_test_spreads()
                source = SOURCE_FALLBACK
            except ApiClientError as fallback_error:
                logger.error(f"Fallback spread feed failed: {fallback_error}")
                self._record(ok=False)
                await self._publish(EventType.SPREADS_FAILED, str(fallback_error))
                return False

        if not self._active:
            logger.debug("Dropping spread feed result received after close")
            return False

        self._opportunities = tuple(opportunities)
        self._source = source
        self._last_updated_ms = get_timestamp_ms()
        self._record(ok=True)

        logger.debug(f"Spread feed updated from {source}: {len(self._opportunities)} opportunities")
        await self._publish(EventType.SPREADS_UPDATED, self._opportunities)
        return True

    async def _publish(self, event_type: EventType, payload: object) -> None:
        if self._bus is not None:
            await self._bus.publish(Event(event_type, payload, source="spreads"))

    def _record(self, ok: bool) -> None:
        if self._metrics is not None:
            self._metrics.record_poll("spreads", ok)

    def _count(self, name: str) -> None:
        if self._metrics is not None:
            self._metrics.increment_counter(name)

    # =========================================================================
    # Timer
    # =========================================================================

    def start(self, interval: float | None = None) -> TimerHandle:
        """Start automatic polling (refreshes immediately)."""
        if interval is not None:
            self._interval = interval
        self._timer = self._scheduler.every(self.TIMER_NAME, self._interval, self.refresh)
        return self._timer

    def stop(self) -> None:
        """Stop automatic polling; an in-flight refresh still completes."""
        if self._timer is not None:
            self._scheduler.cancel(self.TIMER_NAME)
            self._timer = None

    def set_auto_refresh(self, enabled: bool) -> None:
        """Toggle automatic polling."""
        if enabled and not self.auto_refresh:
            self.start()
        elif not enabled:
            self.stop()

    @property
    def auto_refresh(self) -> bool:
        return self._timer is not None and not self._timer.cancelled

    def close(self) -> None:
        """Tear down: stop polling and ignore late results."""
        self.stop()
        self._active = False

    # =========================================================================
    # State & Aggregates
    # =========================================================================

    @property
    def opportunities(self) -> tuple[Opportunity, ...]:
        """Current opportunity collection (read-only)."""
        return self._opportunities

    @property
    def loading(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    @property
    def source(self) -> str | None:
        """Source of the current collection ("live" or "fallback")."""
        return self._source

    @property
    def last_updated_ms(self) -> int:
        return self._last_updated_ms

    @property
    def count(self) -> int:
        return len(self._opportunities)

    @property
    def profitable_count(self) -> int:
        return sum(1 for o in self._opportunities if o.is_profitable)

    @property
    def hot_count(self) -> int:
        return sum(1 for o in self._opportunities if o.is_hot)

    def hot_opportunities(self) -> list[Opportunity]:
        """Opportunities at or above the hot threshold, in feed order."""
        return [o for o in self._opportunities if o.is_hot]
