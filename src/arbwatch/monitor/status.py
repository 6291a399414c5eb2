"""
Periodic status monitors.

Each monitor polls one read-only endpoint on its own timer and keeps the
latest known value. A failed poll is logged and the previous value is
kept.
"""

import logging
from typing import Generic, TypeVar

from arbwatch.api.client import ApiClientError, DashboardClient
from arbwatch.api.models import ExchangeConnection, SimulationStats
from arbwatch.config.constants import (
    EXCHANGE_STATUS_POLL_INTERVAL,
    SIMULATION_STATS_POLL_INTERVAL,
)
from arbwatch.core.scheduler import Scheduler, TimerHandle
from arbwatch.telemetry.metrics import MetricsCollector
from arbwatch.utils.time import get_timestamp_ms


logger = logging.getLogger(__name__)

T = TypeVar("T")


class StatusMonitor(Generic[T]):
    """Base class for latest-value pollers."""

    NAME = "status"
    DEFAULT_INTERVAL = 60.0

    def __init__(
        self,
        client: DashboardClient,
        scheduler: Scheduler,
        metrics: MetricsCollector | None = None,
        interval: float | None = None,
    ) -> None:
        self._client = client
        self._scheduler = scheduler
        self._metrics = metrics
        self._interval = interval if interval is not None else self.DEFAULT_INTERVAL

        self._value: T | None = None
        self._last_updated_ms = 0
        self._timer: TimerHandle | None = None
        self._active = True

    async def _fetch(self) -> T:
        """Fetch the current value from the backend."""
        raise NotImplementedError

    async def refresh(self) -> bool:
        """Poll once; returns True if the value was updated."""
        try:
            value = await self._fetch()
        except ApiClientError as e:
            logger.warning(f"{self.NAME} poll failed: {e}")
            self._record(ok=False)
            return False

        if not self._active:
            return False

        self._value = value
        self._last_updated_ms = get_timestamp_ms()
        self._record(ok=True)
        return True

    def _record(self, ok: bool) -> None:
        if self._metrics is not None:
            self._metrics.record_poll(self.NAME, ok)

    def start(self) -> TimerHandle:
        self._timer = self._scheduler.every(self.NAME, self._interval, self.refresh)
        return self._timer

    def stop(self) -> None:
        if self._timer is not None:
            self._scheduler.cancel(self.NAME)
            self._timer = None

    def close(self) -> None:
        self.stop()
        self._active = False

    @property
    def value(self) -> T | None:
        """Latest known value, None until the first successful poll."""
        return self._value

    @property
    def last_updated_ms(self) -> int:
        return self._last_updated_ms


class SimulationStatsMonitor(StatusMonitor[SimulationStats]):
    """Polls aggregate statistics of simulated trades."""

    NAME = "simulation_stats"
    DEFAULT_INTERVAL = SIMULATION_STATS_POLL_INTERVAL

    async def _fetch(self) -> SimulationStats:
        return await self._client.get_simulation_stats()


class ExchangeStatusMonitor(StatusMonitor[list[ExchangeConnection]]):
    """Polls exchange connectivity."""

    NAME = "exchange_status"
    DEFAULT_INTERVAL = EXCHANGE_STATUS_POLL_INTERVAL

    async def _fetch(self) -> list[ExchangeConnection]:
        return await self._client.get_exchanges()

    @property
    def connected_count(self) -> int:
        return sum(1 for e in self._value or () if e.connected)

    @property
    def disconnected(self) -> list[str]:
        """Labels of exchanges currently reported as disconnected."""
        return [e.label for e in self._value or () if not e.connected]
