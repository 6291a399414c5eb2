"""
Lazy, fetch-once cache of liquidity analyses.

Each opportunity detail view owns an entry keyed by the opportunity's
identity. An entry is in exactly one of three states: pending, resolved
or unavailable; no entry at all means the analysis was never requested.
A failed fetch is remembered as unavailable and only a fresh entry
(after `release`) fetches again.
"""

import asyncio
import logging
from dataclasses import dataclass
from functools import partial

from arbwatch.api.client import ApiClientError, DashboardClient
from arbwatch.api.models import LiquidityAnalysis, Opportunity
from arbwatch.core.types import OpportunityKey
from arbwatch.telemetry.metrics import MetricsCollector


logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class Resolved:
    """Analysis loaded successfully."""

    analysis: LiquidityAnalysis


@dataclass(slots=True, frozen=True)
class Unavailable:
    """Fetch failed; not retried for the life of the entry."""

    reason: str


@dataclass(slots=True, frozen=True)
class Pending:
    """Fetch in flight; every caller awaits the same task."""

    task: "asyncio.Task[Resolved | Unavailable]"


CacheEntry = Pending | Resolved | Unavailable


class LiquidityCache:
    """
    Keyed cache wrapping the liquidity-analysis endpoint.

    Concurrent `get` calls for one key share a single request. Entries
    live until released by their owning view.
    """

    def __init__(
        self,
        client: DashboardClient,
        metrics: MetricsCollector | None = None,
    ) -> None:
        """
        Initialize cache.

        Args:
            client: Backend client.
            metrics: Optional metrics collector.
        """
        self._client = client
        self._metrics = metrics
        self._entries: dict[OpportunityKey, CacheEntry] = {}
        self._active = True

    @staticmethod
    def _key(target: Opportunity | OpportunityKey) -> OpportunityKey:
        return target.key if isinstance(target, Opportunity) else target

    async def get(self, target: Opportunity | OpportunityKey) -> LiquidityAnalysis | None:
        """
        Get the analysis for an opportunity, fetching it at most once.

        Args:
            target: Opportunity or its identity key.

        Returns:
            The analysis, or None if it is unavailable.
        """
        key = self._key(target)
        entry = self._entries.get(key)

        if isinstance(entry, Resolved):
            return entry.analysis
        if isinstance(entry, Unavailable):
            return None

        if entry is None:
            if not self._active:
                return None
            entry = self._start_fetch(key)

        # Shielded so one cancelled caller does not cancel the shared fetch
        result = await asyncio.shield(entry.task)
        return result.analysis if isinstance(result, Resolved) else None

    def _start_fetch(self, key: OpportunityKey) -> Pending:
        task = asyncio.create_task(self._fetch(key), name=f"liquidity:{key}")
        pending = Pending(task)
        self._entries[key] = pending
        task.add_done_callback(partial(self._settle, key, pending))

        if self._metrics is not None:
            self._metrics.increment_counter("liquidity.fetch")
        logger.debug(f"Fetching liquidity for {key}")
        return pending

    async def _fetch(self, key: OpportunityKey) -> Resolved | Unavailable:
        try:
            analysis = await self._client.get_liquidity(key)
        except ApiClientError as e:
            logger.warning(f"Liquidity unavailable for {key}: {e}")
            return Unavailable(str(e))
        return Resolved(analysis)

    def _settle(
        self,
        key: OpportunityKey,
        pending: Pending,
        task: "asyncio.Task[Resolved | Unavailable]",
    ) -> None:
        # The entry may have been released (and re-created) while in flight
        if self._entries.get(key) is not pending:
            return

        if task.cancelled():
            del self._entries[key]
        elif task.exception() is not None:
            self._entries[key] = Unavailable(repr(task.exception()))
        else:
            self._entries[key] = task.result()

    def peek(self, target: Opportunity | OpportunityKey) -> CacheEntry | None:
        """Current entry for a key without triggering a fetch."""
        return self._entries.get(self._key(target))

    def is_loading(self, target: Opportunity | OpportunityKey) -> bool:
        return isinstance(self.peek(target), Pending)

    def release(self, target: Opportunity | OpportunityKey) -> bool:
        """
        Discard an entry when its owning view is torn down.

        An in-flight fetch is not aborted, but its result is dropped.

        Returns:
            True if an entry existed.
        """
        return self._entries.pop(self._key(target), None) is not None

    def clear(self) -> None:
        """Release every entry."""
        self._entries.clear()

    def close(self) -> None:
        """Release everything and refuse new fetches."""
        self._active = False
        self.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, target: object) -> bool:
        if isinstance(target, (Opportunity, OpportunityKey)):
            return self._key(target) in self._entries
        return False
