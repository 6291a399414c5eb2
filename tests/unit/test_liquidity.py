"""
Unit tests for LiquidityCache.

Tests fetch-once semantics, shared in-flight requests, memoized
failures and release.
"""

import asyncio

import pytest

from arbwatch.api.models import LiquidityAnalysis, Opportunity
from arbwatch.feed.liquidity import LiquidityCache, Pending, Resolved, Unavailable
from arbwatch.telemetry.metrics import MetricsCollector
from tests.mocks import MockDashboardClient, make_opportunity


class TestLiquidityCache:
    """Tests for LiquidityCache."""

    @pytest.fixture
    def client(self) -> MockDashboardClient:
        return MockDashboardClient()

    @pytest.fixture
    def cache(self, client: MockDashboardClient, metrics: MetricsCollector) -> LiquidityCache:
        return LiquidityCache(client, metrics=metrics)  # type: ignore[arg-type]

    def test_absent_before_request(self, cache: LiquidityCache, opportunity: Opportunity) -> None:
        """Nothing is fetched until asked."""
        assert cache.peek(opportunity) is None
        assert opportunity not in cache
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_get_fetches_and_resolves(
        self,
        cache: LiquidityCache,
        client: MockDashboardClient,
        opportunity: Opportunity,
    ) -> None:
        """First get fetches; the entry resolves to the analysis."""
        result = await cache.get(opportunity)

        assert isinstance(result, LiquidityAnalysis)
        assert isinstance(cache.peek(opportunity), Resolved)
        assert client.calls_to("get_liquidity") == [(opportunity.key,)]

    @pytest.mark.asyncio
    async def test_resolved_entry_is_not_refetched(
        self,
        cache: LiquidityCache,
        client: MockDashboardClient,
        opportunity: Opportunity,
    ) -> None:
        """Later gets are served from the entry."""
        first = await cache.get(opportunity)
        second = await cache.get(opportunity.key)

        assert first is second
        assert client.call_count("get_liquidity") == 1

    @pytest.mark.asyncio
    async def test_concurrent_gets_share_one_request(
        self,
        cache: LiquidityCache,
        client: MockDashboardClient,
        opportunity: Opportunity,
        metrics: MetricsCollector,
    ) -> None:
        """N concurrent gets for one key issue exactly one request."""
        client.hold("get_liquidity")

        waiters = [asyncio.create_task(cache.get(opportunity)) for _ in range(5)]
        await asyncio.sleep(0)
        assert cache.is_loading(opportunity)
        assert isinstance(cache.peek(opportunity), Pending)

        client.release("get_liquidity")
        results = await asyncio.gather(*waiters)

        assert client.call_count("get_liquidity") == 1
        assert metrics.get_counter("liquidity.fetch") == 1
        assert all(r is results[0] for r in results)
        assert not cache.is_loading(opportunity)

    @pytest.mark.asyncio
    async def test_failure_is_memoized(
        self,
        cache: LiquidityCache,
        client: MockDashboardClient,
        opportunity: Opportunity,
    ) -> None:
        """A failed fetch is remembered and not retried automatically."""
        client.fail("get_liquidity")

        assert await cache.get(opportunity) is None
        assert isinstance(cache.peek(opportunity), Unavailable)

        client.succeed("get_liquidity")
        assert await cache.get(opportunity) is None
        assert client.call_count("get_liquidity") == 1

    @pytest.mark.asyncio
    async def test_release_allows_fresh_fetch(
        self,
        cache: LiquidityCache,
        client: MockDashboardClient,
        opportunity: Opportunity,
    ) -> None:
        """After release a new get fetches again."""
        client.fail("get_liquidity")
        await cache.get(opportunity)

        assert cache.release(opportunity)
        assert cache.peek(opportunity) is None

        client.succeed("get_liquidity")
        assert await cache.get(opportunity) is not None
        assert client.call_count("get_liquidity") == 2

    @pytest.mark.asyncio
    async def test_late_result_after_release_is_dropped(
        self,
        cache: LiquidityCache,
        client: MockDashboardClient,
        opportunity: Opportunity,
    ) -> None:
        """A fetch completing after release does not recreate the entry."""
        client.hold("get_liquidity")
        waiter = asyncio.create_task(cache.get(opportunity))
        await asyncio.sleep(0)

        cache.release(opportunity)
        client.release("get_liquidity")
        await waiter

        assert cache.peek(opportunity) is None
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_keys_are_independent(
        self,
        cache: LiquidityCache,
        client: MockDashboardClient,
    ) -> None:
        """Different exchange routes for one pair are separate entries."""
        a = make_opportunity("BTC/USDT", "binance", "okx")
        b = make_opportunity("BTC/USDT", "okx", "binance")

        await cache.get(a)
        await cache.get(b)

        assert client.call_count("get_liquidity") == 2
        assert len(cache) == 2

    @pytest.mark.asyncio
    async def test_duplicates_share_an_entry(
        self,
        cache: LiquidityCache,
        client: MockDashboardClient,
    ) -> None:
        """Duplicate feed rows with the same identity share the cached analysis."""
        a = make_opportunity(spread_pct=1.0)
        b = make_opportunity(spread_pct=1.2)

        await cache.get(a)
        await cache.get(b)

        assert client.call_count("get_liquidity") == 1

    @pytest.mark.asyncio
    async def test_closed_cache_does_not_fetch(
        self,
        cache: LiquidityCache,
        client: MockDashboardClient,
        opportunity: Opportunity,
    ) -> None:
        """After close, gets return None without requests."""
        cache.close()

        assert await cache.get(opportunity) is None
        assert client.call_count("get_liquidity") == 0
