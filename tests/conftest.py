"""
Pytest configuration and shared fixtures.

Provides reusable test fixtures for all test modules.
"""

import pytest

from arbwatch.api.models import LiquidityAnalysis, Opportunity
from arbwatch.config.settings import Settings
from arbwatch.core.event_bus import EventBus
from arbwatch.core.scheduler import Scheduler
from arbwatch.telemetry.metrics import MetricsCollector
from arbwatch.telemetry.notices import NoticeBoard
from tests.mocks import MockDashboardClient, make_analysis, make_opportunity


# =============================================================================
# Opportunity Fixtures
# =============================================================================


@pytest.fixture
def opportunity() -> Opportunity:
    """BTC/USDT binance -> okx, 1% spread, 10 USDT per 1000."""
    return make_opportunity()


@pytest.fixture
def opportunities() -> list[Opportunity]:
    """Feed with two hot and one unprofitable opportunity."""
    return [
        make_opportunity("BTC/USDT", "binance", "okx", spread_pct=2.0, profit_usdt=20.0),
        make_opportunity("ETH/USDT", "bybit", "kucoin", spread_pct=0.4, profit_usdt=4.0),
        make_opportunity("SOL/USDT", "mexc", "gateio", spread_pct=3.1, net_spread_pct=1.5),
        make_opportunity("XRP/USDT", "okx", "binance", spread_pct=0.8, net_spread_pct=-0.2),
    ]


@pytest.fixture
def analysis() -> LiquidityAnalysis:
    """Liquidity analysis with 0.5% total slippage."""
    return make_analysis(total_slippage_pct=0.5)


# =============================================================================
# Infrastructure Fixtures
# =============================================================================


@pytest.fixture
def mock_client(opportunities: list[Opportunity]) -> MockDashboardClient:
    """Mock backend serving the sample feed."""
    return MockDashboardClient(opportunities=opportunities)


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def scheduler() -> Scheduler:
    return Scheduler()


@pytest.fixture
def metrics() -> MetricsCollector:
    return MetricsCollector()


@pytest.fixture
def notices(event_bus: EventBus) -> NoticeBoard:
    """Notice board with a short lifetime for transient notices."""
    return NoticeBoard(ttl=0.2, event_bus=event_bus)


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment and .env files."""
    return Settings(
        _env_file=None,
        api_url="http://mock/api/v1",
        spread_poll_interval=0.05,
        auto_trader_poll_interval=0.05,
        simulation_stats_poll_interval=0.05,
        exchange_status_poll_interval=0.05,
        settings_debounce_seconds=0.02,
        notice_ttl_seconds=0.5,
    )
