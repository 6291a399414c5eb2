"""
Integration tests for the dashboard orchestrator.

Runs the full component graph against the mock backend.
"""

import asyncio
import io

import pytest

from arbwatch.api.models import Opportunity, TradeDetails, TradeResult
from arbwatch.config.settings import Settings
from arbwatch.core.dashboard import Dashboard, create_dashboard
from arbwatch.core.event_bus import Event, EventType
from arbwatch.core.types import NoticeLevel, TradingMode
from arbwatch.telemetry.reporter import CLIReporter
from tests.mocks import MockDashboardClient, wait_for


def make_dashboard(settings: Settings, client: MockDashboardClient) -> Dashboard:
    return Dashboard(
        settings,
        client=client,  # type: ignore[arg-type]
        configure_logging=False,
        enable_reporter=False,
    )


class TestLifecycle:
    """Tests for setup, timers and shutdown."""

    @pytest.mark.asyncio
    async def test_setup_loads_settings_and_credentials(
        self,
        settings: Settings,
        mock_client: MockDashboardClient,
    ) -> None:
        mock_client.configured_exchanges.append("binance")
        dashboard = make_dashboard(settings, mock_client)

        await dashboard.setup()

        assert dashboard.settings.loaded
        assert dashboard.settings.min_threshold.value == 0.5
        assert dashboard.credentials.is_configured("binance")
        await dashboard.shutdown()

    @pytest.mark.asyncio
    async def test_setup_survives_unreachable_backend(
        self,
        settings: Settings,
        mock_client: MockDashboardClient,
    ) -> None:
        mock_client.fail("get_settings")
        mock_client.fail("get_configured_exchanges")
        dashboard = make_dashboard(settings, mock_client)

        await dashboard.setup()

        assert not dashboard.settings.loaded
        assert dashboard.credentials.configured == frozenset()
        await dashboard.shutdown()

    @pytest.mark.asyncio
    async def test_timers_poll_every_component(
        self,
        settings: Settings,
        mock_client: MockDashboardClient,
    ) -> None:
        dashboard = make_dashboard(settings, mock_client)
        await dashboard.setup()

        dashboard.start_timers()
        assert sorted(dashboard.scheduler.active_timers) == [
            "autotrader",
            "exchange_status",
            "simulation_stats",
            "spreads",
        ]

        await wait_for(lambda: dashboard.feed.count == 4)
        await wait_for(lambda: dashboard.autotrader.status is not None)
        await wait_for(lambda: dashboard.exchanges.value is not None)

        await dashboard.shutdown()
        assert dashboard.scheduler.active_timers == []
        assert mock_client.closed

    @pytest.mark.asyncio
    async def test_auto_refresh_disabled_skips_feed_timer(
        self,
        settings: Settings,
        mock_client: MockDashboardClient,
    ) -> None:
        dashboard = make_dashboard(settings.model_copy(update={"auto_refresh": False}), mock_client)
        await dashboard.setup()

        dashboard.start_timers()
        assert "spreads" not in dashboard.scheduler.active_timers

        assert dashboard.toggle_auto_refresh() is True
        assert "spreads" in dashboard.scheduler.active_timers
        await dashboard.shutdown()

    @pytest.mark.asyncio
    async def test_shutdown_is_idempotent(
        self,
        settings: Settings,
        mock_client: MockDashboardClient,
    ) -> None:
        dashboard = make_dashboard(settings, mock_client)
        await dashboard.setup()
        shutdowns: list[Event] = []
        dashboard.event_bus.subscribe_sync(EventType.SHUTDOWN, shutdowns.append)

        await dashboard.shutdown()
        await dashboard.shutdown()

        assert len(shutdowns) == 1

    @pytest.mark.asyncio
    async def test_shutdown_commits_pending_edits(
        self,
        settings: Settings,
        mock_client: MockDashboardClient,
    ) -> None:
        """An edit still inside its debounce window is committed, not lost."""
        dashboard = make_dashboard(
            settings.model_copy(update={"settings_debounce_seconds": 5.0}),
            mock_client,
        )
        await dashboard.setup()

        dashboard.settings.set_max_threshold(9.0)
        await dashboard.shutdown()

        assert mock_client.calls_to("set_max_threshold") == [(9.0,)]

    @pytest.mark.asyncio
    async def test_run_until_shutdown_requested(
        self,
        settings: Settings,
        mock_client: MockDashboardClient,
    ) -> None:
        dashboard = make_dashboard(settings, mock_client)
        await dashboard.setup()

        task = asyncio.create_task(dashboard.run())
        await wait_for(lambda: dashboard.feed.count == 4)
        assert dashboard.is_running

        dashboard.request_shutdown()
        await asyncio.wait_for(task, timeout=2.0)

        assert not dashboard.is_running
        assert mock_client.closed

    @pytest.mark.asyncio
    async def test_create_dashboard_context(
        self,
        settings: Settings,
        mock_client: MockDashboardClient,
    ) -> None:
        async with create_dashboard(
            settings,
            client=mock_client,  # type: ignore[arg-type]
            configure_logging=False,
            enable_reporter=False,
        ) as dashboard:
            assert dashboard.settings.loaded

        assert mock_client.closed


class TestComponentWiring:
    """Tests for event-driven interplay between components."""

    @pytest.mark.asyncio
    async def test_committed_setting_refreshes_feed(
        self,
        settings: Settings,
        mock_client: MockDashboardClient,
    ) -> None:
        dashboard = make_dashboard(settings, mock_client)
        await dashboard.setup()

        dashboard.settings.set_min_threshold(1.0)
        await dashboard.settings.flush()

        assert mock_client.call_count("get_live_spreads") == 1
        assert dashboard.feed.count == 4
        await dashboard.shutdown()

    @pytest.mark.asyncio
    async def test_blacklist_edit_refreshes_feed(
        self,
        settings: Settings,
        mock_client: MockDashboardClient,
    ) -> None:
        dashboard = make_dashboard(settings, mock_client)
        await dashboard.setup()

        await dashboard.settings.add_to_blacklist("xrp")

        assert mock_client.call_count("get_live_spreads") == 1
        await dashboard.shutdown()

    @pytest.mark.asyncio
    async def test_forced_testnet_downgrades_live_mode(
        self,
        settings: Settings,
        mock_client: MockDashboardClient,
    ) -> None:
        dashboard = make_dashboard(settings, mock_client)
        await dashboard.setup()
        await dashboard.autotrader.refresh()
        assert dashboard.mode.select(TradingMode.LIVE)

        mock_client.use_testnet = True
        await dashboard.autotrader.refresh()

        assert dashboard.mode.mode == TradingMode.TESTNET
        await dashboard.shutdown()


class TestUserActions:
    """Tests for manual trades and profit estimates."""

    @pytest.mark.asyncio
    async def test_trade_success_notice(
        self,
        settings: Settings,
        mock_client: MockDashboardClient,
        opportunity: Opportunity,
    ) -> None:
        dashboard = make_dashboard(settings, mock_client)
        await dashboard.setup()

        outcome = await dashboard.execute_trade(opportunity)

        assert outcome.success
        (request,) = mock_client.calls_to("execute_trade")[0]
        assert request.amount_usdt == settings.default_trade_amount_usdt
        assert request.mode == TradingMode.SIMULATION

        notice = dashboard.notices.transient[-1]
        assert notice.level == NoticeLevel.SUCCESS
        assert "+1.25 USDT" in notice.text
        await dashboard.shutdown()

    @pytest.mark.asyncio
    async def test_trade_failure_notice(
        self,
        settings: Settings,
        mock_client: MockDashboardClient,
        opportunity: Opportunity,
    ) -> None:
        dashboard = make_dashboard(settings, mock_client)
        await dashboard.setup()
        mock_client.fail_with_detail("execute_trade", "Spread closed")

        outcome = await dashboard.execute_trade(opportunity, amount_usdt=50.0)

        assert not outcome.success
        assert dashboard.notices.transient[-1].text == "Trade failed: Spread closed"
        await dashboard.shutdown()

    @pytest.mark.asyncio
    async def test_live_trade_refused_when_testnet_forced(
        self,
        settings: Settings,
        opportunity: Opportunity,
    ) -> None:
        client = MockDashboardClient(use_testnet=True)
        dashboard = make_dashboard(settings, client)
        await dashboard.setup()
        await dashboard.autotrader.refresh()

        outcome = await dashboard.execute_trade(opportunity, 100.0, mode=TradingMode.LIVE)

        assert not outcome.success
        assert outcome.mode == TradingMode.LIVE
        assert client.calls_to("execute_trade") == []
        assert dashboard.notices.transient[-1].level == NoticeLevel.ERROR
        await dashboard.shutdown()

    @pytest.mark.asyncio
    async def test_partial_trade_notice(
        self,
        settings: Settings,
        mock_client: MockDashboardClient,
        opportunity: Opportunity,
    ) -> None:
        dashboard = make_dashboard(settings, mock_client)
        await dashboard.setup()
        mock_client.responses["execute_trade"] = TradeResult(
            success=True,
            trade=TradeDetails(sell_order_id="s-2"),
        )

        await dashboard.execute_trade(opportunity)

        notice = dashboard.notices.transient[-1]
        assert notice.level == NoticeLevel.ERROR
        assert "partially" in notice.text
        await dashboard.shutdown()

    @pytest.mark.asyncio
    async def test_estimate_needs_loaded_analysis(
        self,
        settings: Settings,
        mock_client: MockDashboardClient,
        opportunity: Opportunity,
    ) -> None:
        dashboard = make_dashboard(settings, mock_client)
        await dashboard.setup()

        assert dashboard.estimate_profit(opportunity) is None

        await dashboard.liquidity.get(opportunity)

        # 10 USDT per 1000 scaled to 100, minus 0.5% slippage on 100
        assert dashboard.estimate_profit(opportunity, 100.0) == pytest.approx(0.5)
        await dashboard.shutdown()


class TestReporter:
    """Tests for the terminal panel."""

    @pytest.mark.asyncio
    async def test_render_after_polls(
        self,
        settings: Settings,
        mock_client: MockDashboardClient,
    ) -> None:
        dashboard = make_dashboard(settings, mock_client)
        await dashboard.setup()
        await dashboard.feed.refresh()
        await dashboard.autotrader.refresh()
        await dashboard.exchanges.refresh()
        await dashboard.simulation_stats.refresh()
        dashboard.notices.error("Failed to add LUNA")

        output = io.StringIO()
        reporter = CLIReporter(
            metrics=dashboard.metrics,
            feed=dashboard.feed,
            autotrader=dashboard.autotrader,
            notices=dashboard.notices,
            mode=dashboard.mode,
            simulation_stats=dashboard.simulation_stats,
            exchanges=dashboard.exchanges,
            output=output,
        )
        panel = reporter.render()
        lines = panel.splitlines()

        assert all(len(line) == 78 for line in lines)
        assert "MODE: SIMULATION" in panel
        assert "Opportunities: 4" in panel
        assert "Auto-trader: IDLE" in panel
        assert "Exchanges: 1/2 connected (down: okx)" in panel
        assert "[!] Failed to add LUNA" in panel

        # Hottest first
        rows = [line for line in lines if "/USDT" in line]
        assert "BTC/USDT" in rows[0] and "*" in rows[0]
        assert "XRP/USDT" in rows[-1]

        reporter.print_summary()
        assert "SESSION SUMMARY" in output.getvalue()
        await dashboard.shutdown()
