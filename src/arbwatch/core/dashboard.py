"""
Dashboard orchestrator.

Wires every client-side component to one backend client, owns the
periodic timers and manages the dashboard lifecycle.
"""

import asyncio
import logging
import signal
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from arbwatch.api.client import DashboardClient
from arbwatch.api.models import Opportunity
from arbwatch.config.settings import Settings
from arbwatch.core.event_bus import Event, EventBus, EventType
from arbwatch.core.scheduler import Scheduler
from arbwatch.core.types import TradeOutcome, TradingMode
from arbwatch.feed.liquidity import LiquidityCache, Resolved
from arbwatch.feed.profit import estimate_real_profit
from arbwatch.feed.spreads import SpreadFeedController
from arbwatch.monitor.status import ExchangeStatusMonitor, SimulationStatsMonitor
from arbwatch.settings.credentials import CredentialManager
from arbwatch.settings.pipeline import SettingsMutationPipeline
from arbwatch.telemetry.logger import AsyncLogger, setup_logging
from arbwatch.telemetry.metrics import MetricsCollector
from arbwatch.telemetry.notices import NoticeBoard
from arbwatch.telemetry.reporter import CLIReporter
from arbwatch.trading.autotrader import AutoTraderController
from arbwatch.trading.executor import TradeExecutor
from arbwatch.trading.mode import TradingModeSelector


logger = logging.getLogger(__name__)


class Dashboard:
    """
    Composition root of the dashboard client.

    Manages the complete lifecycle of:
    - Opportunity feed polling and liquidity lookups
    - Settings edits and credential management
    - Auto-trader mirroring and manual trades
    - Status monitors, notices and the terminal panel
    """

    def __init__(
        self,
        settings: Settings,
        client: DashboardClient | None = None,
        configure_logging: bool = True,
        enable_reporter: bool = True,
    ) -> None:
        """
        Initialize the dashboard.

        Args:
            settings: Application settings.
            client: Backend client; created from `settings` when omitted.
            configure_logging: Install the queue-based log handlers on setup.
            enable_reporter: Render the terminal panel while running.
        """
        self._settings = settings
        self._configure_logging = configure_logging
        self._enable_reporter = enable_reporter
        self._running = False
        self._closed = False
        self._shutdown_event = asyncio.Event()

        # Infrastructure
        self._event_bus = EventBus()
        self._metrics = MetricsCollector()
        self._scheduler = Scheduler()
        self._notices = NoticeBoard(ttl=settings.notice_ttl_seconds, event_bus=self._event_bus)
        self._reporter: CLIReporter | None = None
        self._async_logger: AsyncLogger | None = None

        self._client = client or DashboardClient(
            base_url=settings.base_url,
            timeout=settings.request_timeout_seconds,
            metrics=self._metrics,
        )

        # Components
        self._feed = SpreadFeedController(
            client=self._client,
            scheduler=self._scheduler,
            event_bus=self._event_bus,
            metrics=self._metrics,
            interval=settings.spread_poll_interval,
        )
        self._liquidity = LiquidityCache(self._client, metrics=self._metrics)
        self._settings_pipeline = SettingsMutationPipeline(
            client=self._client,
            notices=self._notices,
            event_bus=self._event_bus,
            debounce_seconds=settings.settings_debounce_seconds,
        )
        self._credentials = CredentialManager(self._client, self._notices)
        self._autotrader = AutoTraderController(
            client=self._client,
            scheduler=self._scheduler,
            notices=self._notices,
            event_bus=self._event_bus,
            metrics=self._metrics,
            interval=settings.auto_trader_poll_interval,
        )
        self._mode = TradingModeSelector(self._autotrader, event_bus=self._event_bus)
        self._executor = TradeExecutor(self._client, self._event_bus, self._metrics)
        self._simulation_stats = SimulationStatsMonitor(
            self._client,
            self._scheduler,
            metrics=self._metrics,
            interval=settings.simulation_stats_poll_interval,
        )
        self._exchanges = ExchangeStatusMonitor(
            self._client,
            self._scheduler,
            metrics=self._metrics,
            interval=settings.exchange_status_poll_interval,
        )

    async def setup(self) -> None:
        """Initialize logging, subscriptions and one-shot loads."""
        if self._configure_logging:
            self._async_logger = setup_logging(level=self._settings.log_level)

        logger.info(f"Initializing dashboard against {self._client.base_url}...")

        self._event_bus.subscribe(EventType.SETTINGS_CHANGED, self._on_settings_changed)
        self._event_bus.subscribe_sync(EventType.AUTO_STATUS_UPDATED, self._on_auto_status)

        if not await self._settings_pipeline.load():
            logger.warning("Display settings unavailable, using defaults")
        await self._credentials.refresh()

        if self._enable_reporter:
            self._reporter = CLIReporter(
                metrics=self._metrics,
                feed=self._feed,
                autotrader=self._autotrader,
                notices=self._notices,
                mode=self._mode,
                simulation_stats=self._simulation_stats,
                exchanges=self._exchanges,
            )

        logger.info("Dashboard initialization complete")

    async def _on_settings_changed(self, event: Event[Any]) -> None:
        """Refresh the feed so the table reflects new filters."""
        logger.debug(f"Settings changed ({event.payload}), refreshing feed")
        await self._feed.refresh()

    def _on_auto_status(self, event: Event[Any]) -> None:
        self._mode.reconcile()

    def start_timers(self) -> None:
        """Start every periodic poll."""
        if self._settings.auto_refresh:
            self._feed.start(self._settings.spread_poll_interval)
        self._autotrader.start_polling(self._settings.auto_trader_poll_interval)
        self._simulation_stats.start()
        self._exchanges.start()
        logger.info(f"Timers started: {', '.join(self._scheduler.active_timers)}")

    async def run(self) -> None:
        """Run until a shutdown signal arrives."""
        self._running = True

        # Set up signal handlers
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, self._handle_shutdown)

        try:
            logger.info("Starting dashboard...")
            self.start_timers()

            if self._reporter:
                self._reporter.start(interval=self._settings.reporter_interval_seconds)

            await self._shutdown_event.wait()

        except Exception as e:
            logger.error(f"Dashboard error: {e}")
            raise

        finally:
            for sig in (signal.SIGINT, signal.SIGTERM):
                loop.remove_signal_handler(sig)
            await self.shutdown()

    def _handle_shutdown(self) -> None:
        """Handle shutdown signal."""
        logger.info("Shutdown signal received")
        self._running = False
        self._shutdown_event.set()

    def request_shutdown(self) -> None:
        """Ask a running dashboard to stop."""
        self._handle_shutdown()

    async def shutdown(self) -> None:
        """Gracefully shut down the dashboard. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._running = False
        logger.info("Shutting down dashboard...")

        # Stop reporter
        if self._reporter:
            self._reporter.stop()
            self._reporter.print_summary()

        self._feed.close()

        # Commit edits still inside their debounce window
        await self._settings_pipeline.flush()

        self._autotrader.close()
        self._simulation_stats.close()
        self._exchanges.close()
        self._settings_pipeline.close()
        self._credentials.close()
        self._liquidity.close()

        await self._scheduler.aclose()
        await self._event_bus.publish(Event(EventType.SHUTDOWN, None, source="dashboard"))
        self._notices.clear()

        await self._client.close()

        logger.info("Dashboard shutdown complete")

        # Stop async logger
        if self._async_logger:
            self._async_logger.stop()
            self._async_logger = None

    # =========================================================================
    # User Actions
    # =========================================================================

    async def execute_trade(
        self,
        opportunity: Opportunity,
        amount_usdt: float | None = None,
        mode: TradingMode | None = None,
    ) -> TradeOutcome:
        """
        Execute an opportunity and report the outcome as a notice.

        Args:
            opportunity: Opportunity to trade.
            amount_usdt: Notional; defaults to the configured trade amount.
            mode: Execution mode; defaults to the selected mode. A mode the
                backend policy forbids is refused without a request.
        """
        amount = amount_usdt if amount_usdt is not None else self._settings.default_trade_amount_usdt
        mode = mode or self._mode.mode
        if not self._mode.is_allowed(mode):
            logger.warning(f"Refusing {mode.value} trade on {opportunity.key}: backend forces testnet")
            outcome = TradeOutcome(False, mode, error="Live trading disabled, backend forces testnet")
            self._notices.error(f"Trade failed: {outcome.error}")
            return outcome

        outcome = await self._executor.execute(opportunity, amount, mode)

        if not outcome.success:
            self._notices.error(f"Trade failed: {outcome.error}")
        elif outcome.is_partial:
            self._notices.error(f"Trade {opportunity.pair} partially executed")
        else:
            profit = f"{outcome.profit:+.2f} USDT" if outcome.profit is not None else "n/a"
            self._notices.success(f"Trade {opportunity.pair} executed, profit {profit}")
        return outcome

    def estimate_profit(self, opportunity: Opportunity, amount_usdt: float | None = None) -> float | None:
        """Profit estimate from an already loaded liquidity analysis, else None."""
        amount = amount_usdt if amount_usdt is not None else self._settings.default_trade_amount_usdt
        entry = self._liquidity.peek(opportunity)
        analysis = entry.analysis if isinstance(entry, Resolved) else None
        return estimate_real_profit(opportunity, analysis, amount)

    def toggle_auto_refresh(self) -> bool:
        """Toggle feed polling; returns the new setting."""
        enabled = not self._feed.auto_refresh
        self._feed.set_auto_refresh(enabled)
        logger.info(f"Auto refresh {'enabled' if enabled else 'disabled'}")
        return enabled

    # =========================================================================
    # Components
    # =========================================================================

    @property
    def is_running(self) -> bool:
        """Check if dashboard is running."""
        return self._running

    @property
    def client(self) -> DashboardClient:
        return self._client

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    @property
    def scheduler(self) -> Scheduler:
        return self._scheduler

    @property
    def metrics(self) -> MetricsCollector:
        """Get metrics collector."""
        return self._metrics

    @property
    def notices(self) -> NoticeBoard:
        return self._notices

    @property
    def feed(self) -> SpreadFeedController:
        return self._feed

    @property
    def liquidity(self) -> LiquidityCache:
        return self._liquidity

    @property
    def settings(self) -> SettingsMutationPipeline:
        return self._settings_pipeline

    @property
    def credentials(self) -> CredentialManager:
        return self._credentials

    @property
    def autotrader(self) -> AutoTraderController:
        return self._autotrader

    @property
    def mode(self) -> TradingModeSelector:
        return self._mode

    @property
    def executor(self) -> TradeExecutor:
        return self._executor

    @property
    def simulation_stats(self) -> SimulationStatsMonitor:
        return self._simulation_stats

    @property
    def exchanges(self) -> ExchangeStatusMonitor:
        return self._exchanges


@asynccontextmanager
async def create_dashboard(
    settings: Settings,
    client: DashboardClient | None = None,
    **kwargs: Any,
) -> AsyncIterator[Dashboard]:
    """
    Create and manage dashboard lifecycle.

    Usage:
        async with create_dashboard(settings) as dashboard:
            await dashboard.run()
    """
    dashboard = Dashboard(settings, client=client, **kwargs)

    try:
        await dashboard.setup()
        yield dashboard
    finally:
        await dashboard.shutdown()
