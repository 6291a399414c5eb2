"""
CLI reporter for real-time dashboard display.

Provides a terminal panel showing the opportunity table, auto-trader
state and client health for headless use.
"""

import asyncio
import sys
from datetime import timedelta
from typing import TextIO

from arbwatch import __version__
from arbwatch.core.types import NoticeLevel
from arbwatch.feed.spreads import SpreadFeedController
from arbwatch.monitor.status import ExchangeStatusMonitor, SimulationStatsMonitor
from arbwatch.telemetry.metrics import MetricsCollector
from arbwatch.telemetry.notices import NoticeBoard
from arbwatch.trading.autotrader import AutoTraderController
from arbwatch.trading.mode import TradingModeSelector
from arbwatch.utils.time import format_timestamp_ms


class CLIReporter:
    """
    Real-time CLI dashboard.

    Displays a formatted status panel with:
    - Feed source and aggregates
    - Top opportunities by effective spread
    - Auto-trader state and session results
    - Visible notices and request latency
    """

    # Box drawing characters
    BOX_TL = "\u2554"  # ╔
    BOX_TR = "\u2557"  # ╗
    BOX_BL = "\u255a"  # ╚
    BOX_BR = "\u255d"  # ╝
    BOX_H = "\u2550"  # ═
    BOX_V = "\u2551"  # ║
    BOX_LT = "\u2560"  # ╠
    BOX_RT = "\u2563"  # ╣
    THIN_V = "\u2502"  # │

    NOTICE_MARKS = {
        NoticeLevel.SUCCESS: "+",
        NoticeLevel.INFO: "i",
        NoticeLevel.ERROR: "!",
    }

    def __init__(
        self,
        metrics: MetricsCollector,
        feed: SpreadFeedController,
        autotrader: AutoTraderController,
        notices: NoticeBoard,
        mode: TradingModeSelector | None = None,
        simulation_stats: SimulationStatsMonitor | None = None,
        exchanges: ExchangeStatusMonitor | None = None,
        width: int = 78,
        max_rows: int = 10,
        output: TextIO | None = None,
    ) -> None:
        """
        Initialize CLI reporter.

        Args:
            metrics: Metrics collector instance.
            feed: Opportunity feed.
            autotrader: Auto-trader mirror.
            notices: Notice board.
            mode: Optional trading mode selector.
            simulation_stats: Optional simulation statistics monitor.
            exchanges: Optional exchange connectivity monitor.
            width: Panel width in characters.
            max_rows: Opportunities shown in the table.
            output: Output stream (default: stdout).
        """
        self._metrics = metrics
        self._feed = feed
        self._autotrader = autotrader
        self._notices = notices
        self._mode = mode
        self._simulation_stats = simulation_stats
        self._exchanges = exchanges
        self._width = width
        self._max_rows = max_rows
        self._output = output or sys.stdout
        self._running = False
        self._task: asyncio.Task[None] | None = None

    def _format_uptime(self, seconds: float) -> str:
        """Format uptime as HH:MM:SS."""
        td = timedelta(seconds=int(seconds))
        hours, remainder = divmod(int(td.total_seconds()), 3600)
        minutes, secs = divmod(remainder, 60)
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"

    def _pad(self, text: str, width: int) -> str:
        """Pad text to width."""
        return text.ljust(width)[:width]

    def _line(self, content: str) -> str:
        """Create a line with borders."""
        return f"{self.BOX_V}{self._pad(content, self._width - 2)}{self.BOX_V}"

    def _divider(self) -> str:
        """Create a horizontal divider."""
        return f"{self.BOX_LT}{self.BOX_H * (self._width - 2)}{self.BOX_RT}"

    def _render_header(self) -> list[str]:
        mode = self._mode.mode.value.upper() if self._mode else "SIMULATION"
        testnet = " (TESTNET FORCED)" if self._autotrader.testnet_forced else ""
        uptime = self._format_uptime(self._metrics.uptime_seconds)
        updated = (
            format_timestamp_ms(self._feed.last_updated_ms)
            if self._feed.last_updated_ms
            else "--:--:--"
        )
        refresh = "auto" if self._feed.auto_refresh else "manual"

        return [
            self._line(f"  ARBWATCH v{__version__} | MODE: {mode}{testnet}"),
            self._divider(),
            self._line(
                f"  Uptime: {uptime}  |  Feed: {self._feed.source or '---'} ({refresh})"
                f"  |  Updated: {updated}"
            ),
        ]

    def _render_aggregates(self) -> list[str]:
        loading = "  [loading]" if self._feed.loading else ""
        return [
            self._line(
                f"  Opportunities: {self._feed.count:<5}{self.THIN_V}  "
                f"Profitable: {self._feed.profitable_count:<5}{self.THIN_V}  "
                f"Hot: {self._feed.hot_count:<5}{loading}"
            )
        ]

    def _render_table(self) -> list[str]:
        lines = [self._line(f"  {'PAIR':<12} {'ROUTE':<24} {'SPREAD %':>9} {'PROFIT $':>10}")]

        ranked = sorted(
            self._feed.opportunities,
            key=lambda o: o.effective_spread_pct,
            reverse=True,
        )
        for opp in ranked[: self._max_rows]:
            route = f"{opp.buy_exchange} -> {opp.sell_exchange}"
            mark = "*" if opp.is_hot else " "
            lines.append(
                self._line(
                    f" {mark}{opp.pair:<12} {route:<24} "
                    f"{opp.effective_spread_pct:>9.3f} {opp.profit_usdt:>10.2f}"
                )
            )

        if not ranked:
            lines.append(self._line("  No opportunities"))
        return lines

    def _render_autotrader(self) -> list[str]:
        status = self._autotrader.status
        if status is None:
            return [self._line("  Auto-trader: ---")]

        busy = " [busy]" if self._autotrader.busy else ""
        sign = "+" if status.session_profit >= 0 else ""
        lines = [
            self._line(
                f"  Auto-trader: {status.state.value.upper():<8}{busy}  |  "
                f"Session: {status.session_trades} trades, {sign}{status.session_profit:.2f} USDT"
            ),
            self._line(
                f"  Today: {status.risk_stats.trades_today} trades, "
                f"{status.risk_stats.daily_profit:+.2f} USDT"
            ),
        ]

        stats = self._simulation_stats.value if self._simulation_stats else None
        if stats is not None:
            lines.append(
                self._line(
                    f"  Simulation: {stats.total_trades} trades, win rate {stats.win_rate:.1f}%, "
                    f"total {stats.total_profit:+.2f} USDT"
                )
            )

        if self._exchanges is not None and self._exchanges.value is not None:
            down = self._exchanges.disconnected
            connected = f"{self._exchanges.connected_count}/{len(self._exchanges.value)}"
            suffix = f" (down: {', '.join(down)})" if down else ""
            lines.append(self._line(f"  Exchanges: {connected} connected{suffix}"))

        return lines

    def _render_notices(self) -> list[str]:
        return [
            self._line(f"  [{self.NOTICE_MARKS[n.level]}] {n.text}") for n in self._notices.visible
        ]

    def _render_latency(self) -> list[str]:
        stats = self._metrics.get_latency_stats("GET /spreads/live")
        avg = f"{stats.avg_us / 1000:.1f}ms" if stats.count else "---"
        p99 = f"{stats.p99_us / 1000:.1f}ms" if stats.count else "---"
        failed = self._metrics.get_counter("spreads.failed")
        fallback = self._metrics.get_counter("spreads.fallback")
        return [
            self._line(
                f"  Feed latency avg {avg} p99 {p99}  |  Fallbacks: {fallback}  |  Failed: {failed}"
            )
        ]

    def render(self) -> str:
        """
        Render the dashboard.

        Returns:
            Formatted dashboard string.
        """
        lines = [f"{self.BOX_TL}{self.BOX_H * (self._width - 2)}{self.BOX_TR}"]
        lines.extend(self._render_header())
        lines.append(self._divider())
        lines.extend(self._render_aggregates())
        lines.extend(self._render_table())
        lines.append(self._divider())
        lines.extend(self._render_autotrader())

        notices = self._render_notices()
        if notices:
            lines.append(self._divider())
            lines.extend(notices)

        lines.append(self._divider())
        lines.extend(self._render_latency())
        lines.append(f"{self.BOX_BL}{self.BOX_H * (self._width - 2)}{self.BOX_BR}")
        return "\n".join(lines)

    def display(self) -> None:
        """Display the dashboard once."""
        # Clear screen and move cursor to top
        self._output.write("\033[2J\033[H")
        self._output.write(self.render())
        self._output.write("\n")
        self._output.flush()

    async def run(self, interval: float = 1.0) -> None:
        """
        Run continuous display updates.

        Args:
            interval: Update interval in seconds.
        """
        self._running = True

        while self._running:
            self.display()
            await asyncio.sleep(interval)

    def start(self, interval: float = 1.0) -> asyncio.Task[None]:
        """Start the reporter as a background task."""
        self._task = asyncio.create_task(self.run(interval))
        return self._task

    def stop(self) -> None:
        """Stop the reporter."""
        self._running = False
        if self._task:
            self._task.cancel()

    def print_summary(self) -> None:
        """Print a final summary."""
        uptime = self._format_uptime(self._metrics.uptime_seconds)
        out = self._output

        out.write("\n" + "=" * 50 + "\n")
        out.write("  SESSION SUMMARY\n")
        out.write("=" * 50 + "\n")
        out.write(f"  Uptime: {uptime}\n\n")
        out.write("  FEED:\n")
        out.write(f"    Polls ok:     {self._metrics.get_counter('spreads.ok'):,}\n")
        out.write(f"    Polls failed: {self._metrics.get_counter('spreads.failed'):,}\n")
        out.write(f"    Fallbacks:    {self._metrics.get_counter('spreads.fallback'):,}\n")
        out.write(f"    Last count:   {self._feed.count:,}\n\n")
        out.write("  TRADES:\n")
        out.write(f"    Successful:   {self._metrics.get_counter('trades.ok'):,}\n")
        out.write(f"    Failed:       {self._metrics.get_counter('trades.failed'):,}\n")
        out.write("=" * 50 + "\n")
        out.flush()
