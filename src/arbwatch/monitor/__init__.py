"""Latest-value pollers for simulation statistics and exchange connectivity."""

from arbwatch.monitor.status import ExchangeStatusMonitor, SimulationStatsMonitor, StatusMonitor


__all__ = [
    "ExchangeStatusMonitor",
    "SimulationStatsMonitor",
    "StatusMonitor",
]
