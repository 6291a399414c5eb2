"""
Arbitrage dashboard client.

Asynchronous orchestration layer for a cross-exchange arbitrage monitoring
dashboard: keeps the spread table fresh, enriches opportunities with
liquidity analysis, drives the remote auto-trader and syncs settings.
"""

__version__ = "1.0.0"
__author__ = "Tim"
