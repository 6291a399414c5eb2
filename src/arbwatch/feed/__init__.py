"""Opportunity feed, liquidity cache and profit estimation."""

from arbwatch.feed.liquidity import CacheEntry, LiquidityCache, Pending, Resolved, Unavailable
from arbwatch.feed.profit import estimate_real_profit, tier_slippage, tier_slippage_table
from arbwatch.feed.spreads import SpreadFeedController


__all__ = [
    "CacheEntry",
    "LiquidityCache",
    "Pending",
    "Resolved",
    "SpreadFeedController",
    "Unavailable",
    "estimate_real_profit",
    "tier_slippage",
    "tier_slippage_table",
]
