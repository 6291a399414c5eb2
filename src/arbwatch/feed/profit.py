"""
Profit estimation from liquidity analysis.

Pure functions: no I/O and no state, safe to call from rendering code
on every frame.
"""

from arbwatch.api.models import LiquidityAnalysis, Opportunity
from arbwatch.config.constants import (
    PROFIT_REFERENCE_NOTIONAL,
    SELL_SLIPPAGE_WEIGHT,
    SLIPPAGE_TIERS,
)


def estimate_real_profit(
    opportunity: Opportunity,
    analysis: LiquidityAnalysis | None,
    amount_usdt: float,
) -> float | None:
    """
    Estimate profit after slippage for a given notional.

    The backend quotes `profit_usdt` for a 1000 USDT trade; it is scaled
    linearly to `amount_usdt`, then the summary slippage is charged on
    the full notional.

    Args:
        opportunity: Opportunity being evaluated.
        analysis: Liquidity analysis, or None if not loaded.
        amount_usdt: Trade notional in USDT.

    Returns:
        Estimated profit in USDT, or None when no analysis is available.
        None means "unknown", never "no slippage".

    Example:
        profit_usdt=10, amount=1000, total_slippage_pct=0.5
        -> 10 * 1 - 1000 * 0.5 / 100 = 5.0
    """
    if analysis is None or analysis.summary is None:
        return None

    gross_profit = opportunity.profit_usdt * (amount_usdt / PROFIT_REFERENCE_NOTIONAL)
    slippage_loss = amount_usdt * analysis.summary.total_slippage_pct / 100
    return gross_profit - slippage_loss


def tier_slippage(analysis: LiquidityAnalysis, tier: str) -> float:
    """
    Combined display slippage for one notional tier.

    The sell leg is weighted by 0.5; this is a display heuristic and is
    not used by `estimate_real_profit`. Missing legs or tiers count as 0.
    """
    buy = analysis.buy.slippage.get(tier, 0.0) if analysis.buy else 0.0
    sell = analysis.sell.slippage.get(tier, 0.0) if analysis.sell else 0.0
    return buy + SELL_SLIPPAGE_WEIGHT * sell


def tier_slippage_table(analysis: LiquidityAnalysis) -> dict[str, float]:
    """Display slippage for every standard tier."""
    return {tier: tier_slippage(analysis, tier) for tier in SLIPPAGE_TIERS}


def slippage_severity(total_pct: float) -> str:
    """Bucket a tier slippage for colouring."""
    if total_pct > 2:
        return "severe"
    if total_pct > 1:
        return "elevated"
    if total_pct > 0.5:
        return "moderate"
    return "low"


def liquidity_grade(score: float) -> str:
    """Bucket a 0-10 liquidity score."""
    if score >= 8:
        return "good"
    if score >= 6:
        return "fair"
    if score >= 4:
        return "weak"
    return "poor"
