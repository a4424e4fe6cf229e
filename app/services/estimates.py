"""
Heuristic stand-ins for metrics the trading backend does not expose yet.

Everything here is a guess derived from P&L percent and position count. It is
kept out of the measured-metric code paths and always emitted under an
`estimated` key, so removing this module is the whole migration once the
backend reports real win rate and volume.
"""

from typing import Any, Dict


def estimate_win_rate(pnl_pct: float, position_count: int) -> float:
    """50% base shifted by half the P&L percent, clamped to [0, 100]."""
    if position_count <= 0:
        return 0.0
    return min(max(50.0 + pnl_pct / 2.0, 0.0), 100.0)


def estimate_volume(equity: float, position_count: int) -> float:
    return equity * position_count * 10


def estimate_trades(position_count: int) -> int:
    # Open positions are the only activity count available
    return max(position_count, 0)


def estimated_fields(pnl_pct: float, equity: float, position_count: int) -> Dict[str, Any]:
    return {
        "win_rate": round(estimate_win_rate(pnl_pct, position_count), 2),
        "volume": round(estimate_volume(equity, position_count), 2),
        "trades": estimate_trades(position_count),
    }
