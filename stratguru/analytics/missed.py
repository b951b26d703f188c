# stratguru/analytics/missed.py
"""
Missed opportunities: what skipped setups would have paid (or saved).
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence

from .filters import missed_only
from .records import TradeRecord


@dataclass
class MissedOpportunities:
    total: int = 0
    wins: int = 0
    losses: int = 0
    breakeven: int = 0
    unknown: int = 0
    by_reason: Dict[str, int] = field(default_factory=dict)
    potential_r_lost: float = 0.0
    r_saved: float = 0.0
    net_opportunity_cost: float = 0.0
    win_rate: float = 0.0


def missed_opportunities(trades: Sequence[TradeRecord]) -> Optional[MissedOpportunities]:
    """
    Opportunity cost of missed trades, or None when nothing was missed.

    Would-be wins forfeit their planned RR; each would-be loss saved 1R.
    """
    missed = missed_only(trades)
    if not missed:
        return None

    wins = [t for t in missed if t.hypothetical_result == "Win"]
    losses = [t for t in missed if t.hypothetical_result == "Loss"]
    breakeven = [t for t in missed if t.hypothetical_result == "BE"]
    unknown = len(missed) - len(wins) - len(losses) - len(breakeven)

    by_reason: Dict[str, int] = {}
    for t in missed:
        reason = t.missed_reason or "Unknown"
        by_reason[reason] = by_reason.get(reason, 0) + 1

    potential = sum(t.rr_planned or 0 for t in wins)
    saved = float(len(losses))
    decided = len(wins) + len(losses) + len(breakeven)
    return MissedOpportunities(
        total=len(missed),
        wins=len(wins),
        losses=len(losses),
        breakeven=len(breakeven),
        unknown=unknown,
        by_reason=by_reason,
        potential_r_lost=round(potential, 2),
        r_saved=saved,
        net_opportunity_cost=round(potential - saved, 2),
        win_rate=round(len(wins) / decided * 100, 1) if decided else 0.0,
    )
