# stratguru/analytics/mistakes.py
"""
Mistake pattern analysis: what is actually costing R.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from .records import TradeRecord

# (tag, trade field, value that flags the mistake)
MISTAKE_INDICATORS: List[Tuple[str, str, str]] = [
    ("Rules Broken", "rules_followed", "No"),
    ("Revenge Trade", "revenge_trade", "Yes"),
    ("FOMO Entry", "pre_trade_state", "FOMO"),
    ("Overconfident", "pre_trade_state", "Overconfident"),
    ("Late Entry", "entry_precision", "Late"),
    ("Wide Stop", "stop_placement_quality", "Wide"),
    ("Tight Stop", "stop_placement_quality", "Tight"),
    ("No Confirmation", "confirmation_present", "No"),
    ("Traded Fatigued", "fatigue_present", "Yes"),
    ("Against Liquidity", "liquidity_taken_against_bias", "Yes"),
    ("Trash Setup", "setup_grade", "Trash"),
]


@dataclass
class MistakePattern:
    tag: str
    frequency: int
    avg_r_lost: float
    severity_score: float
    relevant_setups: List[str] = field(default_factory=list)


def mistake_patterns(
    trades: Sequence[TradeRecord],
    active_setup: Optional[str] = None,
) -> List[MistakePattern]:
    """
    Tag each trade against the mistake indicators.

    avg_r_lost averages |R| over the tagged losing trades only; severity weights
    it by how often the mistake happens. Worst (highest avg_r_lost) first.
    """
    patterns = []
    for tag, attr, flagged in MISTAKE_INDICATORS:
        tagged = [t for t in trades if getattr(t, attr) == flagged]
        if not tagged:
            continue
        losing = [t for t in tagged if t.result == "Loss" and t.r_multiple is not None]
        avg_r_lost = sum(abs(t.r_multiple) for t in losing) / len(losing) if losing else 0.0
        setups: List[str] = []
        for t in tagged:
            code = t.setup_type or "Unknown"
            if code not in setups:
                setups.append(code)
        patterns.append(MistakePattern(
            tag=tag,
            frequency=len(tagged),
            avg_r_lost=round(avg_r_lost, 2),
            severity_score=round(len(tagged) * avg_r_lost, 1),
            relevant_setups=setups,
        ))

    patterns.sort(key=lambda p: p.avg_r_lost, reverse=True)
    if active_setup:
        patterns = [p for p in patterns if active_setup in p.relevant_setups]
    return patterns
