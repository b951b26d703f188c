# stratguru/analytics/discipline.py
"""
Discipline and psychology analytics: behaviour that costs R.
"""
from __future__ import annotations
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Sequence

from .metrics import calculate_expectancy
from .records import TradeRecord


@dataclass
class RulesComparison:
    followed_count: int
    followed_expectancy: float
    followed_win_rate: float
    broken_count: int
    broken_expectancy: float
    broken_win_rate: float
    r_cost: float


@dataclass
class PsychologyLeak:
    type: str
    occurrences: int
    total_r_lost: float
    avg_r_lost: float


@dataclass
class FrequencyGroup:
    trades_per_day: int
    count: int
    expectancy: float
    win_rate: float


@dataclass
class DisciplineReport:
    rules: RulesComparison
    psychology_leaks: List[PsychologyLeak] = field(default_factory=list)
    frequency_groups: List[FrequencyGroup] = field(default_factory=list)
    state_comparison: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    total_trades: int = 0


def _loss_leak(label: str, trades: List[TradeRecord]) -> PsychologyLeak:
    stats = calculate_expectancy(trades)
    return PsychologyLeak(
        type=label,
        occurrences=len(trades),
        total_r_lost=abs(stats.total_r) if stats.total_r < 0 else 0.0,
        avg_r_lost=abs(stats.expectancy) if stats.expectancy < 0 else 0.0,
    )


def psychology_leaks(trades: Sequence[TradeRecord]) -> List[PsychologyLeak]:
    leaks = []
    fomo = [t for t in trades if t.pre_trade_state == "FOMO"]
    if fomo:
        leaks.append(_loss_leak("FOMO Entries", fomo))
    revenge = [t for t in trades if t.revenge_trade == "Yes"]
    if revenge:
        leaks.append(_loss_leak("Revenge Trades", revenge))

    fatigued = [t for t in trades if t.fatigue_present == "Yes"]
    if fatigued:
        tired = calculate_expectancy(fatigued)
        rested = calculate_expectancy([t for t in trades if t.fatigue_present == "No"])
        # fatigue only counts as a leak when it actually underperforms
        if tired.expectancy < rested.expectancy:
            win_rate_drop = rested.win_rate - tired.win_rate
            leaks.append(PsychologyLeak(
                type="Trading While Fatigued",
                occurrences=len(fatigued),
                total_r_lost=round(win_rate_drop * len(fatigued) / 100, 2),
                avg_r_lost=round(rested.expectancy - tired.expectancy, 2),
            ))

    leaks.sort(key=lambda l: l.total_r_lost, reverse=True)
    return leaks


def frequency_groups(trades: Sequence[TradeRecord]) -> List[FrequencyGroup]:
    """Bucket trades by how many were taken that day: 1, 2, 3 or 4+."""
    by_day: Dict[Any, List[TradeRecord]] = {}
    for t in trades:
        by_day.setdefault(t.trade_date, []).append(t)

    buckets: Dict[int, List[TradeRecord]] = {1: [], 2: [], 3: [], 4: []}
    for day_trades in by_day.values():
        buckets[min(len(day_trades), 4)].extend(day_trades)

    groups = []
    for per_day, bucket in buckets.items():
        if not bucket:
            continue
        stats = calculate_expectancy(bucket)
        groups.append(FrequencyGroup(per_day, len(bucket), stats.expectancy, stats.win_rate))
    return groups


def discipline_report(trades: Sequence[TradeRecord]) -> DisciplineReport:
    followed = [t for t in trades if t.rules_followed == "Yes"]
    broken = [t for t in trades if t.rules_followed == "No"]
    f_stats = calculate_expectancy(followed)
    b_stats = calculate_expectancy(broken)

    states = {}
    for state in ("Calm", "Overconfident", "Hesitant"):
        subset = [t for t in trades if t.pre_trade_state == state]
        states[state.lower()] = {"count": len(subset), **asdict(calculate_expectancy(subset))}

    return DisciplineReport(
        rules=RulesComparison(
            followed_count=len(followed),
            followed_expectancy=f_stats.expectancy,
            followed_win_rate=f_stats.win_rate,
            broken_count=len(broken),
            broken_expectancy=b_stats.expectancy,
            broken_win_rate=b_stats.win_rate,
            r_cost=round(b_stats.total_r, 2),
        ),
        psychology_leaks=psychology_leaks(trades),
        frequency_groups=frequency_groups(trades),
        state_comparison=states,
        total_trades=len(trades),
    )
