# stratguru/analytics/condition_impact.py
"""
Condition impact: how much expectancy each Yes/No trade condition is worth.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from .metrics import calculate_expectancy
from .records import TradeRecord

CONDITIONS: List[Tuple[str, str]] = [
    ("HTF Clear", "is_htf_clear"),
    ("Liquidity Taken Before Entry", "liquidity_taken_before_entry"),
    ("Confirmation Present", "confirmation_present"),
    ("Rules Followed", "rules_followed"),
    ("News Day", "news_day"),
]

CONFLUENCE_STACKS: List[Tuple[List[str], List[str]]] = [
    (["HTF Clear", "Liquidity Taken", "Confirmation"],
     ["is_htf_clear", "liquidity_taken_before_entry", "confirmation_present"]),
    (["HTF Clear", "Rules Followed"],
     ["is_htf_clear", "rules_followed"]),
    (["Liquidity Taken", "Confirmation", "Rules Followed"],
     ["liquidity_taken_before_entry", "confirmation_present", "rules_followed"]),
]

MIN_STACK_TRADES = 3
TOP_STACKS = 3

# Verdict bands, checked top to bottom
NON_NEGOTIABLE_DELTA = 0.3
NON_NEGOTIABLE_MIN_EXP = 0.5
BENEFICIAL_DELTA = 0.1
OPTIONAL_DELTA = -0.1


def verdict_for(delta: float, present_expectancy: float) -> str:
    if delta >= NON_NEGOTIABLE_DELTA and present_expectancy >= NON_NEGOTIABLE_MIN_EXP:
        return "Non-Negotiable"
    if delta >= BENEFICIAL_DELTA and present_expectancy >= 0:
        return "Beneficial"
    if delta >= OPTIONAL_DELTA:
        return "Optional"
    return "Remove"


@dataclass
class ConditionImpact:
    condition: str
    field: str
    present_count: int
    absent_count: int
    present_expectancy: float
    absent_expectancy: float
    delta: float
    present_win_rate: float
    absent_win_rate: float
    verdict: str


@dataclass
class ConfluenceStack:
    conditions: List[str]
    count: int
    expectancy: float
    win_rate: float


@dataclass
class ConditionImpactReport:
    impacts: List[ConditionImpact] = field(default_factory=list)
    top_confluence: List[ConfluenceStack] = field(default_factory=list)
    baseline_expectancy: float = 0.0
    total_trades: int = 0


def analyze_condition_impact(trades: Sequence[TradeRecord]) -> ConditionImpactReport:
    """Split trades on each condition and compare expectancy with and without it."""
    impacts = []
    for name, attr in CONDITIONS:
        present = [t for t in trades if getattr(t, attr) == "Yes"]
        absent = [t for t in trades if getattr(t, attr) == "No"]
        present_stats = calculate_expectancy(present)
        absent_stats = calculate_expectancy(absent)
        delta = round(present_stats.expectancy - absent_stats.expectancy, 2)
        impacts.append(ConditionImpact(
            condition=name,
            field=attr,
            present_count=len(present),
            absent_count=len(absent),
            present_expectancy=present_stats.expectancy,
            absent_expectancy=absent_stats.expectancy,
            delta=delta,
            present_win_rate=present_stats.win_rate,
            absent_win_rate=absent_stats.win_rate,
            verdict=verdict_for(delta, present_stats.expectancy),
        ))
    impacts.sort(key=lambda i: i.delta, reverse=True)

    stacks = []
    for labels, attrs in CONFLUENCE_STACKS:
        matching = [t for t in trades if all(getattr(t, a) == "Yes" for a in attrs)]
        if len(matching) < MIN_STACK_TRADES:
            continue
        stats = calculate_expectancy(matching)
        stacks.append(ConfluenceStack(
            conditions=labels,
            count=len(matching),
            expectancy=stats.expectancy,
            win_rate=stats.win_rate,
        ))
    stacks.sort(key=lambda s: s.expectancy, reverse=True)

    return ConditionImpactReport(
        impacts=impacts,
        top_confluence=stacks[:TOP_STACKS],
        baseline_expectancy=calculate_expectancy(trades).expectancy,
        total_trades=len(trades),
    )
