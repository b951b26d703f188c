# stratguru/analytics/rules.py
"""
Data-derived trading rules.

Closed executed trades are grouped by each classification field (plus time,
risk and RR buckets). Groups that beat or trail the baseline by a clear margin
become "do more", "stop doing", "required" and "no trade" rules.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from .records import TradeRecord

MIN_SAMPLE_SIZE = 5
SIGNIFICANT_WIN_RATE_DIFF = 15.0
SIGNIFICANT_EXPECTANCY = 0.3
NO_TRADE_MAX_WIN_RATE = 35.0
NO_TRADE_MAX_EXPECTANCY = -0.5

MAX_DO_MORE = 5
MAX_STOP_DOING = 5
MAX_REQUIRED = 3
MAX_NO_TRADE = 3


def time_bucket(t: TradeRecord) -> Optional[str]:
    if not t.trade_time:
        return None
    try:
        hour = int(t.trade_time.split(":")[0])
    except ValueError:
        return None
    if hour < 6:
        return "Night (00-06)"
    if hour < 10:
        return "Early Morning (06-10)"
    if hour < 14:
        return "Midday (10-14)"
    if hour < 18:
        return "Afternoon (14-18)"
    return "Evening (18-24)"


def risk_level(t: TradeRecord) -> Optional[str]:
    risk = t.risk_per_trade_pct
    if not risk:
        return None
    if risk <= 0.5:
        return "Very Low (<=0.5%)"
    if risk <= 1:
        return "Low (0.5-1%)"
    if risk <= 2:
        return "Medium (1-2%)"
    return "High (>2%)"


def rr_planned_bucket(t: TradeRecord) -> Optional[str]:
    if not t.rr_planned:
        return None
    if t.rr_planned < 2:
        return "Low RR (<2)"
    if t.rr_planned < 3:
        return "Medium RR (2-3)"
    return "High RR (3+)"


def _attr(name: str) -> Callable[[TradeRecord], Optional[str]]:
    return lambda t: getattr(t, name) or None


FIELDS: List[Tuple[str, Callable[[TradeRecord], Optional[str]]]] = [
    (name, _attr(name)) for name in (
        "session", "killzone", "setup_type", "setup_grade", "htf_bias",
        "htf_timeframe", "structure_state", "is_htf_clear", "price_at_level_or_open",
        "entry_model", "execution_tf", "confirmation_present",
    )
] + [
    ("liquidity_taken", _attr("liquidity_taken_before_entry")),
    ("rules_followed", _attr("rules_followed")),
    ("news_day", _attr("news_day")),
    ("day_of_week", _attr("day_of_week")),
    ("account_type", _attr("account_type")),
    ("time_bucket", time_bucket),
    ("risk_level", risk_level),
    ("rr_planned_bucket", rr_planned_bucket),
]


def win_r(t: TradeRecord) -> float:
    """R credited to a winner; unknown winners count as 1R."""
    return t.r_multiple or t.rr_realized or 1.0


def _total_r(trades: Sequence[TradeRecord]) -> float:
    return sum(win_r(t) if t.result == "Win" else -1.0 for t in trades)


def format_field(name: str) -> str:
    return name.replace("_", " ").title()


@dataclass
class FieldAnalysis:
    field: str
    value: str
    wins: int
    losses: int
    total_r: float
    sample_size: int
    win_rate: float
    expectancy: float
    avg_r: float


@dataclass
class Rule:
    rule: str
    sample_size: int
    expectancy: float
    avg_r: float


@dataclass
class TradingRules:
    insufficient: bool = False
    message: str = ""
    baseline_win_rate: float = 0.0
    baseline_expectancy: float = 0.0
    total_analyzed: int = 0
    do_more: List[Rule] = field(default_factory=list)
    stop_doing: List[Rule] = field(default_factory=list)
    required_conditions: List[Rule] = field(default_factory=list)
    no_trade_scenarios: List[Rule] = field(default_factory=list)


def field_analyses(closed: Sequence[TradeRecord]) -> List[FieldAnalysis]:
    analyses = []
    for name, get_value in FIELDS:
        groups: Dict[str, List[TradeRecord]] = {}
        for t in closed:
            value = get_value(t)
            if value:
                groups.setdefault(value, []).append(t)
        for value, group in groups.items():
            if len(group) < MIN_SAMPLE_SIZE:
                continue
            winners = [t for t in group if t.result == "Win"]
            total_r = _total_r(group)
            analyses.append(FieldAnalysis(
                field=name,
                value=value,
                wins=len(winners),
                losses=len(group) - len(winners),
                total_r=total_r,
                sample_size=len(group),
                win_rate=len(winners) / len(group) * 100,
                expectancy=total_r / len(group),
                avg_r=sum(win_r(t) for t in winners) / len(winners) if winners else 0.0,
            ))
    return analyses


def trading_rules(trades: Sequence[TradeRecord]) -> TradingRules:
    closed = [t for t in trades if t.is_executed and t.result in ("Win", "Loss")]
    if len(closed) < MIN_SAMPLE_SIZE:
        return TradingRules(
            insufficient=True,
            message=(f"Need at least {MIN_SAMPLE_SIZE} closed executed trades for analysis. "
                     f"Currently have {len(closed)}."),
            total_analyzed=len(closed),
        )

    baseline_wr = sum(1 for t in closed if t.result == "Win") / len(closed) * 100
    report = TradingRules(
        baseline_win_rate=round(baseline_wr, 1),
        baseline_expectancy=round(_total_r(closed) / len(closed), 2),
        total_analyzed=len(closed),
    )

    for a in field_analyses(closed):
        diff = a.win_rate - baseline_wr
        label = format_field(a.field)

        def rule(text: str) -> Rule:
            return Rule(text, a.sample_size, round(a.expectancy, 2), round(a.avg_r, 2))

        if diff >= SIGNIFICANT_WIN_RATE_DIFF and a.expectancy >= SIGNIFICANT_EXPECTANCY:
            report.do_more.append(rule(f"Trade with {a.value} ({label})"))
        if (diff >= SIGNIFICANT_WIN_RATE_DIFF * 1.5
                and a.expectancy >= SIGNIFICANT_EXPECTANCY * 1.5
                and a.sample_size >= MIN_SAMPLE_SIZE * 2):
            report.required_conditions.append(rule(f'Ensure {label} = "{a.value}"'))
        if diff <= -SIGNIFICANT_WIN_RATE_DIFF and a.expectancy < 0:
            report.stop_doing.append(rule(f"Avoid {a.value} ({label})"))
        if a.win_rate <= NO_TRADE_MAX_WIN_RATE and a.expectancy <= NO_TRADE_MAX_EXPECTANCY:
            report.no_trade_scenarios.append(rule(f'NO TRADE: {label} = "{a.value}"'))

    report.do_more = sorted(report.do_more, key=lambda r: r.expectancy, reverse=True)[:MAX_DO_MORE]
    report.stop_doing = sorted(report.stop_doing, key=lambda r: r.expectancy)[:MAX_STOP_DOING]
    report.required_conditions = sorted(
        report.required_conditions, key=lambda r: r.expectancy, reverse=True
    )[:MAX_REQUIRED]
    report.no_trade_scenarios = sorted(report.no_trade_scenarios, key=lambda r: r.expectancy)[:MAX_NO_TRADE]
    return report
