# stratguru/analytics/metrics.py
"""
Core edge arithmetic over R-multiples.

Every function here is pure: a list of trades (or R values) in, a summary out.
Divisions by zero resolve to 0 so empty or one-sided samples never raise.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np

from .records import TradeRecord

# Reported instead of infinity when there are wins but no losses (must stay JSON-safe)
PROFIT_FACTOR_CAP = 999.0

# |R| at or below this counts as breakeven
BREAKEVEN_BAND = 0.1

EQUITY_SLOPE_THRESHOLD = 0.02
MIN_TRADES_FOR_SLOPE = 5

# Forward-testing gate
GATE_MIN_EXPECTANCY = 0.20
GATE_MIN_PROFIT_FACTOR = 1.3
GATE_MIN_SAMPLE = 300


def r_multiple_for(entry: Optional[float], stop: Optional[float], exit_price: Optional[float]) -> Optional[float]:
    """
    R-multiple of a closed trade.

    Direction is inferred from the stop: a stop below entry means long.
    Returns None when the trade has no exit or the stop sits on the entry.
    """
    if entry is None or stop is None or exit_price is None:
        return None
    risk = abs(entry - stop)
    if risk <= 0:
        return None
    is_long = stop < entry
    move = (exit_price - entry) if is_long else (entry - exit_price)
    return round(move / risk, 4)


def result_for_r(r: float) -> str:
    if r > BREAKEVEN_BAND:
        return "Win"
    if r < -BREAKEVEN_BAND:
        return "Loss"
    return "BE"


@dataclass
class ExpectancyStats:
    expectancy: float = 0.0
    win_rate: float = 0.0
    total_r: float = 0.0
    wins: int = 0
    losses: int = 0
    avg_win_r: float = 0.0
    avg_loss_r: float = 0.0


def _expectancy_parts(trades: Sequence[TradeRecord]) -> Tuple[int, int, List[float], float, float, float]:
    wins = sum(1 for t in trades if t.result == "Win")
    losses = sum(1 for t in trades if t.result == "Loss")
    decided = wins + losses

    r_multiples = [t.r_multiple for t in trades if t.r_multiple is not None]
    winning = [r for r in r_multiples if r > 0]
    losing = [r for r in r_multiples if r < 0]
    avg_win_r = float(np.mean(winning)) if winning else 0.0
    avg_loss_r = abs(float(np.mean(losing))) if losing else 0.0

    win_pct = wins / decided if decided else 0.0
    loss_pct = losses / decided if decided else 0.0
    expectancy = win_pct * avg_win_r - loss_pct * avg_loss_r
    return wins, losses, r_multiples, avg_win_r, avg_loss_r, expectancy


def raw_expectancy(trades: Sequence[TradeRecord]) -> float:
    """Unrounded expectancy, for scores that scale it further."""
    if not trades:
        return 0.0
    return _expectancy_parts(trades)[5]


def calculate_expectancy(trades: Sequence[TradeRecord]) -> ExpectancyStats:
    """
    Probability-weighted R per trade.

    Win/loss split comes from `result` (breakevens are ignored); the average
    win and loss sizes come from the R-multiples themselves.
    """
    if not trades:
        return ExpectancyStats()

    wins, losses, r_multiples, avg_win_r, avg_loss_r, expectancy = _expectancy_parts(trades)
    decided = wins + losses

    return ExpectancyStats(
        expectancy=round(expectancy, 2),
        win_rate=round(wins / decided * 100 if decided else 0.0, 1),
        total_r=round(sum(r_multiples), 2),
        wins=wins,
        losses=losses,
        avg_win_r=round(avg_win_r, 2),
        avg_loss_r=round(avg_loss_r, 2),
    )


def profit_factor(r_values: Iterable[float]) -> float:
    values = list(r_values)
    gross_profit = sum(r for r in values if r > 0)
    gross_loss = abs(sum(r for r in values if r < 0))
    if gross_loss > 0:
        return gross_profit / gross_loss
    return PROFIT_FACTOR_CAP if gross_profit > 0 else 0.0


def max_drawdown(r_values: Iterable[float]) -> float:
    """Largest fall from the running peak of cumulative R (peak starts at 0)."""
    peak = 0.0
    running = 0.0
    worst = 0.0
    for r in r_values:
        running += r
        peak = max(peak, running)
        worst = max(worst, peak - running)
    return worst


def longest_losing_streak(results: Iterable[Optional[str]]) -> int:
    longest = current = 0
    for result in results:
        if result == "Loss":
            current += 1
            longest = max(longest, current)
        else:
            current = 0
    return longest


def equity_slope(r_values: Sequence[float]) -> float:
    """Least-squares slope of the cumulative R curve against trade index."""
    if len(r_values) < 2:
        return 0.0
    curve = np.cumsum(np.asarray(r_values, dtype=float))
    x = np.arange(len(curve), dtype=float)
    return float(np.polyfit(x, curve, 1)[0])


def equity_direction(r_values: Sequence[float]) -> str:
    if len(r_values) < MIN_TRADES_FOR_SLOPE:
        return "flat"
    slope = equity_slope(r_values)
    if slope > EQUITY_SLOPE_THRESHOLD:
        return "rising"
    if slope < -EQUITY_SLOPE_THRESHOLD:
        return "declining"
    return "flat"


def _by_date(trades: Sequence[TradeRecord]) -> List[TradeRecord]:
    # stable sort keeps entry order within a day
    return sorted(trades, key=lambda t: (t.trade_date is None, t.trade_date or 0))


@dataclass
class EdgeSummary:
    win_rate: float = 0.0
    avg_r: float = 0.0
    expectancy: float = 0.0
    profit_factor: float = 0.0
    max_drawdown: float = 0.0
    total_trades: int = 0


def edge_summary(trades: Sequence[TradeRecord]) -> EdgeSummary:
    """Headline numbers for a trade list: win rate, avg R, expectancy, PF, drawdown."""
    if not trades:
        return EdgeSummary()
    stats = calculate_expectancy(trades)
    ordered_rs = [t.r_multiple for t in _by_date(trades) if t.r_multiple is not None]
    return EdgeSummary(
        win_rate=stats.win_rate,
        avg_r=round(float(np.mean(ordered_rs)), 2) if ordered_rs else 0.0,
        expectancy=stats.expectancy,
        profit_factor=round(profit_factor(ordered_rs), 2),
        max_drawdown=round(max_drawdown(ordered_rs), 2),
        total_trades=len(trades),
    )


@dataclass
class StrategyValidation:
    total_trades: int = 0
    win_rate: float = 0.0
    expectancy: float = 0.0
    avg_r_multiple: float = 0.0
    profit_factor: float = 0.0
    max_drawdown: float = 0.0
    longest_losing_streak: int = 0
    equity_slope: float = 0.0
    equity_curve_direction: str = "flat"
    checks: Dict[str, bool] = field(default_factory=dict)
    checks_passed: int = 0
    ready_for_forward_testing: bool = False


def validate_strategy(trades: Sequence[TradeRecord]) -> StrategyValidation:
    """
    Four-criterion forward-testing gate.

    Only completed trades (a result and an R value) count. Expectancy here is
    plain average R, and the equity curve is built in trade-date order.
    """
    completed = _by_date([t for t in trades if t.result and t.r_multiple is not None])
    metrics = StrategyValidation()

    if completed:
        rs = [t.r_multiple for t in completed]
        total = len(completed)
        wins = sum(1 for t in completed if t.result == "Win")
        avg_r = sum(rs) / total
        metrics.total_trades = total
        metrics.win_rate = round(wins / total * 100, 1)
        metrics.avg_r_multiple = round(avg_r, 3)
        metrics.expectancy = round(avg_r, 3)
        metrics.profit_factor = round(profit_factor(rs), 2)
        metrics.max_drawdown = round(max_drawdown(rs), 2)
        metrics.longest_losing_streak = longest_losing_streak(t.result for t in completed)
        metrics.equity_slope = round(equity_slope(rs), 4) if total >= MIN_TRADES_FOR_SLOPE else 0.0
        metrics.equity_curve_direction = equity_direction(rs)

    metrics.checks = {
        "expectancy": metrics.expectancy > GATE_MIN_EXPECTANCY,
        "profit_factor": metrics.profit_factor >= GATE_MIN_PROFIT_FACTOR,
        "sample_size": metrics.total_trades >= GATE_MIN_SAMPLE,
        "equity_curve": metrics.equity_curve_direction == "rising",
    }
    metrics.checks_passed = sum(metrics.checks.values())
    metrics.ready_for_forward_testing = all(metrics.checks.values())
    return metrics


CONFIDENCE_LEVELS = [
    (300, "institutional", "Institutional"),
    (150, "validated", "Validated"),
    (50, "developing", "Developing"),
    (0, "unproven", "Unproven"),
]


@dataclass
class SampleConfidence:
    setup: str
    trade_count: int
    confidence: str
    label: str
    percentage: float
    trades_to_next_level: int


def confidence_for(trade_count: int) -> SampleConfidence:
    level_index = next(i for i, (minimum, _, _) in enumerate(CONFIDENCE_LEVELS) if trade_count >= minimum)
    _, confidence, label = CONFIDENCE_LEVELS[level_index]
    to_next = CONFIDENCE_LEVELS[level_index - 1][0] - trade_count if level_index > 0 else 0
    return SampleConfidence(
        setup="",
        trade_count=trade_count,
        confidence=confidence,
        label=label,
        percentage=round(min(trade_count / 400 * 100, 100.0), 1),
        trades_to_next_level=to_next,
    )


def sample_size_confidence(trades: Sequence[TradeRecord]) -> List[SampleConfidence]:
    """Confidence tier per setup code, largest samples first."""
    counts: Dict[str, int] = {}
    for t in trades:
        key = t.setup_type or "Unknown"
        counts[key] = counts.get(key, 0) + 1

    results = []
    for setup, count in counts.items():
        info = confidence_for(count)
        info.setup = setup
        results.append(info)
    results.sort(key=lambda c: c.trade_count, reverse=True)
    return results

