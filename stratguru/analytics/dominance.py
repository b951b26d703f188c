# stratguru/analytics/dominance.py
"""
Dominance heatmaps: when (time of day, weekday, session) each setup works.

Bucket frequency counts every trade, missed ones included. Wins, losses and R
come from executed trades only.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

from .records import TradeRecord

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]

TIME_THRESHOLD_OFFSET = 0.15
DAY_THRESHOLD_OFFSET = 0.12
MIN_STRONG_TRADES = 2
SESSION_WIN_RATE_GAP = 20.0
SESSION_AVG_R_IMPROVEMENT = 0.2


@dataclass
class Bucket:
    label: str
    wins: int = 0
    losses: int = 0
    total_r: float = 0.0
    trade_count: int = 0


@dataclass
class BucketClassification:
    label: str
    classification: str
    intensity: float
    trade_count: int
    wins: int
    losses: int
    total_r: float


@dataclass
class SetupHeatmap:
    setup_type: str
    classifications: List[BucketClassification] = field(default_factory=list)
    summary: Optional[Dict[str, List[str]]] = None


def time_bucket_labels() -> List[str]:
    return [f"{m // 60:02d}:{m % 60:02d}" for m in range(0, 24 * 60, 30)]


def time_bucket_index(trade_time: Optional[str]) -> Optional[int]:
    """Half-hour slot (0-47) for an HH:MM string, or None if unparseable."""
    if not trade_time:
        return None
    parts = trade_time.split(":")
    if len(parts) < 2:
        return None
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError:
        return None
    index = (hours * 60 + minutes) // 30
    return index if 0 <= index < 48 else None


def bucket_score(win_rate: float, expectancy: float) -> float:
    """Half win rate (0-1), half expectancy clamped to [-1R, +1R] and scaled to 0-1."""
    return win_rate * 0.5 + min(max(expectancy + 1, 0), 2) / 2 * 0.5


def _classify(
    buckets: List[Bucket],
    offset: float,
    denominator: Callable[[Bucket], int],
) -> tuple:
    active = [b for b in buckets if b.trade_count > 0]
    if not active:
        return [], None

    scored = []
    for b in active:
        n = denominator(b)
        win_rate = b.wins / n if n else 0.0
        expectancy = b.total_r / n if n else 0.0
        scored.append((b, bucket_score(win_rate, expectancy)))

    avg_score = sum(s for _, s in scored) / len(scored)
    strong_thr = avg_score + offset
    weak_thr = avg_score - offset

    classifications = []
    for b, score in scored:
        if score >= strong_thr and b.trade_count >= MIN_STRONG_TRADES:
            label, intensity = "strong", min((score - strong_thr) / 0.3 + 0.5, 1)
        elif score <= weak_thr or b.losses > b.wins:
            label, intensity = "weak", min((weak_thr - score) / 0.3 + 0.5, 1)
        else:
            label, intensity = "neutral", 0.5
        classifications.append(BucketClassification(
            label=b.label,
            classification=label,
            intensity=round(intensity, 3),
            trade_count=b.trade_count,
            wins=b.wins,
            losses=b.losses,
            total_r=round(b.total_r, 2),
        ))

    summary = {
        kind: [c.label for c in classifications if c.classification == kind]
        for kind in ("strong", "neutral", "weak")
    }
    return classifications, summary


def _record(bucket: Bucket, trade: TradeRecord) -> None:
    bucket.trade_count += 1
    if not trade.is_executed:
        return
    if trade.result == "Win":
        bucket.wins += 1
    elif trade.result == "Loss":
        bucket.losses += 1
    if trade.r_multiple:
        bucket.total_r += trade.r_multiple


def _setups_in(trades: Sequence[TradeRecord]) -> List[str]:
    seen: List[str] = []
    for t in trades:
        key = t.setup_type or "Unknown"
        if key not in seen:
            seen.append(key)
    return seen


def time_dominance(trades: Sequence[TradeRecord]) -> List[SetupHeatmap]:
    """48 half-hour buckets per setup keyed on trade_time."""
    results = []
    for setup in _setups_in(trades):
        buckets = [Bucket(label) for label in time_bucket_labels()]
        for t in trades:
            if (t.setup_type or "Unknown") != setup:
                continue
            index = time_bucket_index(t.trade_time)
            if index is not None:
                _record(buckets[index], t)
        # wins + losses: only executed trades carry a result
        classifications, summary = _classify(
            buckets, TIME_THRESHOLD_OFFSET, lambda b: b.wins + b.losses
        )
        results.append(SetupHeatmap(setup, classifications, summary))
    return results


def day_dominance(trades: Sequence[TradeRecord]) -> List[SetupHeatmap]:
    """Monday-Friday buckets per setup keyed on day_of_week."""
    results = []
    for setup in _setups_in(trades):
        buckets = [Bucket(day) for day in WEEKDAYS]
        for t in trades:
            if (t.setup_type or "Unknown") != setup or t.day_of_week not in WEEKDAYS:
                continue
            _record(buckets[WEEKDAYS.index(t.day_of_week)], t)
        classifications, summary = _classify(
            buckets, DAY_THRESHOLD_OFFSET, lambda b: b.trade_count
        )
        results.append(SetupHeatmap(setup, classifications, summary))
    return results


@dataclass
class SessionDominance:
    setup: str
    london_win_rate: float
    ny_win_rate: float
    london_avg_r: float
    ny_avg_r: float
    london_trades: int
    ny_trades: int
    dominant_session: str


def _session_stats(trades: List[TradeRecord]) -> tuple:
    executed = [t for t in trades if t.is_executed]
    if not executed:
        return 0.0, 0.0
    wins = sum(1 for t in executed if t.result == "Win")
    avg_r = sum(t.r_multiple or 0 for t in executed) / len(executed)
    return wins / len(executed) * 100, avg_r


def _dominates(wr: float, other_wr: float, avg_r: float, other_avg_r: float) -> bool:
    if wr > other_wr and wr - other_wr >= SESSION_WIN_RATE_GAP:
        return True
    if avg_r > other_avg_r:
        if other_avg_r == 0:
            return True
        return (avg_r - other_avg_r) / abs(other_avg_r) >= SESSION_AVG_R_IMPROVEMENT
    return False


def session_dominance(
    trades: Sequence[TradeRecord],
    setups: Optional[List[str]] = None,
) -> List[SessionDominance]:
    """London vs NY per setup; a session dominates on a 20-point win rate gap or 20% better avg R."""
    results = []
    for setup in setups or _setups_in(trades):
        setup_trades = [t for t in trades if (t.setup_type or "Unknown") == setup]
        london = [t for t in setup_trades if t.session == "London"]
        ny = [t for t in setup_trades if t.session == "NY"]
        london_wr, london_r = _session_stats(london)
        ny_wr, ny_r = _session_stats(ny)

        dominant = "Neutral"
        if _dominates(london_wr, ny_wr, london_r, ny_r):
            dominant = "London"
        elif _dominates(ny_wr, london_wr, ny_r, london_r):
            dominant = "NY"

        results.append(SessionDominance(
            setup=setup,
            london_win_rate=round(london_wr, 1),
            ny_win_rate=round(ny_wr, 1),
            london_avg_r=round(london_r, 2),
            ny_avg_r=round(ny_r, 2),
            london_trades=len(london),
            ny_trades=len(ny),
            dominant_session=dominant,
        ))
    return results
