# stratguru/analytics/drift.py
"""
Edge drift: rolling-window expectancy per setup, flagging recent decay.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Sequence

from .metrics import _by_date
from .records import TradeRecord

MIN_WINDOW = 5
WINDOWS_TARGET = 6
MIN_WINDOW_TRADES = 3
DECAY_DROP_PCT = 15.0


@dataclass
class DriftPoint:
    period: str
    expectancy: float
    win_rate: float
    avg_r: float


@dataclass
class SetupDrift:
    setup: str
    data_points: List[DriftPoint] = field(default_factory=list)
    has_edge_decay: bool = False


def window_point(period: str, window: Sequence[TradeRecord]) -> DriftPoint:
    wins = [t for t in window if t.result == "Win"]
    losses = [t for t in window if t.result == "Loss"]
    decided = len(wins) + len(losses)
    win_rate = len(wins) / decided * 100 if decided else 0.0
    avg_r = sum(t.r_multiple or 0 for t in window) / len(window)
    avg_win = sum(t.r_multiple or 0 for t in wins) / (len(wins) or 1)
    avg_loss = abs(sum(t.r_multiple or 0 for t in losses) / (len(losses) or 1))
    expectancy = 0.0
    if decided:
        expectancy = win_rate / 100 * avg_win - (100 - win_rate) / 100 * avg_loss
    return DriftPoint(
        period=period,
        expectancy=round(expectancy, 2),
        win_rate=round(win_rate, 1),
        avg_r=round(avg_r, 2),
    )


def has_decay(points: Sequence[DriftPoint]) -> bool:
    if len(points) < 2:
        return False
    previous, current = points[-2].expectancy, points[-1].expectancy
    if previous <= 0 or current >= previous:
        return False
    return (previous - current) / previous * 100 >= DECAY_DROP_PCT


def edge_drift(trades: Sequence[TradeRecord]) -> List[SetupDrift]:
    setups: List[str] = []
    for t in trades:
        if t.setup_type and t.setup_type not in setups:
            setups.append(t.setup_type)

    results = []
    for setup in setups:
        ordered = _by_date([t for t in trades if t.setup_type == setup])
        size = max(MIN_WINDOW, len(ordered) // WINDOWS_TARGET)
        points: List[DriftPoint] = []
        for start in range(0, len(ordered), size):
            window = ordered[start:start + size]
            if len(window) < MIN_WINDOW_TRADES:
                continue
            points.append(window_point(f"P{len(points) + 1}", window))
        results.append(SetupDrift(setup=setup, data_points=points, has_edge_decay=has_decay(points)))
    return results
