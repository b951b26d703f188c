# stratguru/analytics/setups.py
"""
Per-setup views: edge score ranking and the setup x grade quality matrix.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence
import math

from .metrics import calculate_expectancy, raw_expectancy
from .records import TradeRecord

GRADES = ["A+", "A", "B", "Trash"]
MIN_CELL_TRADES = 3


@dataclass
class SetupEdge:
    setup: str
    setup_id: Optional[str]
    edge_score: float
    win_rate: float
    avg_r: float
    expectancy: float
    max_drawdown: float
    sample_size: int


def consecutive_loss_drawdown(r_values: Sequence[float]) -> float:
    """Largest run of back-to-back losing R."""
    worst = current = 0.0
    for r in r_values:
        if r < 0:
            current += abs(r)
            worst = max(worst, current)
        else:
            current = 0.0
    return worst


def setup_edge_scores(trades: Sequence[TradeRecord]) -> List[SetupEdge]:
    """
    Rank setups by edge score = expectancy * sqrt(n) / 10.

    Trades are grouped by setup_type_id when linked to the registry, otherwise
    by the setup code string. Trades with neither are skipped.
    """
    groups: Dict[str, List[TradeRecord]] = {}
    for t in trades:
        if not t.setup_type and not t.setup_type_id:
            continue
        groups.setdefault(t.setup_key, []).append(t)

    results = []
    for group in groups.values():
        stats = calculate_expectancy(group)
        rs = [t.r_multiple for t in group if t.r_multiple is not None]
        n = len(group)
        edge = raw_expectancy(group) * math.sqrt(n) / 10 if n else 0.0
        results.append(SetupEdge(
            setup=group[0].setup_type or "Unknown",
            setup_id=group[0].setup_type_id,
            edge_score=round(edge, 2),
            win_rate=stats.win_rate,
            avg_r=round(sum(rs) / len(rs), 2) if rs else 0.0,
            expectancy=stats.expectancy,
            max_drawdown=round(consecutive_loss_drawdown(rs), 2),
            sample_size=n,
        ))
    results.sort(key=lambda s: s.edge_score, reverse=True)
    return results


@dataclass
class QualityCell:
    setup_type: str
    grade: str
    trade_count: int
    win_rate: float
    avg_r: float
    expectancy: float
    total_r: float


@dataclass
class MatrixRow:
    setup_type: str
    cells: Dict[str, Optional[QualityCell]]
    total_trades: int
    best_grade: Optional[str]


@dataclass
class QualityMatrix:
    rows: List[MatrixRow] = field(default_factory=list)
    column_best: Dict[str, Optional[Dict]] = field(default_factory=dict)


def _cell(setup: str, grade: str, trades: List[TradeRecord]) -> QualityCell:
    stats = calculate_expectancy(trades)
    rs = [t.r_multiple for t in trades if t.r_multiple is not None]
    total_r = sum(rs)
    return QualityCell(
        setup_type=setup,
        grade=grade,
        trade_count=len(trades),
        win_rate=stats.win_rate,
        avg_r=round(total_r / len(rs), 2) if rs else 0.0,
        expectancy=stats.expectancy,
        total_r=round(total_r, 2),
    )


def setup_quality_matrix(trades: Sequence[TradeRecord]) -> QualityMatrix:
    """Setup x grade cells; the best grade needs at least three trades."""
    setups = sorted({t.setup_type or "Unknown" for t in trades})
    rows = []
    for setup in setups:
        setup_trades = [t for t in trades if (t.setup_type or "Unknown") == setup]
        cells: Dict[str, Optional[QualityCell]] = {g: None for g in GRADES}
        best_grade, best_exp = None, -math.inf
        for grade in GRADES:
            graded = [t for t in setup_trades if t.setup_grade == grade]
            if not graded:
                continue
            cell = _cell(setup, grade, graded)
            cells[grade] = cell
            if cell.expectancy > best_exp and cell.trade_count >= MIN_CELL_TRADES:
                best_exp, best_grade = cell.expectancy, grade
        rows.append(MatrixRow(setup, cells, len(setup_trades), best_grade))
    rows.sort(key=lambda r: r.total_trades, reverse=True)

    column_best: Dict[str, Optional[Dict]] = {}
    for grade in GRADES:
        best = None
        for row in rows:
            cell = row.cells[grade]
            if cell and cell.trade_count >= MIN_CELL_TRADES and (best is None or cell.expectancy > best["expectancy"]):
                best = {"setup": row.setup_type, "expectancy": cell.expectancy}
        column_best[grade] = best
    return QualityMatrix(rows=rows, column_best=column_best)
