# stratguru/analytics/entry_precision.py
"""
Entry precision: stop/target sizing and the R leaked by late entries and early exits.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .records import TradeRecord

PRECISION_LEVELS = ["Early", "Optimal", "Late"]
MAX_INSIGHTS = 3


@dataclass
class Insight:
    text: str
    priority: float


@dataclass
class EntryPrecisionReport:
    avg_stop_loss_size: float = 0.0
    avg_take_profit_size: float = 0.0
    avg_rr_planned: float = 0.0
    avg_rr_realized: float = 0.0
    avg_r_lost_late_entry: float = 0.0
    avg_r_lost_early_exit: float = 0.0
    precision_distribution: Dict[str, int] = field(default_factory=dict)
    insights: List[Insight] = field(default_factory=list)
    total_trades: int = 0


def _mean(values: List[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _abs_mean_r(trades: List[TradeRecord]) -> float:
    if not trades:
        return 0.0
    return abs(sum(t.r_multiple or 0 for t in trades) / len(trades))


def entry_precision(
    trades: Sequence[TradeRecord],
    active_setup: Optional[str] = None,
) -> EntryPrecisionReport:
    if active_setup:
        trades = [t for t in trades if t.setup_type == active_setup]
    if not trades:
        return EntryPrecisionReport(
            insights=[Insight("No trade data available for analysis.", 0)]
        )

    sl_sizes = [abs(t.entry_price - t.stop_loss) for t in trades
                if t.entry_price is not None and t.stop_loss is not None]
    tp_sizes = [abs(t.take_profit - t.entry_price) for t in trades
                if t.entry_price is not None and t.take_profit is not None]
    planned = [t.rr_planned for t in trades if t.rr_planned is not None]
    realized = [t.rr_realized for t in trades if t.rr_realized is not None]

    late = [t for t in trades if t.entry_precision == "Late"]
    late_losses = [t for t in late if t.result == "Loss"]
    # partial taken yet the trade still closed at a loss or breakeven
    early_exits = [t for t in trades if t.partial_taken == "Yes" and t.result in ("Loss", "BE")]

    report = EntryPrecisionReport(
        avg_stop_loss_size=round(_mean(sl_sizes), 2),
        avg_take_profit_size=round(_mean(tp_sizes), 2),
        avg_rr_planned=round(_mean(planned), 2),
        avg_rr_realized=round(_mean(realized), 2),
        avg_r_lost_late_entry=round(_abs_mean_r(late_losses), 2),
        avg_r_lost_early_exit=round(_abs_mean_r(early_exits), 2),
        precision_distribution={
            level: sum(1 for t in trades if t.entry_precision == level) for level in PRECISION_LEVELS
        },
        total_trades=len(trades),
    )
    report.insights = _insights(report, planned, len(trades))
    return report


def _insights(report: EntryPrecisionReport, planned: List[float], total: int) -> List[Insight]:
    late_loss = report.avg_r_lost_late_entry
    early_loss = report.avg_r_lost_early_exit
    found = []
    if late_loss > 0:
        found.append(Insight(f"Late entries are reducing expectancy by {late_loss:.2f}R", late_loss))
    if early_loss > 0:
        found.append(Insight(f"Early exits are costing {early_loss:.2f}R on average", early_loss))
    if late_loss > 0 and early_loss > late_loss:
        found.append(Insight("Early exits are costing more R than late entries", 1))
    if planned and _mean(planned) < 2:
        found.append(Insight("Stop losses may be tighter than structure allows", 0.5))

    late_pct = report.precision_distribution.get("Late", 0) / total * 100
    if late_pct > 40:
        found.append(Insight(f"{late_pct:.0f}% of entries are late, timing needs work", late_pct / 100))
    optimal_pct = report.precision_distribution.get("Optimal", 0) / total * 100
    if optimal_pct > 60:
        found.append(Insight(f"{optimal_pct:.0f}% optimal entries, execution is solid", 0.3))

    found.sort(key=lambda i: i.priority, reverse=True)
    return found[:MAX_INSIGHTS]
