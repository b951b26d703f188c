# stratguru/analytics/filters.py
"""
Dashboard filters shared by every analytics view.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Optional, Sequence

from .records import TradeRecord

DATE_RANGES = ("30", "90", "all")
SESSION_FILTERS = {"LN": "London", "NY": "NY"}


@dataclass
class AnalyticsFilters:
    date_range: str = "all"
    session: str = "all"
    setups: List[str] = field(default_factory=list)

    def __post_init__(self):
        if self.date_range not in DATE_RANGES:
            raise ValueError(f"date_range must be one of {', '.join(DATE_RANGES)}")
        if self.session != "all" and self.session not in SESSION_FILTERS:
            raise ValueError("session must be 'LN', 'NY' or 'all'")


def apply_filters(
    trades: Sequence[TradeRecord],
    filters: Optional[AnalyticsFilters] = None,
    today: Optional[date] = None,
) -> List[TradeRecord]:
    """Date window (last 30/90 days), London/NY session and setup subset."""
    filters = filters or AnalyticsFilters()
    result = list(trades)

    if filters.date_range != "all":
        cutoff = (today or date.today()) - timedelta(days=int(filters.date_range))
        result = [t for t in result if t.trade_date is not None and t.trade_date >= cutoff]

    if filters.session != "all":
        wanted = SESSION_FILTERS[filters.session]
        result = [t for t in result if t.session == wanted]

    if filters.setups:
        result = [t for t in result if t.setup_type in filters.setups]

    return result


def analytics_pool(trades: Sequence[TradeRecord]) -> List[TradeRecord]:
    """Trades eligible for analytics: anything already reclassified past legacy."""
    return [t for t in trades if t.classification_status != "legacy_unclassified"]


def executed_only(trades: Sequence[TradeRecord]) -> List[TradeRecord]:
    """Missed trades never feed performance metrics."""
    return [t for t in trades if t.is_executed]


def missed_only(trades: Sequence[TradeRecord]) -> List[TradeRecord]:
    return [t for t in trades if t.trade_status == "Missed"]
