# stratguru/analytics/records.py
"""
Plain snapshots of journal trades for the analytics functions.
Enum columns are flattened to their display values ("Yes", "London", "A+").
"""
from __future__ import annotations
from dataclasses import dataclass, field, fields
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional


@dataclass
class TradeRecord:
    """Read-only view of one Elite trade."""
    id: str = ""
    trade_date: Optional[date] = None
    trade_time: Optional[str] = None
    trade_status: str = "Executed"
    account_type: Optional[str] = None
    session: Optional[str] = None
    killzone: Optional[str] = None
    day_of_week: Optional[str] = None
    news_day: Optional[str] = None
    htf_bias: Optional[str] = None
    htf_timeframe: Optional[str] = None
    structure_state: Optional[str] = None
    is_htf_clear: Optional[str] = None
    price_at_level_or_open: Optional[str] = None
    liquidity_taken_before_entry: Optional[str] = None
    setup_type_id: Optional[str] = None
    setup_type: Optional[str] = None
    setup_grade: Optional[str] = None
    execution_tf: Optional[str] = None
    entry_model: Optional[str] = None
    confirmation_present: Optional[str] = None
    entry_price: Optional[float] = None
    stop_loss: Optional[float] = None
    take_profit: Optional[float] = None
    exit_price: Optional[float] = None
    risk_per_trade_pct: Optional[float] = None
    rr_planned: Optional[float] = None
    rr_realized: Optional[float] = None
    result: Optional[str] = None
    r_multiple: Optional[float] = None
    rules_followed: Optional[str] = None
    classification_status: str = "fully_classified"
    missed_reason: Optional[str] = None
    hypothetical_result: Optional[str] = None
    # deprecated behaviour fields
    entry_precision: Optional[str] = None
    stop_placement_quality: Optional[str] = None
    partial_taken: Optional[str] = None
    pre_trade_state: Optional[str] = None
    revenge_trade: Optional[str] = None
    fatigue_present: Optional[str] = None
    liquidity_taken_against_bias: Optional[str] = None
    would_i_take_this_trade_again: Optional[str] = None
    liquidity_targeted: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None

    @property
    def is_executed(self) -> bool:
        return self.trade_status == "Executed"

    @property
    def setup_key(self) -> str:
        """Grouping key: registry id when linked, otherwise the setup code."""
        return self.setup_type_id or self.setup_type or "Unknown"

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TradeRecord":
        known = {f.name for f in fields(cls)}
        values = {}
        for key, value in data.items():
            if key not in known:
                continue
            values[key] = value.value if isinstance(value, Enum) else value
        if isinstance(values.get("trade_date"), str):
            values["trade_date"] = date.fromisoformat(values["trade_date"][:10])
        return cls(**values)

    @classmethod
    def from_model(cls, trade: Any) -> "TradeRecord":
        """Snapshot an EliteTrade ORM row."""
        data = {f.name: getattr(trade, f.name, None) for f in fields(cls)}
        data["liquidity_targeted"] = list(data.get("liquidity_targeted") or [])
        return cls.from_dict({k: v for k, v in data.items() if v is not None})


def to_records(trades) -> List[TradeRecord]:
    """Accept ORM rows, dicts or records and return records."""
    records = []
    for t in trades:
        if isinstance(t, TradeRecord):
            records.append(t)
        elif isinstance(t, dict):
            records.append(TradeRecord.from_dict(t))
        else:
            records.append(TradeRecord.from_model(t))
    return records
