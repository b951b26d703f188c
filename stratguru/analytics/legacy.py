# stratguru/analytics/legacy.py
"""
Summary of legacy (simple) trades, used as the context for AI coaching prompts.
"""
from __future__ import annotations
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence


def session_for_hour(hour: int) -> str:
    """London 08-16 UTC wins the overlap; New York covers 16-21; everything else is Asian."""
    if 8 <= hour < 16:
        return "London"
    if 13 <= hour < 21:
        return "New York"
    return "Asian"


def _hour_of(executed_at: Any) -> Optional[int]:
    if isinstance(executed_at, datetime):
        return executed_at.hour
    if isinstance(executed_at, str) and executed_at:
        try:
            return datetime.fromisoformat(executed_at.replace("Z", "+00:00")).hour
        except ValueError:
            return None
    return None


def _value(trade: Any, name: str) -> Any:
    if isinstance(trade, Mapping):
        value = trade.get(name)
    else:
        value = getattr(trade, name, None)
    return getattr(value, "value", value)


def summarize_legacy_trades(trades: Sequence[Any], recent: int = 10) -> Dict[str, Any]:
    """
    Aggregate legacy trades (ORM rows or dicts) into the prompt summary.

    Win rate is over closed (non-open) trades; avg RR and avg risk skip
    trades that leave those fields empty.
    """
    rows: List[Dict[str, Any]] = [
        {name: _value(t, name) for name in (
            "pair", "direction", "result", "pnl", "rr", "risk_pct", "notes", "executed_at"
        )}
        for t in trades
    ]

    wins = [r for r in rows if r["result"] == "win"]
    losses = [r for r in rows if r["result"] == "loss"]
    closed = [r for r in rows if r["result"] != "open"]
    rrs = [r["rr"] for r in rows if r["rr"]]
    risks = [r["risk_pct"] for r in rows if r["risk_pct"]]

    sessions: Dict[str, Dict[str, int]] = {}
    for r in rows:
        hour = _hour_of(r["executed_at"])
        if hour is None:
            continue
        stats = sessions.setdefault(session_for_hour(hour), {"wins": 0, "total": 0})
        stats["total"] += 1
        if r["result"] == "win":
            stats["wins"] += 1

    pairs: List[str] = []
    for r in rows:
        if r["pair"] and r["pair"] not in pairs:
            pairs.append(r["pair"])

    return {
        "totalTrades": len(rows),
        "winRate": round(len(wins) / len(closed) * 100, 1) if closed else 0.0,
        "totalPnL": round(sum(r["pnl"] or 0 for r in rows), 2),
        "avgRiskReward": round(sum(rrs) / len(rrs), 2) if rrs else 0.0,
        "avgRiskPercentage": round(sum(risks) / len(risks), 1) if risks else 0.0,
        "wins": len(wins),
        "losses": len(losses),
        "pairs": pairs,
        "directions": {
            "long": sum(1 for r in rows if r["direction"] == "long"),
            "short": sum(1 for r in rows if r["direction"] == "short"),
        },
        "sessionPerformance": [
            {
                "session": name,
                "winRate": round(s["wins"] / s["total"] * 100, 1) if s["total"] else 0.0,
                "trades": s["total"],
            }
            for name, s in sessions.items()
        ],
        "recentTrades": [
            {
                "pair": r["pair"],
                "direction": r["direction"],
                "result": r["result"],
                "pnl": r["pnl"],
                "rr": r["rr"],
                "risk_pct": r["risk_pct"],
                "notes": (r["notes"] or "")[:100],
            }
            for r in rows[:recent]
        ],
    }
