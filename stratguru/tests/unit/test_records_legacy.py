# stratguru/tests/unit/test_records_legacy.py
"""Unit tests for trade snapshots, dashboard filters and the legacy trade summary."""
from datetime import date, datetime

import pytest

from stratguru.analytics.records import TradeRecord, to_records
from stratguru.analytics.filters import (
    AnalyticsFilters,
    apply_filters,
    analytics_pool,
    executed_only,
    missed_only,
)
from stratguru.analytics.legacy import session_for_hour, summarize_legacy_trades
from stratguru.db.models import TradingSession


class TestTradeRecord:
    """Test building records from dicts."""

    def test_from_dict_flattens_enums_and_dates(self):
        record = TradeRecord.from_dict({
            "id": "t1",
            "trade_date": "2024-03-05T00:00:00",
            "session": TradingSession.LONDON,
            "unknown_field": "ignored",
        })
        assert record.trade_date == date(2024, 3, 5)
        assert record.session == "London"
        assert record.is_executed is True

    def test_setup_key_prefers_registry_id(self):
        assert TradeRecord(setup_type_id="st-1", setup_type="OB").setup_key == "st-1"
        assert TradeRecord(setup_type="OB").setup_key == "OB"
        assert TradeRecord().setup_key == "Unknown"

    def test_to_records_accepts_mixed_input(self):
        records = to_records([TradeRecord(id="a"), {"id": "b"}])
        assert [r.id for r in records] == ["a", "b"]


class TestFilters:
    """Test dashboard filters."""

    def _trades(self):
        return [
            TradeRecord(id="recent-ln", trade_date=date(2024, 6, 25), session="London", setup_type="OB"),
            TradeRecord(id="old-ny", trade_date=date(2024, 1, 10), session="NY", setup_type="FVG"),
            TradeRecord(id="legacy", trade_date=date(2024, 6, 28), classification_status="legacy_unclassified"),
            TradeRecord(id="missed", trade_date=date(2024, 6, 28), trade_status="Missed", session="NY"),
        ]

    def test_invalid_values_rejected(self):
        with pytest.raises(ValueError):
            AnalyticsFilters(date_range="7")
        with pytest.raises(ValueError):
            AnalyticsFilters(session="Asia")

    def test_date_window(self):
        result = apply_filters(self._trades(), AnalyticsFilters(date_range="30"), today=date(2024, 7, 1))
        assert {t.id for t in result} == {"recent-ln", "legacy", "missed"}

    def test_session_and_setups(self):
        assert [t.id for t in apply_filters(self._trades(), AnalyticsFilters(session="LN"))] == ["recent-ln"]
        assert [t.id for t in apply_filters(self._trades(), AnalyticsFilters(setups=["FVG"]))] == ["old-ny"]

    def test_pools(self):
        trades = self._trades()
        assert "legacy" not in {t.id for t in analytics_pool(trades)}
        assert "missed" not in {t.id for t in executed_only(trades)}
        assert [t.id for t in missed_only(trades)] == ["missed"]


class TestLegacySummary:
    """Test the legacy summary fed to the AI prompts."""

    def test_session_for_hour(self):
        assert session_for_hour(10) == "London"
        assert session_for_hour(14) == "London"
        assert session_for_hour(17) == "New York"
        assert session_for_hour(2) == "Asian"
        assert session_for_hour(22) == "Asian"

    def test_summary(self):
        trades = [
            {"pair": "XAUUSD", "direction": "long", "result": "win", "pnl": 120.0, "rr": 2.0, "risk_pct": 1.0,
             "notes": "x" * 150, "executed_at": "2024-05-01T09:15:00Z"},
            {"pair": "XAUUSD", "direction": "short", "result": "loss", "pnl": -50.0, "rr": None, "risk_pct": 2.0,
             "executed_at": datetime(2024, 5, 2, 17, 0)},
            {"pair": "EURUSD", "direction": "long", "result": "win", "pnl": 80.0, "rr": 3.0,
             "executed_at": "2024-05-03T10:00:00Z"},
            {"pair": "EURUSD", "direction": "long", "result": "open", "pnl": None},
        ]
        summary = summarize_legacy_trades(trades)
        assert summary["totalTrades"] == 4
        assert summary["winRate"] == 66.7
        assert summary["totalPnL"] == 150.0
        assert summary["avgRiskReward"] == 2.5
        assert summary["avgRiskPercentage"] == 1.5
        assert summary["pairs"] == ["XAUUSD", "EURUSD"]
        assert summary["directions"] == {"long": 3, "short": 1}
        sessions = {s["session"]: s for s in summary["sessionPerformance"]}
        assert sessions["London"]["trades"] == 2
        assert sessions["London"]["winRate"] == 100.0
        assert sessions["New York"]["winRate"] == 0.0
        assert len(summary["recentTrades"][0]["notes"]) == 100

    def test_empty(self):
        summary = summarize_legacy_trades([])
        assert summary["totalTrades"] == 0
        assert summary["winRate"] == 0.0
        assert summary["sessionPerformance"] == []
