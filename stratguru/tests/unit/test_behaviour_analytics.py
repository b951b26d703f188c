# stratguru/tests/unit/test_behaviour_analytics.py
"""Unit tests for discipline, derived trading rules and missed opportunities."""
from datetime import date

from stratguru.analytics.records import TradeRecord
from stratguru.analytics.discipline import discipline_report, psychology_leaks, frequency_groups
from stratguru.analytics.rules import (
    trading_rules,
    time_bucket,
    risk_level,
    rr_planned_bucket,
    format_field,
)
from stratguru.analytics.missed import missed_opportunities


class TestDiscipline:
    """Test rules adherence, psychology leaks and frequency groups."""

    def test_rules_comparison(self):
        trades = [TradeRecord(rules_followed="Yes", result="Win", r_multiple=2.0) for _ in range(2)]
        trades.append(TradeRecord(rules_followed="No", result="Loss", r_multiple=-1.0))

        report = discipline_report(trades)
        assert report.rules.followed_count == 2
        assert report.rules.followed_expectancy == 2.0
        assert report.rules.broken_count == 1
        assert report.rules.broken_win_rate == 0.0
        assert report.rules.r_cost == -1.0
        assert set(report.state_comparison) == {"calm", "overconfident", "hesitant"}
        assert report.total_trades == 3

    def test_fomo_leak(self):
        trades = [TradeRecord(pre_trade_state="FOMO", result="Loss", r_multiple=-1.0) for _ in range(2)]
        leaks = psychology_leaks(trades)
        assert len(leaks) == 1
        assert leaks[0].type == "FOMO Entries"
        assert leaks[0].occurrences == 2
        assert leaks[0].total_r_lost == 2.0
        assert leaks[0].avg_r_lost == 1.0

    def test_fatigue_only_counts_when_worse(self):
        tired_losing = [TradeRecord(fatigue_present="Yes", result="Loss", r_multiple=-1.0) for _ in range(2)]
        rested_winning = [TradeRecord(fatigue_present="No", result="Win", r_multiple=1.0) for _ in range(2)]
        leaks = psychology_leaks(tired_losing + rested_winning)
        assert [l.type for l in leaks] == ["Trading While Fatigued"]
        assert leaks[0].avg_r_lost == 2.0

        tired_winning = [TradeRecord(fatigue_present="Yes", result="Win", r_multiple=3.0)]
        assert psychology_leaks(tired_winning + rested_winning) == []

    def test_frequency_groups(self):
        trades = [
            TradeRecord(trade_date=date(2024, 1, 1), result="Win", r_multiple=1.0),
            TradeRecord(trade_date=date(2024, 1, 2), result="Loss", r_multiple=-1.0),
            TradeRecord(trade_date=date(2024, 1, 2), result="Loss", r_multiple=-1.0),
        ]
        groups = frequency_groups(trades)
        assert [(g.trades_per_day, g.count) for g in groups] == [(1, 1), (2, 2)]
        assert groups[0].win_rate == 100.0


class TestTradingRules:
    """Test data-derived rule generation."""

    def test_insufficient_sample(self):
        trades = [TradeRecord(result="Win", r_multiple=1.0) for _ in range(3)]
        rules = trading_rules(trades)
        assert rules.insufficient is True
        assert "Currently have 3" in rules.message

    def test_session_rules(self):
        trades = [TradeRecord(session="London", result="Win", r_multiple=2.0) for _ in range(5)]
        trades += [TradeRecord(session="NY", result="Loss", r_multiple=-1.0) for _ in range(5)]
        # missed trades never count
        trades += [TradeRecord(session="NY", trade_status="Missed", result="Win") for _ in range(5)]

        rules = trading_rules(trades)
        assert rules.insufficient is False
        assert rules.total_analyzed == 10
        assert rules.baseline_win_rate == 50.0
        assert rules.baseline_expectancy == 0.5
        assert [r.rule for r in rules.do_more] == ["Trade with London (Session)"]
        assert [r.rule for r in rules.stop_doing] == ["Avoid NY (Session)"]
        assert [r.rule for r in rules.no_trade_scenarios] == ['NO TRADE: Session = "NY"']
        assert rules.required_conditions == []

    def test_bucket_helpers(self):
        assert time_bucket(TradeRecord(trade_time="07:30")) == "Early Morning (06-10)"
        assert time_bucket(TradeRecord(trade_time="19:00")) == "Evening (18-24)"
        assert time_bucket(TradeRecord()) is None
        assert risk_level(TradeRecord(risk_per_trade_pct=0.5)) == "Very Low (<=0.5%)"
        assert risk_level(TradeRecord(risk_per_trade_pct=3.0)) == "High (>2%)"
        assert rr_planned_bucket(TradeRecord(rr_planned=2.5)) == "Medium RR (2-3)"
        assert format_field("liquidity_taken") == "Liquidity Taken"


class TestMissedOpportunities:
    """Test opportunity cost of missed trades."""

    def test_nothing_missed(self):
        assert missed_opportunities([TradeRecord(result="Win")]) is None

    def test_opportunity_cost(self):
        trades = [
            TradeRecord(trade_status="Missed", hypothetical_result="Win", rr_planned=3.0, missed_reason="Hesitation"),
            TradeRecord(trade_status="Missed", hypothetical_result="Win", rr_planned=2.0, missed_reason="Hesitation"),
            TradeRecord(trade_status="Missed", hypothetical_result="Loss", missed_reason="Fear"),
            TradeRecord(trade_status="Missed"),
            TradeRecord(result="Win", r_multiple=5.0),
        ]
        missed = missed_opportunities(trades)
        assert missed.total == 4
        assert missed.wins == 2
        assert missed.losses == 1
        assert missed.unknown == 1
        assert missed.by_reason == {"Hesitation": 2, "Fear": 1, "Unknown": 1}
        assert missed.potential_r_lost == 5.0
        assert missed.r_saved == 1.0
        assert missed.net_opportunity_cost == 4.0
        assert missed.win_rate == 66.7
