# stratguru/tests/unit/test_condition_dominance.py
"""Unit tests for condition impact and the dominance heatmaps."""
from stratguru.analytics.records import TradeRecord
from stratguru.analytics.condition_impact import verdict_for, analyze_condition_impact
from stratguru.analytics.dominance import (
    time_bucket_index,
    time_bucket_labels,
    bucket_score,
    time_dominance,
    day_dominance,
    session_dominance,
)


class TestConditionImpact:
    """Test condition impact verdicts and confluence stacks."""

    def test_verdict_bands(self):
        assert verdict_for(0.5, 0.6) == "Non-Negotiable"
        assert verdict_for(0.5, 0.4) == "Beneficial"
        assert verdict_for(0.2, -0.1) == "Optional"
        assert verdict_for(0.05, 1.0) == "Optional"
        assert verdict_for(-0.2, 1.0) == "Remove"

    def test_verdict_on_threshold_matches_reported_delta(self):
        """A delta shown as 0.3 lands in the Non-Negotiable band."""
        trades = [
            TradeRecord(news_day="Yes", result="Win", r_multiple=1.7),
            TradeRecord(news_day="Yes", result="Loss", r_multiple=-0.3),
            TradeRecord(news_day="No", result="Win", r_multiple=1.1),
            TradeRecord(news_day="No", result="Loss", r_multiple=-0.3),
        ]
        impact = next(i for i in analyze_condition_impact(trades).impacts if i.field == "news_day")
        assert impact.present_expectancy == 0.7
        assert impact.absent_expectancy == 0.4
        assert impact.delta == 0.3
        assert impact.verdict == "Non-Negotiable"

    def test_present_vs_absent(self):
        trades = [TradeRecord(is_htf_clear="Yes", result="Win", r_multiple=2.0) for _ in range(3)]
        trades += [TradeRecord(is_htf_clear="No", result="Loss", r_multiple=-1.0) for _ in range(2)]

        report = analyze_condition_impact(trades)
        top = report.impacts[0]
        assert top.condition == "HTF Clear"
        assert top.present_count == 3
        assert top.absent_count == 2
        assert top.present_expectancy == 2.0
        assert top.absent_expectancy == -1.0
        assert top.delta == 3.0
        assert top.verdict == "Non-Negotiable"
        assert report.baseline_expectancy == 0.8
        assert report.total_trades == 5
        assert report.top_confluence == []

    def test_confluence_needs_three_trades(self):
        trades = [
            TradeRecord(is_htf_clear="Yes", rules_followed="Yes", result="Win", r_multiple=1.0)
            for _ in range(3)
        ]
        report = analyze_condition_impact(trades)
        assert len(report.top_confluence) == 1
        stack = report.top_confluence[0]
        assert stack.conditions == ["HTF Clear", "Rules Followed"]
        assert stack.count == 3
        assert stack.expectancy == 1.0

        report = analyze_condition_impact(trades[:2])
        assert report.top_confluence == []


class TestTimeBuckets:
    """Test half-hour bucketing."""

    def test_bucket_index(self):
        assert time_bucket_index("09:45") == 19
        assert time_bucket_index("00:00") == 0
        assert time_bucket_index("23:59") == 47
        assert time_bucket_index("24:00") is None
        assert time_bucket_index("bad") is None
        assert time_bucket_index(None) is None

    def test_labels(self):
        labels = time_bucket_labels()
        assert len(labels) == 48
        assert labels[1] == "00:30"
        assert labels[-1] == "23:30"

    def test_bucket_score(self):
        assert bucket_score(1.0, 1.0) == 1.0
        assert bucket_score(0.0, -1.0) == 0.0
        assert bucket_score(0.5, 0.0) == 0.5


class TestDayDominance:
    """Test weekday heatmap classification."""

    def test_strong_and_weak_days(self):
        trades = [TradeRecord(setup_type="OB", day_of_week="Monday", result="Win", r_multiple=2.0) for _ in range(3)]
        trades += [TradeRecord(setup_type="OB", day_of_week="Friday", result="Loss", r_multiple=-1.0) for _ in range(2)]

        heatmaps = day_dominance(trades)
        assert len(heatmaps) == 1
        assert heatmaps[0].setup_type == "OB"
        assert heatmaps[0].summary["strong"] == ["Monday"]
        assert heatmaps[0].summary["weak"] == ["Friday"]

    def test_missed_trades_count_frequency_only(self):
        trades = [TradeRecord(setup_type="OB", day_of_week="Monday", result="Win", r_multiple=2.0) for _ in range(3)]
        trades.append(TradeRecord(
            setup_type="OB", day_of_week="Monday", trade_status="Missed", result="Win", r_multiple=2.0
        ))
        monday = day_dominance(trades)[0].classifications[0]
        assert monday.label == "Monday"
        assert monday.trade_count == 4
        assert monday.wins == 3
        assert monday.total_r == 6.0

    def test_no_trades_with_days(self):
        heatmaps = day_dominance([TradeRecord(setup_type="OB")])
        assert heatmaps[0].classifications == []
        assert heatmaps[0].summary is None


class TestTimeDominance:
    """Test time-of-day heatmaps."""

    def test_one_heatmap_per_setup(self):
        trades = [
            TradeRecord(setup_type="OB", trade_time="09:10", result="Win", r_multiple=1.0),
            TradeRecord(setup_type="FVG", trade_time="14:40", result="Loss", r_multiple=-1.0),
        ]
        heatmaps = time_dominance(trades)
        assert [h.setup_type for h in heatmaps] == ["OB", "FVG"]
        assert heatmaps[0].classifications[0].label == "09:00"
        assert heatmaps[1].classifications[0].classification == "weak"


class TestSessionDominance:
    """Test London vs NY comparison."""

    def test_london_dominates_on_win_rate(self):
        trades = [TradeRecord(setup_type="OB", session="London", result="Win", r_multiple=2.0) for _ in range(2)]
        trades += [TradeRecord(setup_type="OB", session="NY", result="Loss", r_multiple=-1.0) for _ in range(2)]
        result = session_dominance(trades)[0]
        assert result.dominant_session == "London"
        assert result.london_win_rate == 100.0
        assert result.ny_avg_r == -1.0
        assert result.london_trades == 2

    def test_neutral_when_equal(self):
        trades = [
            TradeRecord(setup_type="OB", session="London", result="Win", r_multiple=1.0),
            TradeRecord(setup_type="OB", session="NY", result="Win", r_multiple=1.0),
        ]
        assert session_dominance(trades)[0].dominant_session == "Neutral"

    def test_ny_dominates_on_avg_r(self):
        trades = [
            TradeRecord(setup_type="OB", session="London", result="Win", r_multiple=1.0),
            TradeRecord(setup_type="OB", session="NY", result="Win", r_multiple=1.5),
        ]
        assert session_dominance(trades)[0].dominant_session == "NY"
