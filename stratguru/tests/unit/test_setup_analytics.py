# stratguru/tests/unit/test_setup_analytics.py
"""Unit tests for setup ranking, the quality matrix, mistakes, drift and entry precision."""
from datetime import date, timedelta

from stratguru.analytics.records import TradeRecord
from stratguru.analytics.setups import (
    consecutive_loss_drawdown,
    setup_edge_scores,
    setup_quality_matrix,
)
from stratguru.analytics.mistakes import mistake_patterns
from stratguru.analytics.drift import edge_drift, has_decay, DriftPoint
from stratguru.analytics.entry_precision import entry_precision


def _dated(setup, result, r, day):
    return TradeRecord(setup_type=setup, result=result, r_multiple=r, trade_date=date(2024, 1, 1) + timedelta(days=day))


class TestSetupEdge:
    """Test edge score ranking."""

    def test_consecutive_loss_drawdown(self):
        assert consecutive_loss_drawdown([-1, -1, 2, -0.5]) == 2.0
        assert consecutive_loss_drawdown([1, 2]) == 0.0

    def test_ranking(self):
        trades = [TradeRecord(setup_type="OB", result="Win", r_multiple=2.0) for _ in range(4)]
        trades += [TradeRecord(setup_type="FVG", result="Loss", r_multiple=-1.0) for _ in range(4)]
        trades.append(TradeRecord(result="Win", r_multiple=5.0))  # no setup, skipped

        scores = setup_edge_scores(trades)
        assert [s.setup for s in scores] == ["OB", "FVG"]
        assert scores[0].edge_score == 0.4
        assert scores[0].sample_size == 4
        assert scores[1].edge_score == -0.2
        assert scores[1].max_drawdown == 4.0

    def test_edge_score_uses_unrounded_expectancy(self):
        # expectancy 0.1249 is reported as 0.12; the score scales the exact value
        trades = [TradeRecord(setup_type="OB", result="Win", r_multiple=0.1249) for _ in range(400)]
        score = setup_edge_scores(trades)[0]
        assert score.expectancy == 0.12
        assert score.edge_score == 0.25

    def test_groups_by_registry_id(self):
        trades = [
            TradeRecord(setup_type_id="st-1", setup_type="OB", result="Win", r_multiple=1.0),
            TradeRecord(setup_type_id="st-1", setup_type="OBR", result="Win", r_multiple=1.0),
        ]
        scores = setup_edge_scores(trades)
        assert len(scores) == 1
        assert scores[0].setup_id == "st-1"
        assert scores[0].sample_size == 2


class TestQualityMatrix:
    """Test the setup x grade matrix."""

    def test_best_grade_needs_three_trades(self):
        trades = [TradeRecord(setup_type="OB", setup_grade="A+", result="Win", r_multiple=2.0) for _ in range(3)]
        trades += [TradeRecord(setup_type="OB", setup_grade="B", result="Loss", r_multiple=-1.0) for _ in range(3)]
        trades.append(TradeRecord(setup_type="OB", setup_grade="A", result="Win", r_multiple=3.0))

        matrix = setup_quality_matrix(trades)
        row = matrix.rows[0]
        assert row.setup_type == "OB"
        assert row.total_trades == 7
        assert row.best_grade == "A+"
        assert row.cells["A"].trade_count == 1
        assert row.cells["Trash"] is None
        assert matrix.column_best["A+"] == {"setup": "OB", "expectancy": 2.0}
        assert matrix.column_best["A"] is None


class TestMistakePatterns:
    """Test mistake tagging."""

    def _trades(self):
        return [
            TradeRecord(setup_type="OB", rules_followed="No", result="Loss", r_multiple=-2.0),
            TradeRecord(setup_type="OB", rules_followed="No", result="Win", r_multiple=1.0),
            TradeRecord(setup_type="FVG", revenge_trade="Yes", result="Loss", r_multiple=-1.0),
        ]

    def test_costliest_first(self):
        patterns = mistake_patterns(self._trades())
        assert [p.tag for p in patterns] == ["Rules Broken", "Revenge Trade"]
        assert patterns[0].frequency == 2
        assert patterns[0].avg_r_lost == 2.0
        assert patterns[0].severity_score == 4.0
        assert patterns[0].relevant_setups == ["OB"]

    def test_active_setup_filter(self):
        patterns = mistake_patterns(self._trades(), active_setup="FVG")
        assert [p.tag for p in patterns] == ["Revenge Trade"]


class TestEdgeDrift:
    """Test rolling window drift."""

    def test_decay_detected(self):
        trades = [_dated("OB", "Win", 2.0, i) for i in range(5)]
        trades += [_dated("OB", "Win", 2.0, 5 + i) for i in range(3)]
        trades += [_dated("OB", "Loss", -1.0, 8 + i) for i in range(2)]

        drift = edge_drift(trades)[0]
        assert drift.setup == "OB"
        assert [p.period for p in drift.data_points] == ["P1", "P2"]
        assert drift.data_points[0].expectancy == 2.0
        assert drift.data_points[1].expectancy == 0.8
        assert drift.has_edge_decay is True

    def test_short_trailing_window_skipped(self):
        trades = [_dated("OB", "Win", 1.0, i) for i in range(12)]
        assert len(edge_drift(trades)[0].data_points) == 2

    def test_has_decay_requires_positive_previous(self):
        assert has_decay([DriftPoint("P1", -0.5, 40.0, -0.2), DriftPoint("P2", -1.0, 30.0, -0.5)]) is False
        assert has_decay([DriftPoint("P1", 1.0, 60.0, 0.5)]) is False
        assert has_decay([DriftPoint("P1", 1.0, 60.0, 0.5), DriftPoint("P2", 0.9, 58.0, 0.45)]) is False


class TestEntryPrecision:
    """Test entry precision metrics and insights."""

    def test_empty(self):
        report = entry_precision([])
        assert report.total_trades == 0
        assert report.insights[0].text == "No trade data available for analysis."

    def test_late_entries(self):
        common = dict(setup_type="OB", entry_price=100.0, stop_loss=95.0, take_profit=110.0, rr_planned=1.5)
        trades = [
            TradeRecord(entry_precision="Late", result="Loss", r_multiple=-1.0, **common),
            TradeRecord(entry_precision="Late", result="Loss", r_multiple=-1.0, **common),
            TradeRecord(entry_precision="Optimal", result="Win", r_multiple=2.0, **common),
        ]
        report = entry_precision(trades)
        assert report.avg_stop_loss_size == 5.0
        assert report.avg_take_profit_size == 10.0
        assert report.avg_r_lost_late_entry == 1.0
        assert report.precision_distribution == {"Early": 0, "Optimal": 1, "Late": 2}
        assert len(report.insights) == 3
        assert report.insights[0].text.startswith("Late entries are reducing expectancy")

    def test_active_setup_with_no_trades(self):
        trades = [TradeRecord(setup_type="OB", entry_precision="Optimal")]
        report = entry_precision(trades, active_setup="FVG")
        assert report.total_trades == 0
