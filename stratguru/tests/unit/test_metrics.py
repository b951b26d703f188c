# stratguru/tests/unit/test_metrics.py
"""Unit tests for the core expectancy and validation metrics."""
from datetime import date, timedelta

import pytest

from stratguru.analytics.records import TradeRecord
from stratguru.analytics.metrics import (
    PROFIT_FACTOR_CAP,
    r_multiple_for,
    result_for_r,
    calculate_expectancy,
    profit_factor,
    max_drawdown,
    longest_losing_streak,
    equity_direction,
    edge_summary,
    validate_strategy,
    confidence_for,
    sample_size_confidence,
)


def _trade(result, r, day=0, **kwargs):
    return TradeRecord(result=result, r_multiple=r, trade_date=date(2024, 1, 1) + timedelta(days=day), **kwargs)


class TestRMultiple:
    """Test R-multiple and result derivation."""

    def test_long_trade(self):
        assert r_multiple_for(100, 90, 120) == 2.0

    def test_short_trade(self):
        assert r_multiple_for(100, 110, 80) == 2.0
        assert r_multiple_for(100, 110, 105) == -0.5

    def test_missing_exit_or_zero_risk(self):
        assert r_multiple_for(100, 90, None) is None
        assert r_multiple_for(100, 100, 120) is None

    def test_result_bands(self):
        assert result_for_r(0.5) == "Win"
        assert result_for_r(-0.5) == "Loss"
        assert result_for_r(0.05) == "BE"
        assert result_for_r(-0.1) == "BE"


class TestExpectancy:
    """Test expectancy and its building blocks."""

    def test_empty(self):
        stats = calculate_expectancy([])
        assert stats.expectancy == 0.0
        assert stats.win_rate == 0.0
        assert stats.wins == 0

    def test_mixed_sample(self):
        trades = [_trade("Win", 2.0), _trade("Win", 1.0), _trade("Loss", -1.0), _trade("BE", 0.0)]
        stats = calculate_expectancy(trades)
        assert stats.wins == 2
        assert stats.losses == 1
        assert stats.win_rate == 66.7
        assert stats.avg_win_r == 1.5
        assert stats.avg_loss_r == 1.0
        assert stats.expectancy == 0.67
        assert stats.total_r == 2.0

    def test_profit_factor(self):
        assert profit_factor([2, 1, -1]) == 3.0
        assert profit_factor([1, 2]) == PROFIT_FACTOR_CAP
        assert profit_factor([]) == 0.0

    def test_max_drawdown_from_running_peak(self):
        assert max_drawdown([1, -1, -2, 3]) == 3
        assert max_drawdown([-1]) == 1

    def test_max_drawdown_never_shrinks_on_losses(self):
        rs = [2.0, -1.0, 1.5, -0.5]
        previous = max_drawdown(rs)
        for loss in (-0.25, -1.0, -3.0):
            rs.append(loss)
            current = max_drawdown(rs)
            assert current >= previous
            previous = current

    @pytest.mark.parametrize("results", [
        ["Win"] * 5,
        ["Loss"] * 5,
        ["Win", "Loss", "BE", "Loss"],
        ["BE", "BE"],
    ])
    def test_win_rate_bounds(self, results):
        rs = {"Win": 1.0, "Loss": -1.0, "BE": 0.0}
        stats = calculate_expectancy([_trade(res, rs[res]) for res in results])
        assert 0.0 <= stats.win_rate <= 100.0

    def test_longest_losing_streak(self):
        assert longest_losing_streak(["Loss", "Loss", "Win", "Loss"]) == 2
        assert longest_losing_streak([]) == 0

    def test_equity_direction(self):
        assert equity_direction([1.0] * 6) == "rising"
        assert equity_direction([-1.0] * 6) == "declining"
        assert equity_direction([1.0] * 4) == "flat"


class TestEdgeSummary:
    """Test the headline edge summary."""

    def test_empty(self):
        summary = edge_summary([])
        assert summary.total_trades == 0
        assert summary.profit_factor == 0.0

    def test_drawdown_follows_trade_date(self):
        # entered out of order; by date the two losses come after the win
        trades = [_trade("Loss", -1.0, day=2), _trade("Win", 2.0, day=0), _trade("Loss", -1.0, day=1)]
        summary = edge_summary(trades)
        assert summary.total_trades == 3
        assert summary.max_drawdown == 2.0
        assert summary.profit_factor == 1.0
        assert summary.avg_r == 0.0


class TestStrategyValidation:
    """Test the forward-testing gate."""

    def test_small_sample_fails_sample_check(self):
        trades = [_trade("Win", 1.0, day=i) for i in range(10)]
        result = validate_strategy(trades)
        assert result.total_trades == 10
        assert result.checks["expectancy"] is True
        assert result.checks["sample_size"] is False
        assert result.ready_for_forward_testing is False
        assert result.checks_passed == 3

    def test_full_gate_passes(self):
        trades = [_trade("Win", 1.0, day=i % 200) for i in range(300)]
        result = validate_strategy(trades)
        assert result.profit_factor == PROFIT_FACTOR_CAP
        assert result.equity_curve_direction == "rising"
        assert result.ready_for_forward_testing is True

    def test_incomplete_trades_ignored(self):
        trades = [_trade("Win", 1.0), TradeRecord(result=None, r_multiple=None)]
        assert validate_strategy(trades).total_trades == 1


class TestSampleConfidence:
    """Test the sample size confidence tiers."""

    @pytest.mark.parametrize("count,level,to_next", [
        (0, "unproven", 50),
        (60, "developing", 90),
        (150, "validated", 150),
        (300, "institutional", 0),
    ])
    def test_levels(self, count, level, to_next):
        info = confidence_for(count)
        assert info.confidence == level
        assert info.trades_to_next_level == to_next

    def test_percentage_capped(self):
        assert confidence_for(300).percentage == 75.0
        assert confidence_for(500).percentage == 100.0

    def test_per_setup_sorted_by_count(self):
        trades = [TradeRecord(setup_type="OB") for _ in range(3)] + [TradeRecord(setup_type="FVG")]
        results = sample_size_confidence(trades)
        assert [r.setup for r in results] == ["OB", "FVG"]
        assert results[0].trade_count == 3
