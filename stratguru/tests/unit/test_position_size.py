# stratguru/tests/unit/test_position_size.py
"""Unit tests for the position size calculator."""
import pytest

from stratguru.analytics.position_size import calculate_position_size


class TestPositionSize:
    """Test lot and unit sizing per instrument."""

    def test_forex_lots(self):
        result = calculate_position_size(10000, 1, 1.1000, 1.0950)
        assert result.risk_amount == 100.0
        assert result.stop_loss_pips == 50.0
        assert result.position_size == 0.2
        assert result.position_value == 22000.0
        assert result.take_profit == 1.11

    def test_jpy_pair_uses_two_decimal_pips(self):
        result = calculate_position_size(10000, 1, 150.00, 149.50, jpy_pair=True)
        assert result.stop_loss_pips == 50.0
        assert result.position_size == 0.2

    def test_pip_value_scales_lots(self):
        result = calculate_position_size(10000, 1, 1.1000, 1.0950, pip_value=5)
        assert result.position_size == 0.4

    def test_crypto_units(self):
        result = calculate_position_size(10000, 2, 60000, 59000, instrument="crypto")
        assert result.risk_amount == 200.0
        assert result.position_size == 0.2
        assert result.position_value == 12000.0
        assert result.stop_loss_pips is None

    def test_short_target_sits_below_entry(self):
        result = calculate_position_size(10000, 1, 100, 105, instrument="stocks")
        assert result.position_size == 20.0
        assert result.take_profit == 90.0

    @pytest.mark.parametrize("balance,risk,entry,stop", [
        (0, 1, 1.1, 1.09),
        (10000, 0, 1.1, 1.09),
        (10000, 1, 0, 1.09),
        (10000, 1, 1.1, None),
    ])
    def test_incomplete_inputs(self, balance, risk, entry, stop):
        assert calculate_position_size(balance, risk, entry, stop) is None

    def test_invalid_inputs(self):
        with pytest.raises(ValueError):
            calculate_position_size(10000, 1, 1.1, 1.1)
        with pytest.raises(ValueError):
            calculate_position_size(10000, 1, 1.1, 1.09, instrument="bonds")
        with pytest.raises(ValueError):
            calculate_position_size(10000, 1, 1.1, 1.09, pip_value=0)
