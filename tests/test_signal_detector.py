"""Tests for the SMC signal set."""

import pytest
from decimal import Decimal

from signal_detector import (
    SignalDetector,
    detect_break_of_structure,
    detect_change_of_character,
    detect_order_block_retest,
    detect_supply_demand_imbalance,
    calculate_liquidity_level,
    trend,
)


def D(values):
    return [Decimal(str(v)) for v in values]


def choch_series(length: int = 20, last: str = "102", anchor: str = "120"):
    """Flat series with the 15-back observation moved and a final tick."""
    series = D([100] * (length - 1) + [last])
    series[length - 15] = Decimal(anchor)
    return series


class TestBreakOfStructure:
    """BOS against the last 10 observations."""

    def test_scenario_breakout_above_recent_high(self):
        series = D([97, 99, 103, 102, 101, 100, 99, 98, 97, 96])
        # 110 > 103 * 1.015 = 104.545
        assert detect_break_of_structure(series, Decimal("110")) is True

    def test_only_last_ten_observations_count(self):
        series = D([500, 400] + [97, 99, 103, 102, 101, 100, 99, 98, 97, 96])
        assert detect_break_of_structure(series, Decimal("110")) is True

    def test_break_below_recent_low(self):
        assert detect_break_of_structure(D([100] * 10), Decimal("98")) is True

    def test_boundaries_are_strict(self):
        series = D([100] * 10)
        assert detect_break_of_structure(series, Decimal("98.5")) is False
        assert detect_break_of_structure(series, Decimal("101.5")) is False
        assert detect_break_of_structure(series, Decimal("101.51")) is True

    @pytest.mark.parametrize("length", [0, 3, 9])
    def test_short_series_never_breaks(self, length):
        assert detect_break_of_structure(D([100] * length), Decimal("1000")) is False


class TestChangeOfCharacter:
    """Short trend against medium trend."""

    def test_trend(self):
        assert trend(D([100, 50, 110])) == Decimal("0.1")
        assert trend(D([100])) == Decimal("0")

    def test_reversal_detected(self):
        assert detect_change_of_character(choch_series(), Decimal("102")) is True

    def test_short_move_of_exactly_one_percent_is_ignored(self):
        assert detect_change_of_character(choch_series(last="101"), Decimal("101")) is False

    def test_same_direction_trends_are_not_choch(self):
        assert detect_change_of_character(choch_series(anchor="90"), Decimal("102")) is False

    def test_needs_twenty_observations(self):
        assert detect_change_of_character(choch_series(length=19), Decimal("102")) is False


class TestImbalanceAndStubs:
    """Imbalance and the placeholder extension points."""

    def test_large_step_is_imbalance(self):
        assert detect_supply_demand_imbalance(D([100, 100, 103])) is True
        assert detect_supply_demand_imbalance(D([100, "97.4"])) is True

    def test_step_of_exactly_two_and_a_half_percent_is_not(self):
        assert detect_supply_demand_imbalance(D([100, "102.5"])) is False

    def test_order_block_retest_is_stubbed(self):
        assert detect_order_block_retest(D([1, 2, 3]), Decimal("2")) is False

    def test_liquidity_level_is_placeholder(self):
        assert calculate_liquidity_level(D([1, 2, 3]), Decimal("2")) == Decimal("0.75")


class TestSignalDetector:
    """Full signal set."""

    def test_constant_series_has_no_signals(self):
        signals = SignalDetector().analyze(D([50] * 30), Decimal("50"))

        assert signals.has_bos is False
        assert signals.has_choch is False
        assert signals.has_order_block_retest is False
        assert signals.has_supply_demand_imbalance is False
        assert signals.any_structural is False
        assert signals.liquidity_level == Decimal("0.75")

    def test_short_series_has_no_bos(self):
        signals = SignalDetector().analyze(D([100, 100, 120]), Decimal("200"))
        assert signals.has_bos is False
        assert signals.has_supply_demand_imbalance is True

    def test_signals_combine(self):
        signals = SignalDetector().analyze(choch_series(), Decimal("102"))
        assert signals.has_choch is True
        assert signals.has_supply_demand_imbalance is True
        assert signals.any_structural is True


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
