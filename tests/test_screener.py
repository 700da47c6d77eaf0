"""Tests for candidate screening and opportunity ranking."""

import pytest
from dataclasses import replace
from decimal import Decimal

from data_collector import sample_assets
from models import Asset, OpportunityType, SmcSignals, TradingOpportunity
from screener import (
    filter_candidates,
    is_valid_opportunity,
    meets_screening_criteria,
    rank_opportunities,
)


def liquid_asset(**overrides) -> Asset:
    fields = dict(
        symbol="TST", name="Test Coin",
        current_price=Decimal("1.5"), market_cap=Decimal("500000000"),
        volume_24h=Decimal("50000000"), percent_change_24h=Decimal("3.5"),
    )
    fields.update(overrides)
    return Asset(**fields)


def opportunity(confidence, symbol="TST", signals=None) -> TradingOpportunity:
    price = Decimal("10")
    return TradingOpportunity(
        asset=liquid_asset(symbol=symbol),
        current_price=price,
        suggested_entry=price,
        stop_loss=price,
        take_profit=price,
        opportunity_type=OpportunityType.BREAKOUT_LONG,
        confidence=Decimal(str(confidence)),
        signals=signals if signals is not None else SmcSignals(has_bos=True),
    )


class TestScreening:
    """Market-quality floors on the raw snapshot."""

    def test_sample_data(self):
        candidates = filter_candidates(sample_assets())
        # ETH moved only -1.8%
        assert [a.symbol for a in candidates] == ["BTC", "SOL", "ADA", "MATIC"]

    def test_low_volume_rejected(self):
        assert meets_screening_criteria(liquid_asset(volume_24h=Decimal("5000000"))) is False

    def test_volume_floor_is_strict(self):
        assert meets_screening_criteria(liquid_asset(volume_24h=Decimal("10000000"))) is False

    def test_change_of_exactly_two_percent_rejected(self):
        assert meets_screening_criteria(liquid_asset(percent_change_24h=Decimal("2"))) is False
        assert meets_screening_criteria(liquid_asset(percent_change_24h=Decimal("-2"))) is False

    def test_negative_move_counts(self):
        assert meets_screening_criteria(liquid_asset(percent_change_24h=Decimal("-2.01"))) is True

    def test_market_cap_floor_is_strict(self):
        assert meets_screening_criteria(liquid_asset(market_cap=Decimal("100000000"))) is False

    def test_price_floor_is_inclusive(self):
        assert meets_screening_criteria(liquid_asset(current_price=Decimal("0.01"))) is True
        assert meets_screening_criteria(liquid_asset(current_price=Decimal("0.0099"))) is False

    @pytest.mark.parametrize("field", ["current_price", "market_cap", "volume_24h",
                                       "percent_change_24h"])
    def test_missing_field_rejected(self, field):
        assert meets_screening_criteria(liquid_asset(**{field: None})) is False

    def test_predicate_is_pure(self):
        asset = liquid_asset()
        results = {meets_screening_criteria(asset) for _ in range(5)}
        assert results == {True}
        assert asset == liquid_asset()

    def test_filter_keeps_input_order(self):
        assets = [liquid_asset(symbol=s) for s in ("C", "A", "B")]
        assert [a.symbol for a in filter_candidates(assets)] == ["C", "A", "B"]


class TestValidity:
    """Confidence floor and structural signal requirement."""

    def test_below_confidence_floor(self):
        assert is_valid_opportunity(opportunity("0.29")) is False

    def test_confidence_floor_is_inclusive(self):
        assert is_valid_opportunity(opportunity("0.3")) is True

    def test_high_confidence_without_signals(self):
        assert is_valid_opportunity(opportunity("0.9", signals=SmcSignals())) is False

    def test_liquidity_alone_is_not_structural(self):
        signals = SmcSignals(liquidity_level=Decimal("0.75"))
        assert is_valid_opportunity(opportunity("0.9", signals=signals)) is False


class TestRanking:
    """Stable descending sort, capped."""

    def test_caps_at_twenty(self):
        opps = [opportunity(Decimal("0.3") + Decimal(i) / 100, symbol=f"C{i}") for i in range(25)]
        ranked = rank_opportunities(opps)

        assert len(ranked) == 20
        assert [o.asset.symbol for o in ranked] == [f"C{i}" for i in range(24, 4, -1)]

    def test_sorted_descending(self):
        opps = [opportunity(c, symbol=str(c)) for c in ("0.4", "0.9", "0.35", "0.6")]
        ranked = rank_opportunities(opps)
        assert [o.confidence for o in ranked] == [Decimal(c) for c in ("0.9", "0.6", "0.4", "0.35")]

    def test_ties_keep_input_order(self):
        opps = [opportunity("0.5", symbol=s) for s in ("X", "Y", "Z")]
        opps.insert(1, opportunity("0.7", symbol="TOP"))
        ranked = rank_opportunities(opps)
        assert [o.asset.symbol for o in ranked] == ["TOP", "X", "Y", "Z"]

    def test_invalid_dropped_before_ranking(self):
        weak = opportunity("0.1", symbol="WEAK")
        silent = replace(opportunity("0.8", symbol="SILENT"), signals=SmcSignals())
        good = opportunity("0.4", symbol="GOOD")
        assert [o.asset.symbol for o in rank_opportunities([weak, silent, good])] == ["GOOD"]

    def test_custom_limit_and_empty(self):
        opps = [opportunity("0.5", symbol=s) for s in "ABC"]
        assert [o.asset.symbol for o in rank_opportunities(opps, limit=2)] == ["A", "B"]
        assert rank_opportunities([]) == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
