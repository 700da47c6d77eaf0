"""
Opportunity Synthesizer — levels + signals → TradingOpportunity

Confidence is a pure weighted reduction, never an accumulator object:

    confidence = Σ weight·[flag]  +  Σ level.strength · 0.1     (capped at 1.0)

    BOS 0.30 · CHOCH 0.25 · order-block retest 0.20 · imbalance 0.15

Classification, evaluated in order (later rule wins):
    WAIT_RETEST → BREAKOUT_LONG if BOS → BUY_LONG if order-block retest

Trade levels are fixed multiples of the current price:
    long  → entry −0.5%, stop 95%,  target 106%
    other → entry +0.5%, stop 105%, target 94%
"""

import logging
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional, Sequence, Tuple

from config import CONFIDENCE_WEIGHTS, MAX_CONFIDENCE, TRADE_LEVELS
from models import (
    Asset, OpportunityType, PriceLevel, SmcSignals, TradingOpportunity,
)

logger = logging.getLogger(__name__)

SIGNAL_PHRASES = (
    ("has_bos", "Break of Structure detected."),
    ("has_choch", "Change of Character identified."),
    ("has_order_block_retest", "Order block retest opportunity."),
    ("has_supply_demand_imbalance", "Supply/demand imbalance present."),
)


def compute_confidence(signals: SmcSignals, levels: Iterable[PriceLevel]) -> Decimal:
    weighted_flags = (
        (signals.has_bos, CONFIDENCE_WEIGHTS["bos"]),
        (signals.has_choch, CONFIDENCE_WEIGHTS["choch"]),
        (signals.has_order_block_retest, CONFIDENCE_WEIGHTS["order_block_retest"]),
        (signals.has_supply_demand_imbalance, CONFIDENCE_WEIGHTS["supply_demand_imbalance"]),
    )
    confidence = sum((weight for flag, weight in weighted_flags if flag), Decimal("0"))
    confidence += sum(
        (level.strength * CONFIDENCE_WEIGHTS["level_strength"] for level in levels),
        Decimal("0"),
    )
    return min(confidence, MAX_CONFIDENCE)


def select_opportunity_type(signals: SmcSignals) -> OpportunityType:
    # A retest overrides a breakout even when both fire.
    opportunity_type = OpportunityType.WAIT_RETEST
    if signals.has_bos:
        opportunity_type = OpportunityType.BREAKOUT_LONG
    if signals.has_order_block_retest:
        opportunity_type = OpportunityType.BUY_LONG
    return opportunity_type


def calculate_trading_levels(current_price: Decimal,
                             opportunity_type: OpportunityType) -> Tuple[Decimal, Decimal, Decimal]:
    """Returns (entry, stop_loss, take_profit)."""
    adjustment = current_price * TRADE_LEVELS["entry_adjustment"]

    if opportunity_type.is_long:
        return (
            current_price - adjustment,
            current_price * TRADE_LEVELS["long_stop"],
            current_price * TRADE_LEVELS["long_target"],
        )
    return (
        current_price + adjustment,
        current_price * TRADE_LEVELS["short_stop"],
        current_price * TRADE_LEVELS["short_target"],
    )


def build_analysis_text(signals: SmcSignals, confidence: Decimal, level_count: int) -> str:
    parts = [phrase for attr, phrase in SIGNAL_PHRASES if getattr(signals, attr)]
    pct = (confidence * 100).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    parts.append(f"Confidence: {pct}%.")
    parts.append(f"Key levels identified: {level_count}.")
    return " ".join(parts)


class OpportunitySynthesizer:
    """
    Turns one asset's levels and signals into a TradingOpportunity.

    Simple interface:
        synthesize(asset, levels, signals) -> TradingOpportunity
    """

    def synthesize(self, asset: Asset, levels: Sequence[PriceLevel], signals: SmcSignals,
                   identified_at: Optional[datetime] = None) -> TradingOpportunity:
        if asset.current_price is None:
            raise ValueError(f"{asset.symbol}: no current price to build trade levels from")

        key_levels = tuple(levels)
        confidence = compute_confidence(signals, key_levels)
        opportunity_type = select_opportunity_type(signals)
        entry, stop, target = calculate_trading_levels(asset.current_price, opportunity_type)

        opportunity = TradingOpportunity(
            asset=asset,
            current_price=asset.current_price,
            suggested_entry=entry,
            stop_loss=stop,
            take_profit=target,
            opportunity_type=opportunity_type,
            confidence=confidence,
            signals=signals,
            key_levels=key_levels,
            analysis_text=build_analysis_text(signals, confidence, len(key_levels)),
            identified_at=identified_at or datetime.now(),
        )
        logger.info(
            f"{asset.symbol}: {opportunity_type.value} confidence={confidence:.2f} "
            f"levels={len(key_levels)}"
        )
        return opportunity
