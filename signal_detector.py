"""
Signal Detector — Smart Money Concept Signal Set

Reduces a price series to the five SMC signals the scorer consumes:

  BOS   (Break of Structure)   — current price clears the last-10 high/low
                                 by more than 1.5% → continuation
  CHOCH (Change of Character)  — 5-bar trend points against the 15-bar trend
                                 and moved more than 1% → reversal
  ORDER BLOCK RETEST           — extension point, always False for now
  SUPPLY/DEMAND IMBALANCE      — any single step jumped more than 2.5%
  LIQUIDITY LEVEL              — extension point, fixed 0.75 for now

Short series are not an error: each rule simply reports False when it does
not have enough observations.

Deep module:
  Simple interface → analyze(series, current_price) -> SmcSignals
"""

import logging
from decimal import Decimal
from typing import Sequence

from config import SMC_CONFIG
from models import SmcSignals

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
# Signal rules
# ═══════════════════════════════════════════════════════════════════════════

def detect_break_of_structure(series: Sequence[Decimal], current_price: Decimal) -> bool:
    lookback = SMC_CONFIG["bos_lookback"]
    if len(series) < lookback:
        return False

    recent = series[-lookback:]
    recent_high = max(recent)
    recent_low = min(recent)
    threshold = SMC_CONFIG["bos_threshold"]

    return (current_price > recent_high * (1 + threshold)
            or current_price < recent_low * (1 - threshold))


def trend(prices: Sequence[Decimal]) -> Decimal:
    """Relative change from the first to the last observation."""
    if len(prices) < 2 or prices[0] == 0:
        return Decimal("0")
    return (prices[-1] - prices[0]) / prices[0]


def detect_change_of_character(series: Sequence[Decimal], current_price: Decimal) -> bool:
    if len(series) < SMC_CONFIG["choch_min_length"]:
        return False

    short_trend = trend(series[-SMC_CONFIG["choch_short_window"]:])
    medium_trend = trend(series[-SMC_CONFIG["choch_medium_window"]:])

    return (short_trend * medium_trend < 0
            and abs(short_trend) > SMC_CONFIG["choch_threshold"])


def detect_order_block_retest(series: Sequence[Decimal], current_price: Decimal) -> bool:
    """
    Extension point: is price back inside a previously detected order block?

    Not implemented yet; always False. The real check needs the detected
    order blocks plus a tolerance band around each.
    """
    return False


def detect_supply_demand_imbalance(series: Sequence[Decimal]) -> bool:
    threshold = SMC_CONFIG["imbalance_threshold"]
    for prev_price, price in zip(series, series[1:]):
        if prev_price == 0:
            continue
        if abs(price - prev_price) / prev_price > threshold:
            return True
    return False


def calculate_liquidity_level(series: Sequence[Decimal], current_price: Decimal) -> Decimal:
    """
    Extension point: relative liquidity from volume and price action.

    Returns a fixed placeholder until volume data is wired in.
    """
    return SMC_CONFIG["liquidity_placeholder"]


# ═══════════════════════════════════════════════════════════════════════════
# Signal Detector
# ═══════════════════════════════════════════════════════════════════════════

class SignalDetector:
    """
    Computes the SMC signal set for one asset.

    Simple interface:
        analyze(series, current_price) -> SmcSignals
    """

    def analyze(self, series: Sequence[Decimal], current_price: Decimal) -> SmcSignals:
        signals = SmcSignals(
            has_bos=detect_break_of_structure(series, current_price),
            has_choch=detect_change_of_character(series, current_price),
            has_order_block_retest=detect_order_block_retest(series, current_price),
            has_supply_demand_imbalance=detect_supply_demand_imbalance(series),
            liquidity_level=calculate_liquidity_level(series, current_price),
        )
        logger.debug(
            f"Signals: BOS={signals.has_bos} CHOCH={signals.has_choch} "
            f"retest={signals.has_order_block_retest} "
            f"imbalance={signals.has_supply_demand_imbalance}"
        )
        return signals
