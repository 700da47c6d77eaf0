"""
Level Detector — Structural Price Levels

Scans an ordered price series (older → newer) and emits the levels that
Smart Money Concept traders draw on a chart:

  ORDER_BLOCK_BULLISH / BEARISH — the bar right before a sharp (>2%) reversal,
                                  where institutions are assumed to have filled
  SUPPLY_ZONE / DEMAND_ZONE     — strict local highs / lows over a ±2 window
  SUPPORT / RESISTANCE          — prices the series revisited (±1% band),
                                  split by where they sit vs. current price

The three passes are independent: the same price may come back as several
level kinds, each answering a different question. No deduplication.

Deep module:
  Simple interface → detect(series, current_price) -> List[PriceLevel]
  Complexity hidden → index windows, Decimal ratios, touch clustering
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence

from config import SMC_CONFIG
from models import PriceLevel, PriceLevelType

logger = logging.getLogger(__name__)


def zone_strength(series: Sequence[Decimal], index: int, is_supply: bool) -> Decimal:
    """
    Extension point: supply/demand zone strength.

    Returns a fixed placeholder. A real score would weigh the magnitude of
    the swing and the traded volume around `index`.
    """
    return SMC_CONFIG["zone_strength_placeholder"]


def order_block_strength(series: Sequence[Decimal], index: int) -> Decimal:
    """Size of the move around the block relative to its price (not clamped)."""
    if series[index] == 0:
        return Decimal("0")
    move = abs(series[index + 1] - series[index - 1])
    return (move / series[index]).quantize(SMC_CONFIG["strength_places"], rounding=ROUND_HALF_UP)


def count_touches(series: Sequence[Decimal], level: Decimal,
                  tolerance: Decimal = SMC_CONFIG["sr_tolerance"]) -> int:
    """Observations inside the inclusive [level·(1-tol), level·(1+tol)] band."""
    upper = level * (1 + tolerance)
    lower = level * (1 - tolerance)
    return sum(1 for price in series if lower <= price <= upper)


class LevelDetector:
    """
    Detects order blocks, supply/demand zones and support/resistance.

    Simple interface:
        detect(series, current_price) -> List[PriceLevel]

    Output order: order blocks, then zones, then S/R, each by series index.
    """

    # ── Public Interface ────────────────────────────────────────────────

    def detect(self, series: Sequence[Decimal], current_price: Decimal,
               as_of: Optional[datetime] = None) -> List[PriceLevel]:
        if len(series) < SMC_CONFIG["min_series_length"]:
            logger.debug(f"Series too short for level detection ({len(series)} points)")
            return []

        as_of = as_of or datetime.now()
        levels: List[PriceLevel] = []
        levels.extend(self._detect_order_blocks(series, as_of))
        levels.extend(self._detect_supply_demand_zones(series, as_of))
        levels.extend(self._detect_support_resistance(series, current_price, as_of))
        return levels

    # ── Detectors ───────────────────────────────────────────────────────

    def _detect_order_blocks(self, series, as_of) -> List[PriceLevel]:
        blocks = []
        threshold = SMC_CONFIG["order_block_threshold"]

        for i in range(2, len(series) - 2):
            prev_price, bar, next_price = series[i - 1], series[i], series[i + 1]
            if bar == 0:
                continue

            if bar < prev_price and next_price > bar and (next_price - bar) / bar > threshold:
                kind = PriceLevelType.ORDER_BLOCK_BULLISH
            elif bar > prev_price and next_price < bar and (bar - next_price) / bar > threshold:
                kind = PriceLevelType.ORDER_BLOCK_BEARISH
            else:
                continue

            blocks.append(PriceLevel(
                price=bar,
                level_type=kind,
                timestamp=self._timestamp(as_of, len(series), i),
                strength=order_block_strength(series, i),
                index=i,
            ))

        return blocks

    def _detect_supply_demand_zones(self, series, as_of) -> List[PriceLevel]:
        zones = []
        margin = SMC_CONFIG["zone_margin"]

        for i in range(margin, len(series) - margin):
            if self._is_local_extreme(series, i, highest=True):
                kind, is_supply = PriceLevelType.SUPPLY_ZONE, True
            elif self._is_local_extreme(series, i, highest=False):
                kind, is_supply = PriceLevelType.DEMAND_ZONE, False
            else:
                continue

            zones.append(PriceLevel(
                price=series[i],
                level_type=kind,
                timestamp=self._timestamp(as_of, len(series), i),
                strength=zone_strength(series, i, is_supply),
                index=i,
            ))

        return zones

    def _detect_support_resistance(self, series, current_price, as_of) -> List[PriceLevel]:
        levels = []

        for i in range(1, len(series) - 1):
            price = series[i]
            touches = count_touches(series, price)
            if touches < SMC_CONFIG["sr_min_touches"]:
                continue

            kind = PriceLevelType.RESISTANCE if price > current_price else PriceLevelType.SUPPORT
            levels.append(PriceLevel(
                price=price,
                level_type=kind,
                timestamp=self._timestamp(as_of, len(series), i),
                strength=min(touches * SMC_CONFIG["sr_strength_per_touch"], Decimal("1.0")),
                touch_count=touches,
                index=i,
            ))

        return levels

    # ── Helpers ─────────────────────────────────────────────────────────

    @staticmethod
    def _is_local_extreme(series, index: int, highest: bool) -> bool:
        window = SMC_CONFIG["zone_window"]
        if index < window or index >= len(series) - window:
            return False

        price = series[index]
        neighbours = [series[j] for j in range(index - window, index + window + 1) if j != index]
        if highest:
            return all(price > other for other in neighbours)
        return all(price < other for other in neighbours)

    @staticmethod
    def _timestamp(as_of: datetime, length: int, index: int) -> datetime:
        return as_of - timedelta(hours=length - index)
