"""Core data models — single source of truth for the scanner.

Everything flowing through the pipeline is an immutable dataclass holding
Decimal values. Derived fields (tested, potential_return, rr_ratio) are
computed here so display.py and report_writer.py never break on missing
attributes.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple, Dict, Any


def _num(value: Optional[Decimal]) -> Optional[str]:
    """Decimals travel as exact decimal strings in JSON."""
    return None if value is None else str(value)


def _ts(value: Optional[datetime]) -> Optional[str]:
    return None if value is None else value.isoformat()


@dataclass(frozen=True)
class Asset:
    symbol: str
    name: str
    current_price: Optional[Decimal] = None
    market_cap: Optional[Decimal] = None
    volume_24h: Optional[Decimal] = None
    percent_change_24h: Optional[Decimal] = None
    percent_change_7d: Optional[Decimal] = None
    last_updated: Optional[datetime] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "symbol": self.symbol,
            "name": self.name,
            "currentPrice": _num(self.current_price),
            "marketCap": _num(self.market_cap),
            "volume24h": _num(self.volume_24h),
            "percentChange24h": _num(self.percent_change_24h),
            "percentChange7d": _num(self.percent_change_7d),
            "lastUpdated": _ts(self.last_updated),
        }


class PriceLevelType(Enum):
    SUPPORT = "SUPPORT"
    RESISTANCE = "RESISTANCE"
    ORDER_BLOCK_BULLISH = "ORDER_BLOCK_BULLISH"
    ORDER_BLOCK_BEARISH = "ORDER_BLOCK_BEARISH"
    SUPPLY_ZONE = "SUPPLY_ZONE"
    DEMAND_ZONE = "DEMAND_ZONE"


@dataclass(frozen=True)
class PriceLevel:
    """A structural price level found in a price series."""
    price: Decimal
    level_type: PriceLevelType
    timestamp: datetime               # synthetic recency marker (now - N hours)
    strength: Decimal = Decimal("0")  # not clamped for order blocks
    touch_count: int = 0
    index: Optional[int] = None       # raw position in the source series

    @property
    def tested(self) -> bool:
        return self.touch_count > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "price": _num(self.price),
            "timestamp": _ts(self.timestamp),
            "kind": self.level_type.value,
            "strength": _num(self.strength),
            "tested": self.tested,
            "touchCount": self.touch_count,
        }


@dataclass(frozen=True)
class SmcSignals:
    has_bos: bool = False
    has_choch: bool = False
    has_order_block_retest: bool = False
    has_supply_demand_imbalance: bool = False
    liquidity_level: Decimal = Decimal("0")

    @property
    def any_structural(self) -> bool:
        return (self.has_bos or self.has_choch
                or self.has_order_block_retest
                or self.has_supply_demand_imbalance)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hasBOS": self.has_bos,
            "hasCHOCH": self.has_choch,
            "hasOrderBlockRetest": self.has_order_block_retest,
            "hasSupplyDemandImbalance": self.has_supply_demand_imbalance,
            "liquidityLevel": _num(self.liquidity_level),
        }


class OpportunityType(Enum):
    BUY_LONG = "BUY_LONG"
    SELL_SHORT = "SELL_SHORT"
    WAIT_RETEST = "WAIT_RETEST"
    BREAKOUT_LONG = "BREAKOUT_LONG"
    BREAKOUT_SHORT = "BREAKOUT_SHORT"

    @property
    def is_long(self) -> bool:
        return self in (OpportunityType.BUY_LONG, OpportunityType.BREAKOUT_LONG)


@dataclass(frozen=True)
class TradingOpportunity:
    asset: Asset
    current_price: Decimal
    suggested_entry: Decimal
    stop_loss: Decimal
    take_profit: Decimal
    opportunity_type: OpportunityType
    confidence: Decimal
    signals: SmcSignals
    key_levels: Tuple[PriceLevel, ...] = ()
    analysis_text: str = ""
    identified_at: datetime = field(default_factory=datetime.now)

    # ── Computed properties ─────────────────────────────────────────────
    @property
    def potential_return(self) -> Decimal:
        """Percent move from current price to take-profit."""
        if not self.current_price:
            return Decimal("0")
        move = (self.take_profit - self.current_price) / self.current_price * 100
        return move.quantize(Decimal("0.1"))

    @property
    def rr_ratio(self) -> Decimal:
        risk = abs(self.suggested_entry - self.stop_loss)
        if risk == 0:
            return Decimal("0")
        reward = abs(self.take_profit - self.suggested_entry)
        return (reward / risk).quantize(Decimal("0.1"))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "asset": self.asset.to_dict(),
            "currentPrice": _num(self.current_price),
            "suggestedEntry": _num(self.suggested_entry),
            "stopLoss": _num(self.stop_loss),
            "takeProfit": _num(self.take_profit),
            "kind": self.opportunity_type.value,
            "confidence": _num(self.confidence),
            "keyLevels": [level.to_dict() for level in self.key_levels],
            "analysisText": self.analysis_text,
            "identifiedAt": _ts(self.identified_at),
            "smcSignals": self.signals.to_dict(),
        }
