"""
Market Data Collector — asset snapshots and price histories

Two independent jobs:

1. Asset snapshots — one request to the CoinGecko markets endpoint returns
   price, market cap, 24h volume and 24h/7d change for the top coins.
   The universe is the union of three slices (top coins, high-volume coins,
   volatile coins), de-duplicated by symbol.
2. Price series — an ordered list of Decimal closes per asset, whose last
   value is the asset's current price:
     • YahooPriceSeriesProvider     — hourly closes from Yahoo Finance
     • SimulatedPriceSeriesProvider — seeded ±5% random walk (offline/demo)

All numbers leave this module as Decimal; floats never reach the engine.

Deep module:
  Simple interface → collect_assets() -> List[Asset]
                     get_price_series(asset) -> List[Decimal]
  Complexity hidden → HTTP, parsing, caching, float→Decimal conversion
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd
import requests
import yfinance as yf

from config import (
    COINGECKO_URL, VS_CURRENCY, REQUEST_TIMEOUT, USER_AGENT, UNIVERSE,
    YAHOO_QUOTE_SUFFIX, YAHOO_PERIOD, YAHOO_INTERVAL, HISTORY_POINTS,
    SIMULATION, SIMULATION_SEED, SNAPSHOT_CACHE_SECONDS,
)
from models import Asset

logger = logging.getLogger(__name__)


def to_decimal(value) -> Optional[Decimal]:
    """Convert a scraped/parsed number to Decimal; None, NaN and infinities become None."""
    if value is None:
        return None
    if isinstance(value, Decimal):
        number = value
    else:
        try:
            number = Decimal(str(value))
        except (ArithmeticError, ValueError):
            return None
    return number if number.is_finite() else None


def _parse_timestamp(text: Optional[str]) -> Optional[datetime]:
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def dedupe_by_symbol(assets: Iterable[Asset]) -> List[Asset]:
    """First occurrence of each symbol wins; assets without a symbol are dropped."""
    unique: Dict[str, Asset] = {}
    for asset in assets:
        if not asset.symbol or asset.symbol in unique:
            continue
        unique[asset.symbol] = asset
    return list(unique.values())


def sample_assets() -> List[Asset]:
    """Built-in dataset used when the live snapshot cannot be fetched."""
    now = datetime.now()
    rows = [
        ("BTC", "Bitcoin", "45000", "850000000000", "25000000000", "2.5", "8.2"),
        ("ETH", "Ethereum", "2800", "320000000000", "15000000000", "-1.8", "5.4"),
        ("SOL", "Solana", "120", "45000000000", "2500000000", "7.2", "15.8"),
        ("ADA", "Cardano", "0.85", "28000000000", "800000000", "-3.2", "2.1"),
        ("MATIC", "Polygon", "1.25", "12000000000", "600000000", "4.8", "12.3"),
    ]
    return [
        Asset(
            symbol=symbol, name=name,
            current_price=Decimal(price), market_cap=Decimal(cap),
            volume_24h=Decimal(volume), percent_change_24h=Decimal(ch24),
            percent_change_7d=Decimal(ch7), last_updated=now,
        )
        for symbol, name, price, cap, volume, ch24, ch7 in rows
    ]


# ═══════════════════════════════════════════════════════════════════════════
# Asset snapshots
# ═══════════════════════════════════════════════════════════════════════════

class DataCollector:
    """
    Collects the asset universe from the CoinGecko markets endpoint.

    Simple interface:
        collect_assets() -> List[Asset]

    Network and HTTP errors propagate; the caller decides on a fallback.
    """

    def __init__(self, session: Optional[requests.Session] = None):
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": USER_AGENT, "Accept": "application/json"})
        self._cache: Dict[int, Tuple[List[Asset], datetime]] = {}
        self._cache_timeout = timedelta(seconds=SNAPSHOT_CACHE_SECONDS)

    # ── Public Interface ────────────────────────────────────────────────

    def collect_assets(self) -> List[Asset]:
        snapshot = self.fetch_market_snapshot(UNIVERSE["snapshot_limit"])

        top = snapshot[:UNIVERSE["top_limit"]]
        high_volume = [
            a for a in top
            if a.volume_24h is not None and a.volume_24h > UNIVERSE["high_volume_min"]
        ]
        volatile = [
            a for a in snapshot
            if a.percent_change_24h is not None
            and abs(a.percent_change_24h) > UNIVERSE["volatile_min_change"]
        ]
        logger.info(
            f"Snapshot: {len(top)} top, {len(high_volume)} high-volume, "
            f"{len(volatile)} volatile"
        )

        assets = dedupe_by_symbol(top + high_volume + volatile)
        logger.info(f"Collected {len(assets)} unique assets")
        return assets

    def fetch_market_snapshot(self, limit: int) -> List[Asset]:
        if limit in self._cache:
            assets, ts = self._cache[limit]
            if datetime.now() - ts < self._cache_timeout:
                return assets

        logger.info(f"Fetching market snapshot ({limit} coins) from {COINGECKO_URL}")
        resp = self.session.get(
            COINGECKO_URL,
            params={
                "vs_currency": VS_CURRENCY,
                "order": "market_cap_desc",
                "per_page": limit,
                "page": 1,
                "price_change_percentage": "24h,7d",
            },
            timeout=REQUEST_TIMEOUT,
        )
        resp.raise_for_status()
        rows = resp.json(parse_float=Decimal)

        assets = [asset for asset in (self._parse_row(row) for row in rows) if asset]
        self._cache[limit] = (assets, datetime.now())
        return assets

    # ── Internal ────────────────────────────────────────────────────────

    @staticmethod
    def _parse_row(row: dict) -> Optional[Asset]:
        try:
            symbol = (row.get("symbol") or "").upper()
            change_24h = row.get("price_change_percentage_24h_in_currency",
                                 row.get("price_change_percentage_24h"))
            return Asset(
                symbol=symbol,
                name=row.get("name") or symbol,
                current_price=to_decimal(row.get("current_price")),
                market_cap=to_decimal(row.get("market_cap")),
                volume_24h=to_decimal(row.get("total_volume")),
                percent_change_24h=to_decimal(change_24h),
                percent_change_7d=to_decimal(row.get("price_change_percentage_7d_in_currency")),
                last_updated=_parse_timestamp(row.get("last_updated")),
            )
        except (AttributeError, TypeError) as e:
            logger.warning(f"Skipping malformed market row: {e}")
            return None


# ═══════════════════════════════════════════════════════════════════════════
# Price series
# ═══════════════════════════════════════════════════════════════════════════

class PriceSeriesProvider(ABC):
    @abstractmethod
    def get_price_series(self, asset: Asset) -> List[Decimal]:
        """Ordered observations (older → newer) ending at asset.current_price."""


class YahooPriceSeriesProvider(PriceSeriesProvider):
    """Hourly closes for <SYMBOL>-USD from Yahoo Finance."""

    def __init__(self, points: int = HISTORY_POINTS,
                 period: str = YAHOO_PERIOD, interval: str = YAHOO_INTERVAL):
        self.points = points
        self.period = period
        self.interval = interval

    def get_price_series(self, asset: Asset) -> List[Decimal]:
        ticker = f"{asset.symbol}{YAHOO_QUOTE_SUFFIX}"
        hist = yf.Ticker(ticker).history(period=self.period, interval=self.interval)
        if hist is None or hist.empty or "Close" not in hist.columns:
            raise ValueError(f"No price history available for {ticker}")

        closes = pd.to_numeric(hist["Close"], errors="coerce").dropna().iloc[-self.points:]
        series = [to_decimal(value) for value in closes.tolist()]
        if not series:
            raise ValueError(f"No usable closes for {ticker}")

        if asset.current_price is not None:
            series[-1] = asset.current_price
        logger.debug(f"{ticker}: {len(series)} hourly closes")
        return series


class SimulatedPriceSeriesProvider(PriceSeriesProvider):
    """
    Random walk anchored at the asset's current price.

    Each step multiplies the previous price by a factor drawn uniformly
    from [0.95, 1.05); the final observation is then pinned to the current
    price. With a seed, every asset gets its own generator keyed on
    (seed, symbol), so a series never depends on which thread asked first.
    """

    def __init__(self, steps: int = SIMULATION["steps"], seed: Optional[int] = SIMULATION_SEED):
        self.steps = steps
        self.seed = seed

    def _rng_for(self, asset: Asset) -> np.random.Generator:
        if self.seed is None:
            return np.random.default_rng()
        return np.random.default_rng([self.seed, *asset.symbol.encode("utf-8")])

    def get_price_series(self, asset: Asset) -> List[Decimal]:
        if asset.current_price is None:
            raise ValueError(f"{asset.symbol}: cannot simulate without a current price")

        places = Decimal(1).scaleb(-SIMULATION["decimals"])
        factors = self._rng_for(asset).uniform(
            SIMULATION["min_factor"], SIMULATION["max_factor"], self.steps
        )

        series: List[Decimal] = []
        price = asset.current_price
        for factor in factors:
            price = (price * Decimal(str(round(float(factor), 6)))).quantize(places)
            series.append(price)

        series[-1] = asset.current_price
        return series
