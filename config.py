"""
Configuration for the SMC Opportunity Scanner
Centralized configuration, easy to modify.

Every heuristic threshold lives here as a named value so each rule can be
tuned or tested in isolation:
- Structure detection (order blocks, BOS, CHOCH, imbalance, S/R bands)
- Confidence weights and trade-level multipliers
- Pre-analysis screening floors and post-analysis ranking caps
"""
import os
from decimal import Decimal
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# ── Base directories ────────────────────────────────────────────────────────
BASE_DIR = Path(os.getenv("SMC_HOME", Path(__file__).parent))
DATA_DIR = BASE_DIR / "data"
LOGS_DIR = BASE_DIR / "logs"
RESULTS_DIR = DATA_DIR / "opportunities"

for d in (DATA_DIR, LOGS_DIR, RESULTS_DIR):
    d.mkdir(parents=True, exist_ok=True)

# ── Universe ────────────────────────────────────────────────────────────────
COINGECKO_URL = "https://api.coingecko.com/api/v3/coins/markets"
VS_CURRENCY = "usd"
REQUEST_TIMEOUT = 10         # seconds
USER_AGENT = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)

UNIVERSE = {
    "top_limit": 50,                              # "top coins" slice
    "snapshot_limit": 100,                        # rows fetched per snapshot
    "high_volume_min": Decimal("100000000"),      # $100M 24h volume
    "volatile_min_change": Decimal("5"),          # |24h change| > 5%
}

# ── Price history ───────────────────────────────────────────────────────────
# "yahoo" = hourly closes from Yahoo Finance, "simulated" = seeded random walk
PRICE_SOURCE = os.getenv("SMC_PRICE_SOURCE", "yahoo")
YAHOO_QUOTE_SUFFIX = "-USD"
YAHOO_PERIOD = "7d"
YAHOO_INTERVAL = "1h"
HISTORY_POINTS = 50

SIMULATION = {
    "steps": 50,
    "min_factor": 0.95,      # each step moves the price within ±5%
    "max_factor": 1.05,
    "decimals": 8,
}
_seed = os.getenv("SMC_SIMULATION_SEED")
SIMULATION_SEED = int(_seed) if _seed else None

# ── Timing ──────────────────────────────────────────────────────────────────
UPDATE_INTERVAL = int(os.getenv("SMC_UPDATE_INTERVAL", "900"))   # loop mode, seconds
SNAPSHOT_CACHE_SECONDS = 60
MAX_WORKERS = int(os.getenv("SMC_MAX_WORKERS", "1"))            # 1 = sequential

# ── Structure detection ─────────────────────────────────────────────────────
SMC_CONFIG = {
    "min_series_length": 10,                     # below this no level detection runs
    "order_block_threshold": Decimal("0.02"),    # reversal bar must move > 2%
    "strength_places": Decimal("0.0001"),        # order-block strength precision
    "zone_window": 2,                            # local extremum: ±2 observations
    "zone_margin": 5,                            # zones scanned over [5, len-6]
    "sr_tolerance": Decimal("0.01"),             # ±1% touch band
    "sr_min_touches": 2,
    "sr_strength_per_touch": Decimal("0.2"),

    "bos_lookback": 10,
    "bos_threshold": Decimal("0.015"),           # 1.5% beyond recent high/low
    "choch_min_length": 20,
    "choch_short_window": 5,
    "choch_medium_window": 15,
    "choch_threshold": Decimal("0.01"),          # |short trend| > 1%
    "imbalance_threshold": Decimal("0.025"),     # adjacent move > 2.5%

    # Placeholder values for unimplemented extension points
    "zone_strength_placeholder": Decimal("0.5"),
    "liquidity_placeholder": Decimal("0.75"),
}

# ── Confidence scoring ──────────────────────────────────────────────────────
CONFIDENCE_WEIGHTS = {
    "bos": Decimal("0.3"),
    "choch": Decimal("0.25"),
    "order_block_retest": Decimal("0.2"),
    "supply_demand_imbalance": Decimal("0.15"),
    "level_strength": Decimal("0.1"),            # applied to each key level
}
MAX_CONFIDENCE = Decimal("1.0")

# ── Trading levels ──────────────────────────────────────────────────────────
TRADE_LEVELS = {
    "entry_adjustment": Decimal("0.005"),        # 0.5% better than market
    "long_stop": Decimal("0.95"),
    "long_target": Decimal("1.06"),
    "short_stop": Decimal("1.05"),
    "short_target": Decimal("0.94"),
}

# ── Screening ───────────────────────────────────────────────────────────────
SCREENING = {
    "min_volume_24h": Decimal("10000000"),       # $10M
    "min_abs_change_24h": Decimal("2"),          # 2%
    "min_market_cap": Decimal("100000000"),      # $100M
    "min_price": Decimal("0.01"),
}

RANKING = {
    "min_confidence": Decimal("0.3"),
    "max_results": 20,
}

# ── Display ─────────────────────────────────────────────────────────────────
TERMINAL_WIDTH = 80
DISPLAY_KEY_LEVELS = 3
RESULTS_FILE_PREFIX = "smc_trading_opportunities_"

# ── Logging ─────────────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
