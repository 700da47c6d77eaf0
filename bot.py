"""
SMC Opportunity Scanner — Main Orchestrator

Flow per run:
1. Collect asset snapshots (falls back to the built-in sample set + simulated
   prices if the live snapshot cannot be fetched)
2. Screen candidates on volume / volatility / market cap / price
3. Analyze each candidate: price series → levels + signals → opportunity
   (a failing candidate is logged, recorded and skipped)
4. Filter and rank by confidence, keep the top 20
5. Display results and persist them as JSON
"""

import argparse
import logging
import signal
import sys
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from config import (
    LOG_LEVEL, LOG_FORMAT, LOGS_DIR, RESULTS_DIR,
    UPDATE_INTERVAL, MAX_WORKERS, PRICE_SOURCE, SIMULATION_SEED,
)
from data_collector import (
    DataCollector, PriceSeriesProvider, YahooPriceSeriesProvider,
    SimulatedPriceSeriesProvider, sample_assets,
)
from display import Display, print_startup_banner
from level_detector import LevelDetector
from models import Asset, TradingOpportunity
from opportunity_synthesizer import OpportunitySynthesizer
from report_writer import save_opportunities
from screener import filter_candidates, rank_opportunities
from signal_detector import SignalDetector

logger = logging.getLogger(__name__)


def setup_logging(level: str = LOG_LEVEL):
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(LOGS_DIR / f"scanner_{datetime.now().strftime('%Y%m%d')}.log"),
            logging.StreamHandler(),
        ],
    )


def create_price_provider(source: str, seed: Optional[int] = SIMULATION_SEED) -> PriceSeriesProvider:
    if source == "yahoo":
        return YahooPriceSeriesProvider()
    if source == "simulated":
        return SimulatedPriceSeriesProvider(seed=seed)
    raise ValueError(f"Unknown price source: {source}")


class SmcTradingBot:
    """
    Main orchestrator.

    Simple interface:
        find_trading_opportunities() -> List[TradingOpportunity]
        analyze_asset(asset) -> TradingOpportunity
    """

    def __init__(
        self,
        data_collector: Optional[DataCollector] = None,
        price_provider: Optional[PriceSeriesProvider] = None,
        fallback_price_provider: Optional[PriceSeriesProvider] = None,
        display: Optional[Display] = None,
        results_dir: Path = RESULTS_DIR,
        max_workers: int = MAX_WORKERS,
        save_results: bool = True,
        use_sample_data: bool = False,
    ):
        self.data_collector = data_collector or DataCollector()
        self.price_provider = price_provider or create_price_provider(PRICE_SOURCE)
        self.fallback_price_provider = fallback_price_provider or SimulatedPriceSeriesProvider()
        self.display = display
        self.results_dir = results_dir
        self.max_workers = max(1, max_workers)
        self.save_results = save_results
        self.use_sample_data = use_sample_data

        self.level_detector = LevelDetector()
        self.signal_detector = SignalDetector()
        self.synthesizer = OpportunitySynthesizer()

        self.running = False
        self.failures: Dict[str, str] = {}
        self.last_results: List[TradingOpportunity] = []
        self.last_report: Optional[Path] = None

    # ── Public Interface ────────────────────────────────────────────────

    def find_trading_opportunities(self) -> List[TradingOpportunity]:
        logger.info("Starting SMC trading opportunity analysis...")
        self.failures = {}

        assets, provider = self._collect_assets()
        candidates = filter_candidates(assets)
        opportunities = self.analyze_candidates(candidates, provider)
        ranked = rank_opportunities(opportunities)

        self._output_results(candidates, ranked)
        self.last_results = ranked
        logger.info(f"SMC analysis completed. Found {len(ranked)} opportunities")
        return ranked

    def analyze_asset(self, asset: Asset,
                      provider: Optional[PriceSeriesProvider] = None) -> TradingOpportunity:
        provider = provider or self.price_provider
        series = provider.get_price_series(asset)
        levels = self.level_detector.detect(series, asset.current_price)
        signals = self.signal_detector.analyze(series, asset.current_price)
        return self.synthesizer.synthesize(asset, levels, signals)

    def analyze_candidates(self, candidates: Sequence[Asset],
                           provider: Optional[PriceSeriesProvider] = None) -> List[TradingOpportunity]:
        provider = provider or self.price_provider
        logger.info(f"Analyzing {len(candidates)} candidates for SMC patterns...")

        def safe_analyze(asset: Asset) -> Optional[TradingOpportunity]:
            try:
                return self.analyze_asset(asset, provider)
            except Exception as e:
                logger.warning(f"Error analyzing {asset.symbol}: {e}")
                self.failures[asset.symbol] = str(e)
                return None

        if self.max_workers > 1 and len(candidates) > 1:
            # map() yields in input order
            with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
                results = list(executor.map(safe_analyze, candidates))
        else:
            results = [safe_analyze(asset) for asset in candidates]

        opportunities = [opp for opp in results if opp is not None]
        logger.info(
            f"Analyzed {len(candidates)} candidates, "
            f"{len(opportunities)} analyses succeeded, {len(self.failures)} failed"
        )
        return opportunities

    def start(self, interval: int = UPDATE_INTERVAL):
        """Re-run the scan every `interval` seconds until interrupted."""
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)
        self.running = True

        iteration = 0
        while self.running:
            try:
                iteration += 1
                logger.info(f"=== Iteration {iteration} ===")
                self.find_trading_opportunities()
            except Exception as e:
                logger.error(f"Error in main loop: {e}", exc_info=True)

            if self.running:
                logger.info(f"Sleeping {interval}s")
                self._sleep(interval)

        logger.info("Scanner stopped")

    # ── Internal ────────────────────────────────────────────────────────

    def _collect_assets(self):
        if self.use_sample_data:
            logger.info("Using built-in sample data")
            return sample_assets(), self.fallback_price_provider

        try:
            return self.data_collector.collect_assets(), self.price_provider
        except Exception as e:
            logger.error(f"Error collecting market data: {e}")
            logger.warning("Falling back to sample data with simulated price history")
            return sample_assets(), self.fallback_price_provider

    def _output_results(self, candidates: List[Asset], opportunities: List[TradingOpportunity]):
        if self.display:
            try:
                self.display.show_candidates(candidates)
                self.display.show_opportunities(opportunities)
            except Exception as e:
                logger.error(f"Display error: {e}")

        if self.save_results:
            try:
                self.last_report = save_opportunities(opportunities, self.results_dir)
                if self.display:
                    print(f"\nResults saved to: {self.last_report.resolve()}")
            except OSError as e:
                logger.error(f"Error saving results: {e}")

    def _sleep(self, seconds: int):
        end = time.time() + seconds
        while self.running and time.time() < end:
            time.sleep(min(1.0, end - time.time()))

    def _signal_handler(self, signum, frame):
        logger.info("Shutdown signal received")
        self.running = False


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Scan crypto assets for Smart Money Concept trading opportunities."
    )
    parser.add_argument("--loop", action="store_true",
                        help="Keep scanning every --interval seconds")
    parser.add_argument("--interval", type=int, default=UPDATE_INTERVAL,
                        help=f"Seconds between scans in loop mode (default: {UPDATE_INTERVAL})")
    parser.add_argument("--workers", type=int, default=MAX_WORKERS,
                        help="Analyze candidates with N worker threads (default: sequential)")
    parser.add_argument("--sample", action="store_true",
                        help="Skip the live snapshot and use the built-in sample data")
    parser.add_argument("--price-source", choices=["yahoo", "simulated"], default=PRICE_SOURCE,
                        help="Where price histories come from")
    parser.add_argument("--seed", type=int, default=SIMULATION_SEED,
                        help="Seed for simulated price histories")
    parser.add_argument("--no-save", action="store_true", help="Do not write the JSON report")
    parser.add_argument("--quiet", action="store_true", help="Log only, no console report")
    parser.add_argument("--log-level", default=LOG_LEVEL)
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None):
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        bot = SmcTradingBot(
            price_provider=create_price_provider(args.price_source, args.seed),
            fallback_price_provider=SimulatedPriceSeriesProvider(seed=args.seed),
            display=None if args.quiet else Display(),
            max_workers=args.workers,
            save_results=not args.no_save,
            use_sample_data=args.sample,
        )
        if not args.quiet:
            print_startup_banner()

        if args.loop:
            bot.start(args.interval)
        else:
            bot.find_trading_opportunities()
            if not args.quiet:
                print("\nAnalysis completed successfully!")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
