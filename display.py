"""
Terminal Display Module

- Results header with analysis time and opportunity count
- Candidate snapshot table (price, 24h/7d change, volume, market cap)
- One card per opportunity: trade levels, SMC signal checklist,
  first key levels in detection order, analysis text
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence

from config import DISPLAY_KEY_LEVELS, TERMINAL_WIDTH
from models import Asset, OpportunityType, TradingOpportunity

logger = logging.getLogger(__name__)


class Display:
    def __init__(self, width: int = TERMINAL_WIDTH, currency: str = "USD"):
        self.width = width
        self.currency = currency

    def _fc(self, amount: Optional[Decimal]) -> str:
        """Format currency; sub-dollar prices keep more decimals."""
        if amount is None:
            return "n/a"
        symbols = {"EUR": "€", "GBP": "£"}
        sym = symbols.get(self.currency, "$")
        if abs(amount) < 1:
            return f"{sym}{amount:.4f}"
        return f"{sym}{amount:,.2f}"

    @staticmethod
    def _compact(amount: Optional[Decimal]) -> str:
        if amount is None:
            return "n/a"
        for divisor, suffix in ((Decimal("1e12"), "T"), (Decimal("1e9"), "B"), (Decimal("1e6"), "M")):
            if abs(amount) >= divisor:
                return f"{amount / divisor:.1f}{suffix}"
        return f"{amount:,.0f}"

    def show_header(self, count: int):
        w = self.width
        print("\n" + "=" * w)
        print(f"{'SMC TRADING OPPORTUNITIES ANALYSIS RESULTS':^{w}}")
        print("=" * w)
        print(f"Analysis Time: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        print(f"Total Opportunities Found: {count}")
        print()

    def show_candidates(self, candidates: Sequence[Asset]):
        if not candidates:
            return
        w = self.width
        print(f"┌{'─' * (w - 2)}┐")
        print(f"│{'SCREENED CANDIDATES':^{w - 2}}│")
        print(f"├{'─' * (w - 2)}┤")
        print(
            f"│ {'Symbol':8s} │ {'Price':>12s} │ {'24h':>7s} │ {'7d':>7s} │ "
            f"{'Volume':>8s} │ {'MCap':>8s} │"
        )
        for asset in candidates:
            print(
                f"│ {asset.symbol[:8]:8s} │ {self._fc(asset.current_price):>12s} │ "
                f"{self._format_change(asset.percent_change_24h)} │ "
                f"{self._format_change(asset.percent_change_7d)} │ "
                f"{self._compact(asset.volume_24h):>8s} │ "
                f"{self._compact(asset.market_cap):>8s} │"
            )
        print(f"└{'─' * (w - 2)}┘")
        print()

    def show_opportunities(self, opportunities: List[TradingOpportunity]):
        self.show_header(len(opportunities))

        if not opportunities:
            print("No trading opportunities found meeting SMC criteria.")
            return

        for rank, opp in enumerate(opportunities, start=1):
            self._show_single(rank, opp)

        print("\n" + "=" * self.width)

    def _show_single(self, rank: int, opp: TradingOpportunity):
        colors = {
            OpportunityType.BUY_LONG: "\033[92m",
            OpportunityType.BREAKOUT_LONG: "\033[94m",
            OpportunityType.WAIT_RETEST: "\033[93m",
            OpportunityType.SELL_SHORT: "\033[91m",
            OpportunityType.BREAKOUT_SHORT: "\033[95m",
        }
        reset = "\033[0m"
        color = colors.get(opp.opportunity_type, reset)

        print(f"--- OPPORTUNITY #{rank} ---")
        print(f"Coin: {opp.asset.name} ({opp.asset.symbol})")
        print(f"Current Price: {self._fc(opp.current_price)}")
        print(f"Opportunity Type: {color}{opp.opportunity_type.value}{reset}")
        print(f"Confidence Score: {self._confidence_bar(opp.confidence)} {opp.confidence * 100:.1f}%")
        print(f"Suggested Entry: {self._fc(opp.suggested_entry)}")
        print(f"Stop Loss: {self._fc(opp.stop_loss)}")
        print(f"Take Profit: {self._fc(opp.take_profit)}  ({opp.potential_return:+}%, R:R 1:{opp.rr_ratio})")

        s = opp.signals
        print("\nSMC Signals:")
        print(f"  - Break of Structure (BOS): {self._check(s.has_bos)}")
        print(f"  - Change of Character (CHOCH): {self._check(s.has_choch)}")
        print(f"  - Order Block Retest: {self._check(s.has_order_block_retest)}")
        print(f"  - Supply/Demand Imbalance: {self._check(s.has_supply_demand_imbalance)}")

        if opp.key_levels:
            print("\nKey Price Levels:")
            # detection order, not sorted by strength
            for level in opp.key_levels[:DISPLAY_KEY_LEVELS]:
                print(f"  - {level.level_type.value}: {self._fc(level.price)} (Strength: {level.strength:.2f})")

        print(f"\nAnalysis: {opp.analysis_text}")
        print("\n" + "-" * 50)

    @staticmethod
    def _check(flag: bool) -> str:
        return "✓" if flag else "✗"

    @staticmethod
    def _confidence_bar(confidence: Decimal) -> str:
        filled = int(confidence * 10)
        return f"[{'█' * filled}{'░' * (10 - filled)}]"

    @staticmethod
    def _format_change(change: Optional[Decimal]) -> str:
        if change is None:
            return f"{'n/a':>7s}"
        if change > 0:
            return f"\033[92m{change:>+6.1f}%\033[0m"
        elif change < 0:
            return f"\033[91m{change:>6.1f}%\033[0m"
        return f"{change:>6.1f}%"


def print_startup_banner():
    banner = """
╔══════════════════════════════════════════════════════════════════════════╗
║                                                                          ║
║                     SMC OPPORTUNITY SCANNER                              ║
║                                                                          ║
║        Order Blocks · Break of Structure · Change of Character           ║
║                                                                          ║
║    • Screens liquid, moving, large-cap coins                             ║
║    • Detects order blocks, supply/demand zones, support/resistance       ║
║    • Scores BOS / CHOCH / imbalance signals into a confidence            ║
║    • Suggests entry, stop-loss and take-profit levels                    ║
║    • Saves every run as a timestamped JSON report                        ║
║                                                                          ║
╚══════════════════════════════════════════════════════════════════════════╝
    """
    print(banner)
