"""
Candidate Screener & Ranker

Two gates around the analysis step:

  Before — market-quality screen on the raw Asset snapshot
           (liquid, moving, large enough, not a sub-cent coin).
  After  — validity filter on the finished opportunity
           (enough confidence AND at least one structural signal),
           then a stable sort by confidence and a top-N cap.

Every function here is a pure predicate or transform: no hidden state,
same answer on every call.
"""

import logging
from typing import Iterable, List, Optional

from config import RANKING, SCREENING
from models import Asset, TradingOpportunity

logger = logging.getLogger(__name__)


def meets_screening_criteria(asset: Asset) -> bool:
    """All four floors must hold; an absent field fails the screen."""
    if asset.volume_24h is None or not asset.volume_24h > SCREENING["min_volume_24h"]:
        return False
    if (asset.percent_change_24h is None
            or not abs(asset.percent_change_24h) > SCREENING["min_abs_change_24h"]):
        return False
    if asset.market_cap is None or not asset.market_cap > SCREENING["min_market_cap"]:
        return False
    if asset.current_price is None or asset.current_price < SCREENING["min_price"]:
        return False
    return True


def filter_candidates(assets: Iterable[Asset]) -> List[Asset]:
    assets = list(assets)
    candidates = [asset for asset in assets if meets_screening_criteria(asset)]
    logger.info(f"Filtered {len(assets)} assets to {len(candidates)} candidates")
    return candidates


def is_valid_opportunity(opportunity: TradingOpportunity) -> bool:
    if opportunity.confidence is None or opportunity.confidence < RANKING["min_confidence"]:
        return False
    return opportunity.signals.any_structural


def rank_opportunities(opportunities: Iterable[TradingOpportunity],
                       limit: Optional[int] = None) -> List[TradingOpportunity]:
    """Valid opportunities, highest confidence first, ties in input order."""
    limit = RANKING["max_results"] if limit is None else limit
    valid = [opp for opp in opportunities if is_valid_opportunity(opp)]
    # sorted() is stable, reverse=True keeps equal keys in input order
    ranked = sorted(valid, key=lambda opp: opp.confidence, reverse=True)[:limit]
    logger.info(f"Ranked {len(valid)} valid opportunities, keeping top {len(ranked)}")
    return ranked
