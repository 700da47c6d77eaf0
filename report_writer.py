"""Persist ranked opportunities as a timestamped, human-diffable JSON file."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from config import RESULTS_DIR, RESULTS_FILE_PREFIX
from models import TradingOpportunity

logger = logging.getLogger(__name__)


def save_opportunities(opportunities: List[TradingOpportunity],
                       directory: Path = RESULTS_DIR,
                       now: Optional[datetime] = None) -> Path:
    """Write one JSON array per run; returns the file path."""
    now = now or datetime.now()
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)

    filepath = directory / f"{RESULTS_FILE_PREFIX}{now.strftime('%Y%m%d_%H%M%S')}.json"
    payload = [opp.to_dict() for opp in opportunities]
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, ensure_ascii=False)

    logger.info(f"Results saved to: {filepath.resolve()}")
    return filepath
