"""Shared test setup: import path and a throwaway data/log home."""

import os
import sys
import tempfile
from pathlib import Path

os.environ.setdefault("SMC_HOME", tempfile.mkdtemp(prefix="smc_scanner_tests_"))
sys.path.insert(0, str(Path(__file__).parent.parent))
