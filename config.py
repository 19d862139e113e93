"""Centralised configuration constants for the idle factory game."""
from __future__ import annotations

from pathlib import Path

# ---------------------------------------------------------------------------
# File paths
# ---------------------------------------------------------------------------
FACTORIES_FILE: Path = Path("data/factories.json")

# ---------------------------------------------------------------------------
# Economy
# ---------------------------------------------------------------------------
STARTING_SCORE: int = 10000            # score given to the player at game start
CLICK_VALUE: int = 1                   # score added per manual click
PRICE_BASE: int = 10                   # factory price = PRICE_BASE ** ordinal
RATE_BASE: int = 7                     # factory rate = RATE_BASE ** (ordinal - 1), first factory rate 1
SHOW_THRESHOLD_MULTIPLIER: int = 2     # factory listed once price < max_score * this

# ---------------------------------------------------------------------------
# Numeric precision
# ---------------------------------------------------------------------------
SCORE_PRECISION: int = 60              # significant digits kept for score arithmetic

# ---------------------------------------------------------------------------
# Tick driver
# ---------------------------------------------------------------------------
TICK_INTERVAL_MS: int = 16             # target milliseconds between ticks
TICKER_STOP_TIMEOUT: float = 5.0       # seconds to wait for the loop before cancelling

# ---------------------------------------------------------------------------
# Event log
# ---------------------------------------------------------------------------
EVENT_LOG_LIMIT: int = 12              # most recent events kept in memory
