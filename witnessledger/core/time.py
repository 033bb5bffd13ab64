"""
witnessledger/core/time.py

THE ONLY TIMESTAMP FUNCTION IN WITNESSLEDGER.

Receipts carry Unix epoch milliseconds (int). Components that need the
current time take a `clock` callable defaulting to now_ms(), so tests can
pin instants.
"""

import time
from typing import Callable

Clock = Callable[[], int]


def now_ms() -> int:
    """Return current Unix time in whole milliseconds."""
    return time.time_ns() // 1_000_000
