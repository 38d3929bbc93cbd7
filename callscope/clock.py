"""Millisecond wall clock shared by the rate limiter and storage."""

import time
from typing import Callable

Clock = Callable[[], int]


def now_ms() -> int:
    """Wall-clock milliseconds since epoch."""
    return int(time.time() * 1000)
