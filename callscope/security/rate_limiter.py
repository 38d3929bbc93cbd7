"""
callscope/security/rate_limiter.py
===================================
Sliding-Window Rate Limiter - CallScope Security Layer

Responsibility:
    - Admit at most ``max_requests`` within any trailing ``window_ms``
    - Report when a denied caller may retry (``reset_time``)
    - Report advisory remaining capacity

Each limiter owns a private, time-ordered deque of admission timestamps
(ms since epoch). Expired entries are evicted lazily from the front on every
``check_limit`` call. ``get_remaining`` never mutates state, so it can
undercount right after the window has moved - fine for display, not for
enforcement.

Instances are built explicitly (see create_rate_limiter) and owned by the
component performing the gated action. There are no module-level limiters.
"""

from collections import deque
from dataclasses import dataclass

from callscope.clock import Clock, now_ms

# Defaults for the two gated actions
ANALYSIS_MAX_REQUESTS: int = 5
ANALYSIS_WINDOW_MS: int = 60 * 1000           # 1 minute
API_MAX_REQUESTS: int = 100
API_WINDOW_MS: int = 15 * 60 * 1000           # 15 minutes


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a single admission check."""

    allowed: bool
    reset_time: int | None = None  # ms epoch when a slot frees up

    def retry_after_seconds(self, now: int) -> int:
        """Whole seconds until ``reset_time`` (at least 1 when denied)."""
        if self.allowed or self.reset_time is None:
            return 0
        return max(1, -(-(self.reset_time - now) // 1000))


class SlidingWindowRateLimiter:
    """Sliding-window admission counter."""

    def __init__(self, max_requests: int, window_ms: int, clock: Clock = now_ms):
        if max_requests < 0:
            raise ValueError(f"max_requests must be >= 0, got {max_requests}")
        if window_ms <= 0:
            raise ValueError(f"window_ms must be > 0, got {window_ms}")
        self.max_requests = max_requests
        self.window_ms = window_ms
        self._clock = clock
        self._requests: deque[int] = deque()

    def check_limit(self) -> RateLimitDecision:
        """Evict expired entries, then admit and record, or deny."""
        now = self._clock()
        window_start = now - self.window_ms

        while self._requests and self._requests[0] < window_start:
            self._requests.popleft()

        if len(self._requests) >= self.max_requests:
            if not self._requests:
                # max_requests == 0: nothing will ever free up a slot
                return RateLimitDecision(allowed=False, reset_time=now + self.window_ms)
            return RateLimitDecision(
                allowed=False,
                reset_time=self._requests[0] + self.window_ms,
            )

        self._requests.append(now)
        return RateLimitDecision(allowed=True)

    def get_remaining(self) -> int:
        """Advisory count of admissions left in the current window."""
        window_start = self._clock() - self.window_ms
        current = sum(1 for t in self._requests if t >= window_start)
        return max(0, self.max_requests - current)

    def __repr__(self) -> str:
        return (
            f"SlidingWindowRateLimiter(max_requests={self.max_requests}, "
            f"window_ms={self.window_ms})"
        )


def create_rate_limiter(
    max_requests: int,
    window_ms: int,
    clock: Clock = now_ms,
) -> SlidingWindowRateLimiter:
    """Build an independent limiter with its own private state."""
    return SlidingWindowRateLimiter(max_requests, window_ms, clock=clock)
