"""
NovaBase — Local Rate Limiter

In-process sliding-window implementation of the RateLimiter collaborator.

Each key gets its own window. Attempts are timestamped; any attempt older
than the window is evicted before counting. An attempt within the limit is
recorded, one over the limit raises RateLimitError with the number of
seconds until the oldest attempt leaves the window.

Counters live in process memory, so limits are per-process. For limits
shared across processes use clients.redis.RedisRateLimiter.
"""

from __future__ import annotations

import time
from collections import defaultdict, deque

import structlog

from novabase.core.types import RateOptions
from novabase.errors import RateLimitError

logger = structlog.get_logger()


class LocalRateLimiter:
    """Sliding-window rate limiter keyed by arbitrary strings."""

    def __init__(self) -> None:
        # key → deque of attempt timestamps (monotonic)
        self._windows: dict[str, deque[float]] = defaultdict(deque)
        self._logger = logger.bind(system="novabase.rate_limiter")

    async def attempt(self, key: str, options: RateOptions) -> None:
        """Record an attempt for key, or raise RateLimitError if over the limit."""
        window = self._windows[key]
        now = time.monotonic()
        cutoff = now - options.window

        while window and window[0] <= cutoff:
            window.popleft()

        if len(window) >= options.limit:
            retry_after = options.window - (now - window[0]) if window else options.window
            self._logger.warning(
                "rate_limit_exceeded",
                key=key,
                current_count=len(window),
                limit=options.limit,
                window_seconds=options.window,
            )
            raise RateLimitError(key, round(max(retry_after, 0.0), 3))

        window.append(now)

    def reset(self, key: str) -> None:
        """Forget every attempt for a key (testing / administration)."""
        self._windows.pop(key, None)

    def current_count(self, key: str, window_seconds: float) -> int:
        """Number of attempts within the last window_seconds."""
        window = self._windows.get(key)
        if not window:
            return 0
        cutoff = time.monotonic() - window_seconds
        return sum(1 for ts in window if ts > cutoff)
