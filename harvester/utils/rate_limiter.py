"""Craigslist Harvester — Request Rate Limiter.

Enforces a fixed minimum gap between the end of one outbound request
and the start of the next. The wait is a plain blocking sleep, so it
holds up the whole (single-threaded) pipeline.
"""

from __future__ import annotations

import time
from typing import Optional

from harvester.utils.logger import get_logger

logger = get_logger(__name__)


class RateLimiter:
    """Blocking minimum-interval limiter.

    The first request goes out immediately. Every later request waits
    until ``min_interval`` seconds have passed since the previous
    request completed.

    Usage:
        limiter = RateLimiter(0.5)
        with limiter:
            response = client.get(url)

    Attributes:
        min_interval: Minimum delay in seconds between requests.
        waits: Number of times acquire() actually had to sleep.
    """

    def __init__(self, min_interval_seconds: float) -> None:
        """Initialize the rate limiter.

        Args:
            min_interval_seconds: Delay enforced after each completed request.
        """
        if min_interval_seconds < 0:
            raise ValueError("min_interval_seconds must be >= 0")
        self.min_interval = min_interval_seconds
        self.waits = 0
        self._last_completed: Optional[float] = None

        logger.debug("Rate limiter initialized: %.2f s between requests", min_interval_seconds)

    def time_until_ready(self) -> float:
        """Seconds left before the next request may start (0 if ready)."""
        if self._last_completed is None:
            return 0.0
        remaining = self._last_completed + self.min_interval - time.monotonic()
        return max(0.0, remaining)

    def acquire(self) -> None:
        """Block until the next request is allowed to start."""
        wait_time = self.time_until_ready()
        if wait_time > 0:
            logger.debug("Rate limit: waiting %.2f seconds...", wait_time)
            self.waits += 1
            time.sleep(wait_time)

    def release(self) -> None:
        """Record that a request has just completed."""
        self._last_completed = time.monotonic()

    def __enter__(self) -> "RateLimiter":
        self.acquire()
        return self

    def __exit__(self, *args: object) -> None:
        # A failed request still counts as completed
        self.release()

    def __repr__(self) -> str:
        return f"RateLimiter(min_interval={self.min_interval}s)"
