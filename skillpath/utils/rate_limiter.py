"""
Client-side request limiter for the learning LLM key.
Counts requests in fixed per-minute and per-day windows below the provider quota.
"""

import logging
import math
import time
from typing import Callable

from skillpath.utils.exceptions import GenerationError

logger = logging.getLogger(__name__)

MINUTE_SECONDS = 60
DAY_SECONDS = 86400


class RequestRateLimiter:
    """Fixed-window counters for requests per minute and per day."""

    def __init__(
        self,
        per_minute: int = 12,
        per_day: int = 1400,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.per_minute = per_minute
        self.per_day = per_day
        self._clock = clock
        now = clock()
        self._minute_count = 0
        self._day_count = 0
        self._minute_reset = now
        self._day_reset = now

    def _roll_windows(self, now: float) -> None:
        if now - self._minute_reset >= MINUTE_SECONDS:
            self._minute_count = 0
            self._minute_reset = now
        if now - self._day_reset >= DAY_SECONDS:
            self._day_count = 0
            self._day_reset = now

    def retry_after(self) -> float:
        """Seconds until a request would be allowed; 0 when allowed now."""
        now = self._clock()
        self._roll_windows(now)
        if self._day_count >= self.per_day:
            return DAY_SECONDS - (now - self._day_reset)
        if self._minute_count >= self.per_minute:
            return MINUTE_SECONDS - (now - self._minute_reset)
        return 0.0

    def acquire(self) -> None:
        """Count one request, or raise GenerationError when over quota."""
        wait = self.retry_after()
        if wait > 0:
            seconds = math.ceil(wait)
            logger.warning(f"Learning AI rate limit reached, retry in {seconds}s")
            raise GenerationError(
                f"AI service is temporarily busy. Please try again in {seconds} seconds.",
                error_code="RATE_LIMITED",
                context={"retry_after_seconds": seconds},
            )
        self._minute_count += 1
        self._day_count += 1
