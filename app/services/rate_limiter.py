"""Outbound request pacing for the search API."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from collections.abc import Awaitable, Callable

from app.config import settings

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60.0


class RequestRateLimiter:
    """Enforce a rolling per-minute request cap and a minimum spacing.

    Callers await ``acquire()`` before each outbound request. Waiting happens
    under a lock so concurrent callers are released one at a time.
    """

    def __init__(
        self,
        *,
        max_requests_per_minute: int | None = None,
        min_interval_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.max_requests_per_minute = (
            max_requests_per_minute
            if max_requests_per_minute is not None
            else settings.search_rate_limit_per_minute
        )
        self.min_interval_seconds = (
            min_interval_seconds
            if min_interval_seconds is not None
            else settings.search_min_interval_seconds
        )
        self._clock = clock
        self._sleep = sleep
        self._timestamps: deque[float] = deque()
        self._last_request_at: float | None = None
        self._lock = asyncio.Lock()

    def _prune(self, now: float) -> None:
        while self._timestamps and now - self._timestamps[0] >= WINDOW_SECONDS:
            self._timestamps.popleft()

    def _required_wait(self, now: float) -> float:
        wait = 0.0
        if len(self._timestamps) >= self.max_requests_per_minute:
            wait = WINDOW_SECONDS - (now - self._timestamps[0])
        if self._last_request_at is not None:
            wait = max(wait, self.min_interval_seconds - (now - self._last_request_at))
        return max(0.0, wait)

    async def acquire(self) -> float:
        """Wait until a request may be sent. Returns seconds waited."""
        waited = 0.0
        async with self._lock:
            while True:
                now = self._clock()
                self._prune(now)
                wait = self._required_wait(now)
                if wait <= 0:
                    break
                logger.debug("Rate limiter waiting", extra={"wait_seconds": round(wait, 2)})
                await self._sleep(wait)
                waited += wait

            now = self._clock()
            self._timestamps.append(now)
            self._last_request_at = now
        return waited

    def status(self) -> dict[str, float | int]:
        """Return current window usage."""
        now = self._clock()
        self._prune(now)
        return {
            "requests_in_window": len(self._timestamps),
            "max_requests_per_minute": self.max_requests_per_minute,
            "min_interval_seconds": self.min_interval_seconds,
            "next_available_in": round(self._required_wait(now), 2),
        }


_search_rate_limiter: RequestRateLimiter | None = None


def get_search_rate_limiter() -> RequestRateLimiter:
    """Return the process-wide limiter shared by all search clients."""
    global _search_rate_limiter
    if _search_rate_limiter is None:
        _search_rate_limiter = RequestRateLimiter()
    return _search_rate_limiter
