"""
Priority-aware token bucket rate limiter for advisory calls.

The bucket holds ``max(1, rpm / 6)`` tokens and refills at ``rpm / 60`` tokens
per second. A caller that finds a token (and nobody queued ahead of it) is
granted immediately; everyone else waits in a priority queue that a single
drain task serves as tokens come back, highest priority first and FIFO within
a priority. Consecutive grants are never closer than ``min_interval_seconds``.

One limiter instance is shared by every running simulation.
"""

from __future__ import annotations

import asyncio
import heapq
import itertools
import logging
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

_EPSILON = 1e-9


class TokenBucketRateLimiter:
    def __init__(
        self,
        requests_per_minute: float = 10.0,
        *,
        min_interval_seconds: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        if requests_per_minute <= 0:
            raise ValueError("requests_per_minute must be > 0")
        if min_interval_seconds < 0:
            raise ValueError("min_interval_seconds must be >= 0")

        self.requests_per_minute = float(requests_per_minute)
        self.capacity = max(1.0, self.requests_per_minute / 6.0)
        self.refill_rate = self.requests_per_minute / 60.0  # tokens per second
        self.min_interval_seconds = float(min_interval_seconds)

        self._clock = clock
        self._sleep = sleep
        self._tokens = self.capacity
        self._last_refill = clock()
        self._last_grant: Optional[float] = None

        self._waiters: List[Tuple[int, int, asyncio.Future]] = []
        self._sequence = itertools.count()
        self._drainer: Optional[asyncio.Task] = None
        self._granted_total = 0

    # Bucket arithmetic -------------------------------------------------------

    def _refill(self) -> None:
        now = self._clock()
        elapsed = now - self._last_refill
        if elapsed > 0:
            self._tokens = min(self.capacity, self._tokens + elapsed * self.refill_rate)
            self._last_refill = now

    def _seconds_until_grant(self) -> float:
        self._refill()
        wait = 0.0
        if self._tokens < 1.0 - _EPSILON:
            wait = (1.0 - self._tokens) / self.refill_rate
        if self._last_grant is not None and self.min_interval_seconds > 0:
            wait = max(wait, self._last_grant + self.min_interval_seconds - self._clock())
        return wait if wait > _EPSILON else 0.0

    def _grant(self) -> None:
        self._tokens = max(0.0, self._tokens - 1.0)
        self._last_grant = self._clock()
        self._granted_total += 1

    # Public API --------------------------------------------------------------

    @property
    def tokens(self) -> float:
        self._refill()
        return self._tokens

    @property
    def queue_depth(self) -> int:
        return sum(1 for _, _, fut in self._waiters if not fut.done())

    async def acquire(self, priority: int = 0) -> None:
        """Wait until this caller may issue one request."""
        if not self._waiters and self._seconds_until_grant() == 0.0:
            self._grant()
            return

        loop = asyncio.get_running_loop()
        future: asyncio.Future = loop.create_future()
        heapq.heappush(self._waiters, (-int(priority), next(self._sequence), future))
        logger.debug("Rate limiter queued request (priority=%s, depth=%d)", priority, len(self._waiters))
        if self._drainer is None or self._drainer.done():
            self._drainer = loop.create_task(self._drain(), name="TokenBucketRateLimiter.drain")

        try:
            await future
        except asyncio.CancelledError:
            if future.done() and not future.cancelled():
                # Granted but the caller went away: hand the token back.
                self._tokens = min(self.capacity, self._tokens + 1.0)
            raise

    async def _drain(self) -> None:
        while self._waiters:
            future = self._waiters[0][2]
            if future.done():
                heapq.heappop(self._waiters)
                continue
            delay = self._seconds_until_grant()
            if delay > 0:
                await self._sleep(delay)
                continue
            heapq.heappop(self._waiters)
            self._grant()
            future.set_result(None)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "requests_per_minute": self.requests_per_minute,
            "capacity": self.capacity,
            "tokens": round(self.tokens, 3),
            "queue_depth": self.queue_depth,
            "granted_total": self._granted_total,
        }
