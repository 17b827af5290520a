"""
In-memory fixed-window rate limiter.

Process-local table keyed by client identifier. Counters are lost on
restart and are not shared between instances: soft protection only.
Use the Redis limiter when several server processes run side by side.
"""

from __future__ import annotations

import math
import time
from dataclasses import dataclass
from threading import Lock
from typing import Callable, Dict, Optional

import structlog

from calai.domain.shared.ports.rate_limiter import RateLimitDecision

logger = structlog.get_logger(__name__)


@dataclass
class RateLimitRecord:
    count: int
    window_start: float


class InMemoryRateLimiter:
    """Fixed-window counter per client identifier.

    A window opens on the first request of a key. Every request
    increments the count; once more than ``window_s`` seconds have passed
    since the window start, the count restarts at 1.

    Example:
        >>> limiter = InMemoryRateLimiter(limit=5, window_s=60)
        >>> decision = await limiter.hit("203.0.113.7")
        >>> decision.allowed, decision.count
        (True, 1)
    """

    def __init__(
        self,
        limit: int = 5,
        window_s: float = 60.0,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        """
        Args:
            limit: Requests allowed per window
            window_s: Window length in seconds
            clock: Time source in seconds (defaults to ``time.time``)
        """
        self.limit = limit
        self.window_s = window_s
        self._clock = clock
        self._records: Dict[str, RateLimitRecord] = {}
        self._lock = Lock()

    def _now(self) -> float:
        return self._clock() if self._clock is not None else time.time()

    async def hit(self, key: str) -> RateLimitDecision:
        now = self._now()
        with self._lock:
            record = self._records.get(key)
            if record is None:
                record = RateLimitRecord(count=1, window_start=now)
                self._records[key] = record
            elif now - record.window_start > self.window_s:
                record.count = 1
                record.window_start = now
            else:
                record.count += 1
            count = record.count
            window_start = record.window_start

        remaining = max(0.0, self.window_s - (now - window_start))
        decision = RateLimitDecision(
            allowed=count <= self.limit,
            count=count,
            limit=self.limit,
            retry_after_s=int(math.ceil(remaining)),
        )
        if not decision.allowed:
            logger.warning("rate_limit.exceeded", key=key, count=count, limit=self.limit)
        return decision

    async def reset(self, key: str) -> None:
        with self._lock:
            self._records.pop(key, None)

    def purge_expired(self) -> int:
        """Drop records whose window has elapsed. Returns how many were removed."""
        now = self._now()
        with self._lock:
            stale = [k for k, r in self._records.items() if now - r.window_start > self.window_s]
            for k in stale:
                del self._records[k]
        return len(stale)

    def size(self) -> int:
        with self._lock:
            return len(self._records)
