"""
Redis-backed fixed-window rate limiter.

Counters live in Redis under ``<prefix><client id>`` with a TTL equal to
the window, so every server instance sees the same count and stale keys
expire on their own.
"""

from __future__ import annotations

from typing import Any

import structlog

from calai.domain.shared.ports.rate_limiter import RateLimitDecision

logger = structlog.get_logger(__name__)


class RedisRateLimiter:
    """Fixed-window counter on top of ``INCR`` + ``EXPIRE``.

    The first hit of a window creates the key and sets its expiry; later
    hits only increment. A crash between the two commands can leave a key
    without TTL, so a key found without expiry gets one on the next hit.
    """

    def __init__(
        self,
        redis_client: Any,
        limit: int = 5,
        window_s: int = 60,
        key_prefix: str = "calai:ratelimit:",
    ) -> None:
        """
        Args:
            redis_client: ``redis.asyncio.Redis`` instance (or compatible)
            limit: Requests allowed per window
            window_s: Window length in seconds
            key_prefix: Namespace for counter keys
        """
        self._redis = redis_client
        self.limit = limit
        self.window_s = window_s
        self.key_prefix = key_prefix

    def _make_key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def hit(self, key: str) -> RateLimitDecision:
        redis_key = self._make_key(key)
        count = int(await self._redis.incr(redis_key))

        if count == 1:
            await self._redis.expire(redis_key, self.window_s)
            ttl = self.window_s
        else:
            ttl = int(await self._redis.ttl(redis_key))
            if ttl < 0:
                # -1: key exists without expiry
                await self._redis.expire(redis_key, self.window_s)
                ttl = self.window_s

        decision = RateLimitDecision(
            allowed=count <= self.limit,
            count=count,
            limit=self.limit,
            retry_after_s=ttl,
        )
        if not decision.allowed:
            logger.warning("rate_limit.exceeded", key=key, count=count, limit=self.limit)
        return decision

    async def reset(self, key: str) -> None:
        await self._redis.delete(self._make_key(key))

    async def close(self) -> None:
        await self._redis.aclose()
