"""Rate limiter factory.

Environment variable: RATE_LIMIT_BACKEND
Values:
    - "memory": process-local table (default)
    - "redis": shared counters, requires REDIS_URL
"""

from typing import Union

import redis.asyncio as redis
import structlog

from calai.infrastructure.config import (
    get_rate_limit_backend,
    get_rate_limit_count,
    get_rate_limit_window_s,
    get_redis_password,
    get_redis_url,
)
from calai.infrastructure.rate_limit.in_memory import InMemoryRateLimiter
from calai.infrastructure.rate_limit.redis_limiter import RedisRateLimiter

logger = structlog.get_logger(__name__)

RateLimiter = Union[InMemoryRateLimiter, RedisRateLimiter]


def create_rate_limiter() -> RateLimiter:
    """Create the rate limiter selected by RATE_LIMIT_BACKEND.

    Raises:
        ValueError: RATE_LIMIT_BACKEND=redis without REDIS_URL, or an
            unknown backend name
    """
    backend = get_rate_limit_backend()
    limit = get_rate_limit_count()
    window_s = get_rate_limit_window_s()

    if backend == "memory":
        logger.info("rate_limiter.selected", backend="memory", limit=limit, window_s=window_s)
        return InMemoryRateLimiter(limit=limit, window_s=window_s)

    if backend == "redis":
        redis_url = get_redis_url()
        if not redis_url:
            raise ValueError("RATE_LIMIT_BACKEND=redis but REDIS_URL not set")
        client = redis.from_url(
            redis_url,
            password=get_redis_password(),
            decode_responses=True,
        )
        logger.info("rate_limiter.selected", backend="redis", limit=limit, window_s=window_s)
        return RedisRateLimiter(client, limit=limit, window_s=window_s)

    raise ValueError(f"Unknown RATE_LIMIT_BACKEND: {backend!r} (expected 'memory' or 'redis')")
