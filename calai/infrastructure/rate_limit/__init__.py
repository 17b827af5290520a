"""Rate limiter adapters."""

from calai.infrastructure.rate_limit.factory import create_rate_limiter
from calai.infrastructure.rate_limit.in_memory import InMemoryRateLimiter, RateLimitRecord
from calai.infrastructure.rate_limit.redis_limiter import RedisRateLimiter

__all__ = ["InMemoryRateLimiter", "RateLimitRecord", "RedisRateLimiter", "create_rate_limiter"]
