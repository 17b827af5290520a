"""Port (interface) for per-client rate limiting."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class RateLimitDecision:
    """
    Outcome of one hit against the limiter.

    Attributes:
        allowed: False once the count exceeds the limit in the window
        count: Requests seen in the current window, this one included
        limit: Configured threshold
        retry_after_s: Seconds until the current window resets
    """

    allowed: bool
    count: int
    limit: int
    retry_after_s: int


class IRateLimiter(Protocol):
    """Fixed-window request counter keyed by client identifier.

    Implementations must make increment-and-compare atomic per key.
    An off-by-one under a race is tolerated.
    """

    async def hit(self, key: str) -> RateLimitDecision:
        """Count one request for ``key`` and decide if it is allowed."""
        ...

    async def reset(self, key: str) -> None:
        """Forget the counter for ``key``."""
        ...
