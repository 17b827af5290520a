"""Ports shared by the analysis domain."""

from calai.domain.shared.ports.rate_limiter import IRateLimiter, RateLimitDecision
from calai.domain.shared.ports.vision_provider import IVisionProvider

__all__ = ["IRateLimiter", "IVisionProvider", "RateLimitDecision"]
