"""Instrumentation helpers for the analysis endpoint.

Metrics:
* Counter analysis_requests_total{status}
  status: ok | rejected_rate_limit | invalid_image | timeout |
  upstream_format | schema_mismatch | error
* Latency summary analysis_provider_latency_ms{provider}
* Counter analysis_confidence_total{confidence}
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterator

from .core import registry

REQUESTS_TOTAL = "analysis_requests_total"
PROVIDER_LATENCY_MS = "analysis_provider_latency_ms"
CONFIDENCE_TOTAL = "analysis_confidence_total"


def record_request(status: str) -> None:
    registry.counter(REQUESTS_TOTAL, status=status).inc()


def record_confidence(confidence: str) -> None:
    registry.counter(CONFIDENCE_TOTAL, confidence=confidence).inc()


def record_provider_latency_ms(ms: float, *, provider: str) -> None:
    registry.summary(PROVIDER_LATENCY_MS, provider=provider).observe(ms)


@contextmanager
def time_provider_call(provider: str) -> Iterator[None]:
    """Observe provider latency, including failed and timed out calls."""
    start = time.perf_counter()
    try:
        yield
    finally:
        record_provider_latency_ms((time.perf_counter() - start) * 1000.0, provider=provider)


def reset_all() -> None:
    """Reset all metrics (test utility)."""
    registry.reset()
