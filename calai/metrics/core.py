"""In-memory metrics for the analysis endpoint.

Request/confidence counters and provider latency summaries, keyed by
metric name plus tags. Nothing is exported over HTTP; values are read
back through the registry (tests, debugging).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from threading import Lock
from typing import Dict, List, Optional, Tuple

MetricKey = Tuple[str, Tuple[Tuple[str, str], ...]]


def _key(name: str, tags: Dict[str, str]) -> MetricKey:
    return name, tuple(sorted(tags.items()))


@dataclass
class Counter:
    name: str
    tags: Dict[str, str]
    value: int = 0
    _lock: Lock = field(default_factory=Lock, repr=False)

    def inc(self, amount: int = 1) -> None:
        with self._lock:
            self.value += amount


@dataclass
class LatencySummary:
    """Running count, total and extremes of observed values (ms)."""

    name: str
    tags: Dict[str, str]
    count: int = 0
    total: float = 0.0
    min: Optional[float] = None
    max: Optional[float] = None
    _lock: Lock = field(default_factory=Lock, repr=False)

    def observe(self, value: float) -> None:
        with self._lock:
            self.count += 1
            self.total += value
            self.min = value if self.min is None else min(self.min, value)
            self.max = value if self.max is None else max(self.max, value)

    @property
    def avg(self) -> float:
        return self.total / self.count if self.count else 0.0


class MetricsRegistry:
    def __init__(self) -> None:
        self._counters: Dict[MetricKey, Counter] = {}
        self._summaries: Dict[MetricKey, LatencySummary] = {}
        self._lock = Lock()

    def counter(self, name: str, **tags: str) -> Counter:
        key = _key(name, tags)
        with self._lock:
            if key not in self._counters:
                self._counters[key] = Counter(name=name, tags=tags)
            return self._counters[key]

    def summary(self, name: str, **tags: str) -> LatencySummary:
        key = _key(name, tags)
        with self._lock:
            if key not in self._summaries:
                self._summaries[key] = LatencySummary(name=name, tags=tags)
            return self._summaries[key]

    def counter_value(self, name: str, **tags: str) -> int:
        """Current value, 0 if the counter was never touched."""
        with self._lock:
            ctr = self._counters.get(_key(name, tags))
        return ctr.value if ctr is not None else 0

    def summaries(self, name: str) -> List[LatencySummary]:
        """Every tag set recorded under ``name``."""
        with self._lock:
            return [s for s in self._summaries.values() if s.name == name]

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._summaries.clear()


registry = MetricsRegistry()
