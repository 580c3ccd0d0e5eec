"""In-process counters and histograms for cache lookups, misses and invalidations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple


@dataclass
class Counter:
    """Monotonic count per label set, e.g. lookups by cache and hit/miss."""

    name: str
    help: str
    values: Dict[Tuple, float] = field(default_factory=dict)

    def inc(self, value: float = 1.0, **labels: Any) -> None:
        key = tuple(sorted(labels.items()))
        self.values[key] = self.values.get(key, 0.0) + value

    def get(self, **labels: Any) -> float:
        return self.values.get(tuple(sorted(labels.items())), 0.0)


@dataclass
class Histogram:
    """Bucketed observations per label set; each value lands in the first bucket it fits."""

    name: str
    help: str
    buckets: List[float]
    counts: Dict[Tuple, List[int]] = field(default_factory=dict)

    def observe(self, val: float, **labels: Any) -> None:
        key = tuple(sorted(labels.items()))
        if key not in self.counts:
            self.counts[key] = [0 for _ in self.buckets]
        for i, b in enumerate(self.buckets):
            if val <= b:
                self.counts[key][i] += 1
                break

    def total(self, **labels: Any) -> int:
        return sum(self.counts.get(tuple(sorted(labels.items())), []))


# Predefined metrics
cache_requests_total = Counter("cache_requests_total", "get-or-set lookups by cache and result")
cache_compute_seconds = Histogram(
    "cache_compute_seconds",
    "Time spent computing values on cache misses",
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, float("inf")],
)
cache_invalidations_total = Counter("cache_invalidations_total", "Entries removed by invalidation, by reason")
l2_errors_total = Counter("l2_errors_total", "Second-tier cache failures by operation")
