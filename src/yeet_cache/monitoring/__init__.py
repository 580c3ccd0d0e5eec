from .metrics import (
    Counter,
    Histogram,
    cache_compute_seconds,
    cache_invalidations_total,
    cache_requests_total,
    l2_errors_total,
)

__all__ = [
    "Counter",
    "Histogram",
    "cache_requests_total",
    "cache_compute_seconds",
    "cache_invalidations_total",
    "l2_errors_total",
]
