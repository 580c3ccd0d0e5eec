"""Unit tests for in-process metrics."""

from yeet_cache.monitoring.metrics import Counter, Histogram


def test_counter_labels_are_order_insensitive():
    counter = Counter("requests", "test")
    counter.inc(cache="posts", result="hit")
    counter.inc(2, result="hit", cache="posts")

    assert counter.get(cache="posts", result="hit") == 3.0
    assert counter.get(cache="posts", result="miss") == 0.0


def test_histogram_buckets():
    histogram = Histogram("latency", "test", buckets=[0.1, 1.0, float("inf")])
    histogram.observe(0.05, cache="posts")
    histogram.observe(0.5, cache="posts")
    histogram.observe(5.0, cache="posts")

    assert histogram.counts[(("cache", "posts"),)] == [1, 1, 1]
    assert histogram.total(cache="posts") == 3
    assert histogram.total(cache="users") == 0
