"""Shared fixtures and mocks for unit tests."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from yeet_cache.cache.registry import CacheRegistry
from yeet_cache.storage import InMemoryPostRepository
from yeet_cache.utils.config import CacheConfig


class FakeClock:
    """Controllable wall clock, in seconds."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    """Fake clock shared by caches and repositories in a test."""
    return FakeClock()


@pytest.fixture
def registry(clock):
    """Registry with the default named instances on the fake clock."""
    return CacheRegistry.from_config(CacheConfig(), clock=clock)


@pytest.fixture
def repository(clock):
    """Empty in-memory post repository."""
    return InMemoryPostRepository(clock=clock)


@pytest.fixture
def mock_l2():
    """Mock Redis tier that always misses."""
    l2 = AsyncMock()
    l2.get = AsyncMock(return_value=None)
    l2.set = AsyncMock(return_value=True)
    l2.delete = AsyncMock(return_value=True)
    l2.clear_pattern = AsyncMock(return_value=0)
    l2.ping = AsyncMock(return_value=True)
    l2.close = AsyncMock(return_value=None)
    return l2


@pytest.fixture
def mock_redis_client():
    """Mock redis.asyncio client."""
    client = AsyncMock()
    client.get = AsyncMock(return_value=None)
    client.set = AsyncMock(return_value=True)
    client.delete = AsyncMock(return_value=1)
    client.ping = AsyncMock(return_value=True)
    client.aclose = AsyncMock(return_value=None)
    return client

