"""Unit tests for the cache maintenance CLI."""

from unittest.mock import AsyncMock, Mock

import pytest
from click.testing import CliRunner

from yeet_cache import cli


@pytest.fixture
def fake_cache(monkeypatch):
    cache = Mock()
    cache.get_stats = AsyncMock(return_value={"total_keys": 3, "keys_by_type": {"post": 2, "timeline": 1}})
    cache.clear_pattern = AsyncMock(return_value=2)
    cache.ping = AsyncMock(return_value=True)
    cache.close = AsyncMock(return_value=None)
    factory = Mock(return_value=cache)
    monkeypatch.setattr(cli, "RedisCache", factory)
    return cache, factory


def test_stats(fake_cache):
    cache, factory = fake_cache

    result = CliRunner().invoke(cli.main, ["--redis-url", "redis://cache:6379/0", "--prefix", "p", "stats"])

    assert result.exit_code == 0, result.output
    assert "Total keys: 3" in result.output
    assert "post: 2" in result.output
    factory.assert_called_once_with("redis://cache:6379/0", prefix="p")
    cache.close.assert_awaited_once()


def test_clear_all(fake_cache):
    cache, _ = fake_cache

    result = CliRunner().invoke(cli.main, ["clear", "all"])

    assert result.exit_code == 0, result.output
    cache.clear_pattern.assert_awaited_once_with("*")
    assert "Cleared 2 keys" in result.output


def test_clear_pattern(fake_cache):
    cache, _ = fake_cache

    result = CliRunner().invoke(cli.main, ["clear", "post:*"])

    assert result.exit_code == 0, result.output
    cache.clear_pattern.assert_awaited_once_with("post:*")


def test_ping_unreachable(fake_cache):
    cache, _ = fake_cache
    cache.ping.return_value = False

    result = CliRunner().invoke(cli.main, ["ping"])

    assert result.exit_code == 1
    cache.close.assert_awaited_once()
