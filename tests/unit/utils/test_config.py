"""Unit tests for configuration loading."""

from yeet_cache.utils.config import CacheConfig, ServiceConfig


def test_defaults_match_named_instances():
    config = ServiceConfig()

    instances = config.cache.instances
    assert (instances["posts"].max_size, instances["posts"].ttl_seconds) == (500, 600)
    assert (instances["users"].max_size, instances["users"].ttl_seconds) == (200, 900)
    assert (instances["timelines"].max_size, instances["timelines"].ttl_seconds) == (100, 300)
    assert (instances["queries"].max_size, instances["queries"].ttl_seconds) == (1000, 180)
    assert (instances["default"].max_size, instances["default"].ttl_seconds) == (1000, 300)
    assert config.redis.enabled is False


def test_default_instances_are_not_shared():
    first, second = CacheConfig(), CacheConfig()
    first.instances["posts"].max_size = 1
    assert second.instances["posts"].max_size == 500


def test_from_dict_merges_instance_overrides():
    config = ServiceConfig.from_dict(
        {
            "cache": {"single_flight": False, "instances": {"posts": {"ttl_seconds": 60}, "extra": {"max_size": 5}}},
            "redis": {"enabled": True, "url": "redis://cache:6379/1"},
            "resilience": {"retry_max_attempts": 5},
        }
    )

    assert config.cache.single_flight is False
    assert config.cache.instances["posts"].ttl_seconds == 60
    assert config.cache.instances["posts"].max_size == 500
    assert config.cache.instances["extra"].max_size == 5
    assert config.redis.url == "redis://cache:6379/1"
    assert config.resilience.retry_max_attempts == 5


def test_from_env():
    config = ServiceConfig.from_env(
        {
            "CACHE_ENABLED": "false",
            "CACHE_MAX_POSTS": "800",
            "CACHE_TTL_TIMELINES": "120",
            "CACHE_WARMUP_LIMIT": "10",
            "REDIS_URL": "redis://cache:6379/0",
            "REDIS_PREFIX": "posts",
        }
    )

    assert config.cache.enabled is False
    assert config.cache.instances["posts"].max_size == 800
    assert config.cache.instances["timelines"].ttl_seconds == 120.0
    assert config.cache.warmup_limit == 10
    assert config.redis.enabled is True
    assert config.redis.url == "redis://cache:6379/0"
    assert config.redis.prefix == "posts"


def test_from_env_empty():
    config = ServiceConfig.from_env({})

    assert config.cache.enabled is True
    assert config.cache.single_flight is True
    assert config.redis.enabled is False
