from __future__ import annotations

import dataclasses
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional


@dataclass
class InstanceConfig:
    max_size: int = 1000
    ttl_seconds: float = 300.0


def _default_instances() -> Dict[str, InstanceConfig]:
    return {
        "posts": InstanceConfig(max_size=500, ttl_seconds=600),
        "users": InstanceConfig(max_size=200, ttl_seconds=900),
        "timelines": InstanceConfig(max_size=100, ttl_seconds=300),
        "queries": InstanceConfig(max_size=1000, ttl_seconds=180),
        "default": InstanceConfig(max_size=1000, ttl_seconds=300),
    }


@dataclass
class CacheConfig:
    enabled: bool = True
    instances: Dict[str, InstanceConfig] = dataclasses.field(default_factory=_default_instances)
    single_flight: bool = True
    warmup_limit: int = 50


@dataclass
class RedisConfig:
    enabled: bool = False
    url: str = "redis://localhost:6379/0"
    prefix: str = "yeet"
    ttl_seconds: float = 300.0


@dataclass
class ResilienceConfig:
    circuit_breaker_enabled: bool = True
    failure_threshold: int = 5
    reset_timeout_seconds: float = 30.0
    retry_max_attempts: int = 3
    retry_backoff_ms: List[int] = dataclasses.field(default_factory=lambda: [100, 500, 2000])


@dataclass
class ServiceConfig:
    cache: CacheConfig = dataclasses.field(default_factory=CacheConfig)
    redis: RedisConfig = dataclasses.field(default_factory=RedisConfig)
    resilience: ResilienceConfig = dataclasses.field(default_factory=ResilienceConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ServiceConfig":
        def build(dc_cls, key):
            values = data.get(key, {})
            return dc_cls(**values)

        cache_values = dict(data.get("cache", {}))
        instances = _default_instances()
        for name, values in cache_values.pop("instances", {}).items():
            base = dataclasses.asdict(instances.get(name, InstanceConfig()))
            base.update(values)
            instances[name] = InstanceConfig(**base)

        return cls(
            cache=CacheConfig(instances=instances, **cache_values),
            redis=build(RedisConfig, "redis"),
            resilience=build(ResilienceConfig, "resilience"),
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServiceConfig":
        """Build a config from ``CACHE_*`` and ``REDIS_*`` environment variables.

        Per-instance overrides use the upper-cased instance name, for example
        ``CACHE_MAX_POSTS=800`` or ``CACHE_TTL_TIMELINES=120``.
        """
        env = os.environ if environ is None else environ
        config = cls()

        config.cache.enabled = env.get("CACHE_ENABLED", "true").lower() != "false"
        config.cache.single_flight = env.get("CACHE_SINGLE_FLIGHT", "true").lower() != "false"
        if "CACHE_WARMUP_LIMIT" in env:
            config.cache.warmup_limit = int(env["CACHE_WARMUP_LIMIT"])
        for name, instance in config.cache.instances.items():
            suffix = name.upper()
            if f"CACHE_MAX_{suffix}" in env:
                instance.max_size = int(env[f"CACHE_MAX_{suffix}"])
            if f"CACHE_TTL_{suffix}" in env:
                instance.ttl_seconds = float(env[f"CACHE_TTL_{suffix}"])

        if "REDIS_URL" in env:
            config.redis.enabled = True
            config.redis.url = env["REDIS_URL"]
        config.redis.prefix = env.get("REDIS_PREFIX", config.redis.prefix)
        return config
