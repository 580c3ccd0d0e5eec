"""Configuration and resilience utilities."""

from .config import CacheConfig, InstanceConfig, RedisConfig, ResilienceConfig, ServiceConfig
from .resilience import CircuitBreaker, CircuitBreakerConfig, CircuitOpenError, CircuitState, with_retries

__all__ = [
    "CacheConfig",
    "InstanceConfig",
    "RedisConfig",
    "ResilienceConfig",
    "ServiceConfig",
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitOpenError",
    "CircuitState",
    "with_retries",
]
