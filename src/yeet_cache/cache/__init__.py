"""In-process LRU + TTL caches, key builders and invalidation helpers."""

from . import keys
from .helpers import SingleFlight, TagIndex, get_or_set
from .lru_cache import CacheEntry, CacheStats, LRUCache
from .redis_cache import RedisCache
from .registry import CacheRegistry

__all__ = [
    "CacheEntry",
    "CacheStats",
    "LRUCache",
    "CacheRegistry",
    "RedisCache",
    "SingleFlight",
    "TagIndex",
    "get_or_set",
    "keys",
]
