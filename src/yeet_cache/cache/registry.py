from __future__ import annotations

import fnmatch
import functools
import logging
import typing as t

from yeet_cache.monitoring.metrics import cache_invalidations_total
from yeet_cache.utils.config import CacheConfig

from . import keys
from .helpers import Compute, SingleFlight, TagIndex, get_or_set
from .lru_cache import Clock, LRUCache

if t.TYPE_CHECKING:  # pragma: no cover
    from yeet_cache.storage.base import PostRepository

_logger = logging.getLogger(__name__)

# Listing pages swept by invalidate_related; tagged keys cover the rest.
USER_POSTS_PAGES = range(1, 11)
USER_POSTS_LIMITS = (10, 20, 50)
TIMELINE_PAGES = range(1, 6)


class CacheRegistry:
    """Owns the named cache instances of one process.

    Each data category gets its own independent ``LRUCache`` so churn in one
    category cannot evict another category's hot entries. Build one registry
    at startup and hand it to the service layer.
    """

    def __init__(
        self,
        instances: t.Dict[str, LRUCache],
        *,
        enabled: bool = True,
        single_flight: bool = True,
    ) -> None:
        self._instances = dict(instances)
        self._stores = {store.name: store for store in self._instances.values()}
        self.enabled = enabled
        self._single_flight = SingleFlight() if single_flight else None
        self._tags = TagIndex()
        for store in self._instances.values():
            store.add_listener(functools.partial(self._tags.discard, store.name))

    @classmethod
    def from_config(cls, config: t.Optional[CacheConfig] = None, clock: t.Optional[Clock] = None) -> "CacheRegistry":
        config = config or CacheConfig()
        instances = {
            name: LRUCache(settings.max_size, settings.ttl_seconds, name=name, clock=clock)
            for name, settings in config.instances.items()
        }
        return cls(instances, enabled=config.enabled, single_flight=config.single_flight)

    def __getattr__(self, name: str) -> LRUCache:
        instances = self.__dict__.get("_instances", {})
        if name in instances:
            return instances[name]
        raise AttributeError(name)

    def get(self, name: str) -> LRUCache:
        try:
            return self._instances[name]
        except KeyError:
            raise KeyError(f"unknown cache instance: {name}") from None

    def names(self) -> t.List[str]:
        return list(self._instances)

    @property
    def tags(self) -> TagIndex:
        return self._tags

    def _resolve(self, cache: t.Union[str, LRUCache]) -> LRUCache:
        return self.get(cache) if isinstance(cache, str) else cache

    # Lifecycle

    def init(self) -> None:
        for name, cache in self._instances.items():
            _logger.info(
                "Cache instance %s ready capacity=%d ttl=%.0fs", name, cache.capacity, cache.default_ttl
            )

    def clear(self) -> None:
        for cache in self._instances.values():
            cache.clear()
        self._tags.clear()

    def close(self) -> None:
        self.clear()
        _logger.info("Cache registry closed")

    # Reads

    async def get_or_set(
        self,
        cache: t.Union[str, LRUCache],
        key: str,
        compute: Compute,
        ttl_seconds: t.Optional[float] = None,
        *,
        tags: t.Iterable[str] = (),
    ) -> t.Any:
        """Cache-aside read through one named instance.

        Concurrent misses for the same key share a single ``compute`` call when
        single-flight is enabled. Stored keys are recorded under ``tags`` so
        ``invalidate_tag`` can remove them later. If one of ``tags`` is
        invalidated while ``compute`` runs, the result is returned but not
        stored, and later callers start a fresh computation.
        """
        store = self._resolve(cache)
        if not self.enabled:
            return await get_or_set(_NullCache(store.name), key, compute, ttl_seconds)

        tags = tuple(tags)
        flight_key = f"{store.name}:{key}"

        async def _load() -> t.Any:
            with self._tags.watch(tags, flight_key) as watch:
                value = await get_or_set(store, key, compute, ttl_seconds, store_if=lambda: not watch.stale)
                if value is not None and not watch.stale and store.has(key):
                    for tag in tags:
                        self._tags.add(tag, store.name, key)
            return value

        if self._single_flight is None:
            return await _load()
        return await self._single_flight.do(flight_key, _load)

    # Invalidation

    def invalidate_related(self, entity_id: t.Union[int, str], owner_id: t.Union[int, str]) -> int:
        """Drop every cached entry derived from one post and its owner."""
        removed = 0
        removed += self.get("posts").delete(keys.post(entity_id))
        removed += self.get("queries").delete(keys.post_stats(entity_id))

        users = self.get("users")
        for page in USER_POSTS_PAGES:
            for limit in USER_POSTS_LIMITS:
                removed += users.delete(keys.user_posts(owner_id, page, limit))

        timelines = self.get("timelines")
        for page in TIMELINE_PAGES:
            removed += timelines.delete(keys.timeline(owner_id, page))

        removed += self.invalidate_tag(keys.owner_tag(owner_id))
        cache_invalidations_total.inc(removed, reason="related")
        _logger.debug("Invalidated %d entries for post=%s owner=%s", removed, entity_id, owner_id)
        return removed

    def invalidate_tag(self, tag: str) -> int:
        if self._single_flight is not None:
            for watch in self._tags.watching(tag):
                self._single_flight.forget(watch.flight_key)
        removed = 0
        for cache_name, key in self._tags.pop(tag):
            cache = self._stores.get(cache_name)
            if cache is not None:
                removed += cache.delete(key)
        cache_invalidations_total.inc(removed, reason="tag")
        return removed

    def invalidate_pattern(self, pattern: str) -> int:
        """Delete keys matching a glob pattern (``post:*``) in every instance."""
        removed = 0
        for cache in self._instances.values():
            for key in cache.keys():
                if fnmatch.fnmatchcase(key, pattern):
                    removed += cache.delete(key)
        cache_invalidations_total.inc(removed, reason="pattern")
        _logger.info("Cleared %d keys matching %s", removed, pattern)
        return removed

    # Maintenance

    async def warmup(self, repository: "PostRepository", limit: int = 50) -> int:
        """Prime the post cache with the most recent posts.

        Warm-up is advisory: a repository failure is logged and reported as 0.
        """
        try:
            posts = await repository.recent_posts(limit)
        except Exception:
            _logger.exception("Cache warmup failed")
            return 0
        cache = self.get("posts")
        for post in posts:
            cache.set(keys.post(post.id), post)
        _logger.info("Cache warmed up with %d recent posts", len(posts))
        return len(posts)

    def purge_expired(self) -> t.Dict[str, int]:
        return {name: cache.purge_expired() for name, cache in self._instances.items()}

    def get_stats(self) -> t.Dict[str, t.Dict[str, t.Any]]:
        return {name: cache.get_stats() for name, cache in self._instances.items()}


class _NullCache:
    """Stand-in used when caching is disabled: every read misses, writes are dropped."""

    def __init__(self, name: str) -> None:
        self.name = name

    def get(self, key: str) -> None:
        return None

    def set(self, key: str, value: t.Any, ttl_seconds: t.Optional[float] = None) -> bool:
        return False
