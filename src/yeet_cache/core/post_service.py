from __future__ import annotations

import asyncio
import dataclasses
import logging
import typing as t

from yeet_cache.cache import keys
from yeet_cache.cache.redis_cache import RedisCache
from yeet_cache.cache.registry import CacheRegistry
from yeet_cache.monitoring.metrics import l2_errors_total
from yeet_cache.storage import PostRepository
from yeet_cache.utils.config import ServiceConfig
from yeet_cache.utils.resilience import CircuitBreaker, CircuitBreakerConfig, with_retries

from .errors import DuplicateInteractionError, PostNotFoundError
from .models import InteractionResult, Post, PostId, PostPage, PostStats, UserId
from .pagination import page_offset, pagination_meta, validate_pagination

_logger = logging.getLogger(__name__)

# Business outcomes: never retried, never trip the breaker.
_DOMAIN_ERRORS = (PostNotFoundError, DuplicateInteractionError)

LISTING_TTL_SECONDS = 300.0

T = t.TypeVar("T")


class PostService:
    """Post reads and writes with cache-aside caching, retries and a circuit breaker.

    Reads go L1 (per-process ``CacheRegistry``) -> optional L2 (``RedisCache``)
    -> repository. The L2 tier is best-effort: any failure there is logged and
    treated as a miss. Writes invalidate the entries derived from the post.
    """

    def __init__(
        self,
        repository: PostRepository,
        caches: CacheRegistry,
        l2: t.Optional[RedisCache] = None,
        circuit_breaker: t.Optional[CircuitBreaker] = None,
        l2_circuit_breaker: t.Optional[CircuitBreaker] = None,
        retry_attempts: int = 3,
        retry_backoff_ms: t.Optional[t.List[int]] = None,
        warmup_limit: int = 50,
    ) -> None:
        self._repo = repository
        self._caches = caches
        self._l2 = l2
        self._breaker = circuit_breaker or CircuitBreaker(name="repository", ignore=_DOMAIN_ERRORS)
        self._l2_breaker = l2_circuit_breaker or CircuitBreaker(name="l2")
        self._retry_attempts = retry_attempts
        self._retry_backoff_ms = retry_backoff_ms or [100, 500, 2000]
        self._warmup_limit = warmup_limit

    @classmethod
    def from_config(
        cls,
        repository: PostRepository,
        config: t.Optional[ServiceConfig] = None,
        *,
        caches: t.Optional[CacheRegistry] = None,
    ) -> "PostService":
        config = config or ServiceConfig()
        resilience = config.resilience
        breaker_config = CircuitBreakerConfig(
            enabled=resilience.circuit_breaker_enabled,
            failure_threshold=resilience.failure_threshold,
            reset_timeout_seconds=resilience.reset_timeout_seconds,
        )
        l2 = None
        if config.redis.enabled:
            l2 = RedisCache(
                config.redis.url,
                prefix=config.redis.prefix,
                default_ttl_seconds=config.redis.ttl_seconds,
            )
        return cls(
            repository,
            caches or CacheRegistry.from_config(config.cache),
            l2=l2,
            circuit_breaker=CircuitBreaker(breaker_config, name="repository", ignore=_DOMAIN_ERRORS),
            l2_circuit_breaker=CircuitBreaker(breaker_config, name="l2"),
            retry_attempts=resilience.retry_max_attempts,
            retry_backoff_ms=resilience.retry_backoff_ms,
            warmup_limit=config.cache.warmup_limit,
        )

    @property
    def caches(self) -> CacheRegistry:
        return self._caches

    # Plumbing

    async def _db(self, op: t.Callable[[], t.Awaitable[T]]) -> T:
        return await self._breaker.run(
            lambda: with_retries(op, self._retry_attempts, self._retry_backoff_ms, no_retry=_DOMAIN_ERRORS)
        )

    async def _cached(
        self,
        cache_name: str,
        key: str,
        loader: t.Callable[[], t.Awaitable[t.Any]],
        decode: t.Callable[[t.Dict[str, t.Any]], t.Any],
        ttl_seconds: t.Optional[float] = None,
        tags: t.Iterable[str] = (),
    ) -> t.Any:
        async def _compute() -> t.Any:
            shared = await self._l2_get(key, decode)
            if shared is not None:
                return shared
            value = await loader()
            if value is not None:
                await self._l2_set(key, value, ttl_seconds)
            return value

        return await self._caches.get_or_set(cache_name, key, _compute, ttl_seconds, tags=tags)

    async def _l2_get(self, key: str, decode: t.Callable[[t.Dict[str, t.Any]], t.Any]) -> t.Any:
        if self._l2 is None:
            return None
        l2 = self._l2
        try:
            raw = await self._l2_breaker.run(lambda: l2.get(key))
            return decode(raw) if raw is not None else None
        except Exception as exc:
            l2_errors_total.inc(op="get")
            _logger.warning("L2 get failed for %s: %s", key, exc)
            return None

    async def _l2_set(self, key: str, value: t.Any, ttl_seconds: t.Optional[float]) -> None:
        if self._l2 is None:
            return
        l2 = self._l2
        try:
            await self._l2_breaker.run(lambda: l2.set(key, value.to_dict(), ttl_seconds))
        except Exception as exc:
            l2_errors_total.inc(op="set")
            _logger.warning("L2 set failed for %s: %s", key, exc)

    async def _l2_delete(self, *names: str, patterns: t.Iterable[str] = ()) -> None:
        if self._l2 is None:
            return
        l2 = self._l2

        async def _op() -> None:
            for name in names:
                await l2.delete(name)
            for pattern in patterns:
                await l2.clear_pattern(pattern)

        try:
            await self._l2_breaker.run(_op)
        except Exception as exc:
            l2_errors_total.inc(op="delete")
            _logger.warning("L2 invalidation failed for %s: %s", names or list(patterns), exc)

    async def _invalidate_post(self, post_id: PostId, owner_id: UserId) -> None:
        removed = self._caches.invalidate_related(post_id, owner_id)
        removed += self._caches.invalidate_tag(keys.TRENDING_TAG)
        await self._l2_delete(
            keys.post(post_id),
            keys.post_stats(post_id),
            patterns=(f"user_posts:{owner_id}:*", f"timeline:{owner_id}:*", "trending:*"),
        )
        _logger.debug("Invalidated post=%s owner=%s removed=%d", post_id, owner_id, removed)

    async def _drop_counters(self, post_id: PostId) -> None:
        self._caches.get("posts").delete(keys.post(post_id))
        self._caches.get("queries").delete(keys.post_stats(post_id))
        await self._l2_delete(keys.post(post_id), keys.post_stats(post_id))

    # Writes

    async def create_post(self, author_id: UserId, content: str, image: t.Optional[str] = None) -> Post:
        post = await self._db(lambda: self._repo.create_post(author_id, content, image))
        await self._invalidate_post(post.id, post.author_id)
        self._caches.get("posts").set(keys.post(post.id), post)
        _logger.info("Created post %s for author %s", post.id, post.author_id)
        return post

    async def delete_post(self, post_id: PostId) -> Post:
        existing = await self._db(lambda: self._repo.get_post(post_id))
        if existing is None:
            raise PostNotFoundError(post_id)
        deleted = await self._db(lambda: self._repo.delete_post(post_id))
        await self._invalidate_post(post_id, existing.author_id)
        _logger.info("Deleted post %s", post_id)
        return deleted or existing

    async def like_post(self, post_id: PostId, user_id: UserId) -> InteractionResult:
        return await self._interact(post_id, user_id, self._repo.add_like, "liked", "Already liked")

    async def retweet_post(self, post_id: PostId, user_id: UserId) -> InteractionResult:
        return await self._interact(post_id, user_id, self._repo.add_retweet, "retweeted", "Already retweeted")

    async def _interact(
        self,
        post_id: PostId,
        user_id: UserId,
        record: t.Callable[[PostId, UserId], t.Awaitable[None]],
        action: str,
        duplicate_message: str,
    ) -> InteractionResult:
        message = None
        try:
            await self._db(lambda: record(post_id, user_id))
        except DuplicateInteractionError:
            message = duplicate_message
        await self._drop_counters(post_id)
        post = await self.get_post(post_id)
        return InteractionResult(success=True, post=post, user_id=user_id, action=action, message=message)

    # Reads

    async def get_post(self, post_id: PostId) -> Post:
        post = await self._cached(
            "posts",
            keys.post(post_id),
            lambda: self._db(lambda: self._repo.get_post(post_id)),
            Post.from_dict,
        )
        if post is None:
            raise PostNotFoundError(post_id)
        return post

    async def list_posts(self, page: t.Any = 1, limit: t.Any = 10) -> PostPage:
        page, limit = validate_pagination(page, limit)

        async def _load() -> PostPage:
            posts, total = await asyncio.gather(
                self._db(lambda: self._repo.list_posts(page_offset(page, limit), limit)),
                self._db(self._repo.count_posts),
            )
            return PostPage(posts=posts, pagination=pagination_meta(page, limit, total))

        return await self._cached(
            "posts",
            keys.trending_posts(page, limit),
            _load,
            PostPage.from_dict,
            LISTING_TTL_SECONDS,
            tags=(keys.TRENDING_TAG,),
        )

    async def list_user_posts(self, user_id: UserId, page: t.Any = 1, limit: t.Any = 10) -> PostPage:
        page, limit = validate_pagination(page, limit)

        async def _load() -> PostPage:
            posts, total = await asyncio.gather(
                self._db(lambda: self._repo.list_user_posts(user_id, page_offset(page, limit), limit)),
                self._db(lambda: self._repo.count_user_posts(user_id)),
            )
            return PostPage(posts=posts, pagination=pagination_meta(page, limit, total), user_id=user_id)

        return await self._cached(
            "users",
            keys.user_posts(user_id, page, limit),
            _load,
            PostPage.from_dict,
            tags=(keys.owner_tag(user_id),),
        )

    async def get_timeline(self, user_id: UserId, page: t.Any = 1, limit: t.Any = 10) -> PostPage:
        """Posts by the user and the authors they follow, newest first.

        Only the user's own writes invalidate this page; new posts by followed
        authors show up once the entry's TTL runs out.
        """
        page, limit = validate_pagination(page, limit)

        async def _load() -> PostPage:
            posts, total = await asyncio.gather(
                self._db(lambda: self._repo.list_timeline(user_id, page_offset(page, limit), limit)),
                self._db(lambda: self._repo.count_timeline(user_id)),
            )
            return PostPage(posts=posts, pagination=pagination_meta(page, limit, total), user_id=user_id)

        return await self._cached(
            "timelines",
            keys.timeline(user_id, page, limit),
            _load,
            PostPage.from_dict,
            LISTING_TTL_SECONDS,
            tags=(keys.owner_tag(user_id),),
        )

    async def get_post_stats(self, post_id: PostId) -> PostStats:
        async def _load() -> PostStats:
            likes, retweets = await asyncio.gather(
                self._db(lambda: self._repo.count_likes(post_id)),
                self._db(lambda: self._repo.count_retweets(post_id)),
            )
            return PostStats(post_id=post_id, likes_count=likes, retweets_count=retweets)

        return await self._cached("queries", keys.post_stats(post_id), _load, PostStats.from_dict)

    async def get_posts(self, post_ids: t.Sequence[PostId], user_id: t.Optional[UserId] = None) -> t.List[Post]:
        posts = await self._db(lambda: self._repo.get_posts(post_ids))
        if user_id is None:
            return posts
        liked, retweeted = await asyncio.gather(
            self._db(lambda: self._repo.liked_post_ids(user_id, post_ids)),
            self._db(lambda: self._repo.retweeted_post_ids(user_id, post_ids)),
        )
        return [
            dataclasses.replace(post, is_liked=post.id in liked, is_retweeted=post.id in retweeted)
            for post in posts
        ]

    # Lifecycle

    async def start(self) -> int:
        self._caches.init()
        return await self._caches.warmup(self._repo, self._warmup_limit)

    async def close(self) -> None:
        self._caches.close()
        if self._l2 is not None:
            await self._l2.close()

    async def health(self) -> t.Dict[str, t.Any]:
        return {
            "repository": await self._repo.is_healthy(),
            "l2": (await self._l2.ping()) if self._l2 is not None else None,
            "circuit": self._breaker.state,
            "caches": self._caches.get_stats(),
        }
