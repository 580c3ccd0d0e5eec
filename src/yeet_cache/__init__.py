"""yeet_cache

Caching layer for the post ("yeet") service: named in-process LRU + TTL
caches, deterministic cache keys, cache-aside reads with single-flight,
tag/pattern invalidation, warm-up, and an optional Redis second tier.
"""

from .cache import (
    CacheRegistry,
    LRUCache,
    RedisCache,
    SingleFlight,
    TagIndex,
    get_or_set,
    keys,
)
from .core import (
    DuplicateInteractionError,
    InteractionResult,
    Pagination,
    Post,
    PostNotFoundError,
    PostPage,
    PostServiceError,
    PostStats,
)
from .storage import InMemoryPostRepository, PostRepository
from .core.post_service import PostService
from .utils.config import ServiceConfig

__all__ = [
    "LRUCache",
    "CacheRegistry",
    "RedisCache",
    "SingleFlight",
    "TagIndex",
    "get_or_set",
    "keys",
    "PostService",
    "PostRepository",
    "InMemoryPostRepository",
    "Post",
    "PostPage",
    "PostStats",
    "Pagination",
    "InteractionResult",
    "PostServiceError",
    "PostNotFoundError",
    "DuplicateInteractionError",
    "ServiceConfig",
]

__version__ = "0.1.0"
