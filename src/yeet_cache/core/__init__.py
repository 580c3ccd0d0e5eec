"""Post models, pagination and service errors.

``PostService`` lives in :mod:`yeet_cache.core.post_service`.
"""

from .errors import DuplicateInteractionError, PostNotFoundError, PostServiceError
from .models import InteractionResult, Pagination, Post, PostPage, PostStats
from .pagination import pagination_meta, validate_pagination

__all__ = [
    # Models
    "Post",
    "PostPage",
    "PostStats",
    "Pagination",
    "InteractionResult",
    # Errors
    "PostServiceError",
    "PostNotFoundError",
    "DuplicateInteractionError",
    # Pagination
    "validate_pagination",
    "pagination_meta",
]
