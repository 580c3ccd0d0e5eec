from .base import InMemoryPostRepository, PostRepository

__all__ = ["PostRepository", "InMemoryPostRepository"]
