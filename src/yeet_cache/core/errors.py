from __future__ import annotations


class PostServiceError(Exception):
    """Base class for post service failures."""


class PostNotFoundError(PostServiceError, LookupError):
    def __init__(self, post_id: object) -> None:
        super().__init__(f"Post not found: {post_id}")
        self.post_id = post_id


class DuplicateInteractionError(PostServiceError):
    def __init__(self, kind: str, post_id: object, user_id: object) -> None:
        super().__init__(f"{kind} already recorded for post={post_id} user={user_id}")
        self.kind = kind
        self.post_id = post_id
        self.user_id = user_id
