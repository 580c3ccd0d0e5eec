from __future__ import annotations

import time
import typing as t
from dataclasses import asdict, dataclass, field

PostId = int
UserId = int


@dataclass
class Post:
    id: PostId
    author_id: UserId
    content: str
    image: t.Optional[str] = None
    published_at: float = field(default_factory=lambda: time.time())
    like_count: int = 0
    retweet_count: int = 0
    is_liked: t.Optional[bool] = None
    is_retweeted: t.Optional[bool] = None

    def to_dict(self) -> t.Dict[str, t.Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: t.Dict[str, t.Any]) -> "Post":
        return cls(**data)


@dataclass
class Pagination:
    page: int
    limit: int
    total: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


@dataclass
class PostPage:
    posts: t.List[Post]
    pagination: Pagination
    user_id: t.Optional[UserId] = None

    def to_dict(self) -> t.Dict[str, t.Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: t.Dict[str, t.Any]) -> "PostPage":
        return cls(
            posts=[Post.from_dict(p) for p in data["posts"]],
            pagination=Pagination(**data["pagination"]),
            user_id=data.get("user_id"),
        )


@dataclass
class PostStats:
    post_id: PostId
    likes_count: int
    retweets_count: int

    def to_dict(self) -> t.Dict[str, t.Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: t.Dict[str, t.Any]) -> "PostStats":
        return cls(**data)


@dataclass
class InteractionResult:
    success: bool
    post: Post
    user_id: UserId
    action: str
    message: t.Optional[str] = None
