from __future__ import annotations

import dataclasses
import itertools
import time
import typing as t
from abc import ABC, abstractmethod

from ..core.errors import DuplicateInteractionError, PostNotFoundError
from ..core.models import Post, PostId, UserId


class PostRepository(ABC):
    """System of record for posts, follows and interactions."""

    @abstractmethod
    async def create_post(self, author_id: UserId, content: str, image: t.Optional[str] = None) -> Post:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def get_post(self, post_id: PostId) -> t.Optional[Post]:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def get_posts(self, post_ids: t.Sequence[PostId]) -> t.List[Post]:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def delete_post(self, post_id: PostId) -> t.Optional[Post]:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def list_posts(self, skip: int, take: int) -> t.List[Post]:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def count_posts(self) -> int:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def list_user_posts(self, user_id: UserId, skip: int, take: int) -> t.List[Post]:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def count_user_posts(self, user_id: UserId) -> int:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def list_timeline(self, user_id: UserId, skip: int, take: int) -> t.List[Post]:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def count_timeline(self, user_id: UserId) -> int:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def recent_posts(self, limit: int) -> t.List[Post]:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def follow(self, follower_id: UserId, followee_id: UserId) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def add_like(self, post_id: PostId, user_id: UserId) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def add_retweet(self, post_id: PostId, user_id: UserId) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def count_likes(self, post_id: PostId) -> int:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def count_retweets(self, post_id: PostId) -> int:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def liked_post_ids(self, user_id: UserId, post_ids: t.Sequence[PostId]) -> t.Set[PostId]:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def retweeted_post_ids(self, user_id: UserId, post_ids: t.Sequence[PostId]) -> t.Set[PostId]:  # pragma: no cover - interface
        raise NotImplementedError

    @abstractmethod
    async def is_healthy(self) -> bool:  # pragma: no cover - interface
        raise NotImplementedError


class InMemoryPostRepository(PostRepository):
    """A simple in-memory repository for dev/test and the example app.

    Returned posts are copies carrying current like/retweet counts, so callers
    (and caches) never alias the stored records.
    """

    def __init__(self, clock: t.Optional[t.Callable[[], float]] = None) -> None:
        self._clock = clock or time.time
        self._ids = itertools.count(1)
        self._posts: t.Dict[PostId, Post] = {}
        self._likes: t.Dict[PostId, t.Set[UserId]] = {}
        self._retweets: t.Dict[PostId, t.Set[UserId]] = {}
        self._following: t.Dict[UserId, t.Set[UserId]] = {}

    def _snapshot(self, post: Post) -> Post:
        return dataclasses.replace(
            post,
            like_count=len(self._likes.get(post.id, ())),
            retweet_count=len(self._retweets.get(post.id, ())),
        )

    def _newest_first(self, posts: t.Iterable[Post]) -> t.List[Post]:
        return sorted(posts, key=lambda p: (p.published_at, p.id), reverse=True)

    def _page(self, posts: t.Iterable[Post], skip: int, take: int) -> t.List[Post]:
        ordered = self._newest_first(posts)
        return [self._snapshot(p) for p in ordered[skip : skip + take]]

    def _timeline_authors(self, user_id: UserId) -> t.Set[UserId]:
        return {user_id} | self._following.get(user_id, set())

    async def create_post(self, author_id: UserId, content: str, image: t.Optional[str] = None) -> Post:
        post = Post(
            id=next(self._ids),
            author_id=author_id,
            content=content,
            image=image,
            published_at=self._clock(),
        )
        self._posts[post.id] = post
        return self._snapshot(post)

    async def get_post(self, post_id: PostId) -> t.Optional[Post]:
        post = self._posts.get(post_id)
        return self._snapshot(post) if post else None

    async def get_posts(self, post_ids: t.Sequence[PostId]) -> t.List[Post]:
        return [self._snapshot(self._posts[pid]) for pid in post_ids if pid in self._posts]

    async def delete_post(self, post_id: PostId) -> t.Optional[Post]:
        post = self._posts.pop(post_id, None)
        if post is None:
            return None
        snapshot = dataclasses.replace(
            post,
            like_count=len(self._likes.pop(post_id, ())),
            retweet_count=len(self._retweets.pop(post_id, ())),
        )
        return snapshot

    async def list_posts(self, skip: int, take: int) -> t.List[Post]:
        return self._page(self._posts.values(), skip, take)

    async def count_posts(self) -> int:
        return len(self._posts)

    async def list_user_posts(self, user_id: UserId, skip: int, take: int) -> t.List[Post]:
        return self._page((p for p in self._posts.values() if p.author_id == user_id), skip, take)

    async def count_user_posts(self, user_id: UserId) -> int:
        return sum(1 for p in self._posts.values() if p.author_id == user_id)

    async def list_timeline(self, user_id: UserId, skip: int, take: int) -> t.List[Post]:
        authors = self._timeline_authors(user_id)
        return self._page((p for p in self._posts.values() if p.author_id in authors), skip, take)

    async def count_timeline(self, user_id: UserId) -> int:
        authors = self._timeline_authors(user_id)
        return sum(1 for p in self._posts.values() if p.author_id in authors)

    async def recent_posts(self, limit: int) -> t.List[Post]:
        return self._page(self._posts.values(), 0, limit)

    async def follow(self, follower_id: UserId, followee_id: UserId) -> None:
        self._following.setdefault(follower_id, set()).add(followee_id)

    async def add_like(self, post_id: PostId, user_id: UserId) -> None:
        self._add_interaction(self._likes, "like", post_id, user_id)

    async def add_retweet(self, post_id: PostId, user_id: UserId) -> None:
        self._add_interaction(self._retweets, "retweet", post_id, user_id)

    def _add_interaction(
        self, table: t.Dict[PostId, t.Set[UserId]], kind: str, post_id: PostId, user_id: UserId
    ) -> None:
        if post_id not in self._posts:
            raise PostNotFoundError(post_id)
        users = table.setdefault(post_id, set())
        if user_id in users:
            raise DuplicateInteractionError(kind, post_id, user_id)
        users.add(user_id)

    async def count_likes(self, post_id: PostId) -> int:
        return len(self._likes.get(post_id, ()))

    async def count_retweets(self, post_id: PostId) -> int:
        return len(self._retweets.get(post_id, ()))

    async def liked_post_ids(self, user_id: UserId, post_ids: t.Sequence[PostId]) -> t.Set[PostId]:
        return {pid for pid in post_ids if user_id in self._likes.get(pid, ())}

    async def retweeted_post_ids(self, user_id: UserId, post_ids: t.Sequence[PostId]) -> t.Set[PostId]:
        return {pid for pid in post_ids if user_id in self._retweets.get(pid, ())}

    async def is_healthy(self) -> bool:
        return True
