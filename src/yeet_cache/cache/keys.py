"""Cache key builders.

Readers and invalidators rebuild the same key from the same arguments, so the
format of each key is part of the cache contract: ``<type>:<id>[:<page>:<limit>]``.
"""

from __future__ import annotations

import typing as t

Id = t.Union[int, str]

OWNER_TAG_PREFIX = "owner"
TRENDING_TAG = "trending"


def post(post_id: Id) -> str:
    return f"post:{post_id}"


def user_posts(user_id: Id, page: int = 1, limit: int = 10) -> str:
    return f"user_posts:{user_id}:{page}:{limit}"


def timeline(user_id: Id, page: int = 1, limit: int = 10) -> str:
    return f"timeline:{user_id}:{page}:{limit}"


def post_likes(post_id: Id) -> str:
    return f"post_likes:{post_id}"


def post_retweets(post_id: Id) -> str:
    return f"post_retweets:{post_id}"


def user_profile(user_id: Id) -> str:
    return f"user_profile:{user_id}"


def post_stats(post_id: Id) -> str:
    return f"post_stats:{post_id}"


def trending_posts(page: int = 1, limit: int = 10) -> str:
    return f"trending:{page}:{limit}"


def owner_tag(user_id: Id) -> str:
    return f"{OWNER_TAG_PREFIX}:{user_id}"
