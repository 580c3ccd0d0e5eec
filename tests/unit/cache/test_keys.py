"""Unit tests for cache key builders."""

from yeet_cache.cache import keys


def test_entity_keys():
    assert keys.post(42) == "post:42"
    assert keys.post_stats(42) == "post_stats:42"
    assert keys.post_likes(42) == "post_likes:42"
    assert keys.post_retweets(42) == "post_retweets:42"
    assert keys.user_profile(7) == "user_profile:7"


def test_paginated_keys_default_page_and_limit():
    assert keys.user_posts(7) == "user_posts:7:1:10"
    assert keys.timeline(7) == "timeline:7:1:10"
    assert keys.trending_posts() == "trending:1:10"


def test_paginated_keys_include_page_and_limit():
    assert keys.user_posts(7, 3, 20) == "user_posts:7:3:20"
    assert keys.timeline("abc", 2, 50) == "timeline:abc:2:50"
    assert keys.trending_posts(4, 25) == "trending:4:25"


def test_keys_are_deterministic_and_distinct():
    assert keys.timeline(1, 2, 3) == keys.timeline(1, 2, 3)
    built = {
        keys.post(1),
        keys.post_stats(1),
        keys.user_posts(1),
        keys.timeline(1),
        keys.trending_posts(1, 1),
        keys.user_posts(1, 1, 20),
    }
    assert len(built) == 6


def test_owner_tag():
    assert keys.owner_tag(9) == "owner:9"
