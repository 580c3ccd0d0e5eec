"""Unit tests for data models."""

import json

from yeet_cache.core.models import Pagination, Post, PostPage, PostStats


class TestPost:
    """Test Post dataclass."""

    def test_post_creation_with_defaults(self):
        post = Post(id=1, author_id=2, content="hello")

        assert post.image is None
        assert post.like_count == 0
        assert post.retweet_count == 0
        assert post.is_liked is None
        assert isinstance(post.published_at, float)

    def test_post_json_round_trip(self):
        post = Post(id=1, author_id=2, content="hello", image="a.png", published_at=10.0, like_count=3)

        restored = Post.from_dict(json.loads(json.dumps(post.to_dict())))

        assert restored == post


class TestPostPage:
    def test_page_from_json(self):
        page = PostPage(
            posts=[Post(id=1, author_id=2, content="x", published_at=1.0)],
            pagination=Pagination(1, 10, 1, 1, False, False),
            user_id=2,
        )

        restored = PostPage.from_dict(json.loads(json.dumps(page.to_dict())))

        assert restored == page
        assert isinstance(restored.posts[0], Post)
        assert isinstance(restored.pagination, Pagination)


def test_post_stats_from_dict():
    stats = PostStats.from_dict({"post_id": 1, "likes_count": 2, "retweets_count": 3})
    assert stats.to_dict() == {"post_id": 1, "likes_count": 2, "retweets_count": 3}
