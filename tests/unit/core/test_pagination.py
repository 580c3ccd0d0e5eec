"""Unit tests for pagination helpers."""

import pytest

from yeet_cache.core.pagination import page_offset, pagination_meta, validate_pagination


@pytest.mark.parametrize(
    "page, limit, expected",
    [
        (1, 10, (1, 10)),
        (None, None, (1, 10)),
        ("3", "20", (3, 20)),
        ("abc", "xyz", (1, 10)),
        (-5, 0, (1, 10)),
        (2, 500, (2, 100)),
        (2, -3, (2, 1)),
    ],
)
def test_validate_pagination(page, limit, expected):
    assert validate_pagination(page, limit) == expected


def test_page_offset():
    assert page_offset(1, 10) == 0
    assert page_offset(3, 20) == 40


def test_pagination_meta_middle_page():
    meta = pagination_meta(2, 10, 35)

    assert meta.total_pages == 4
    assert meta.has_next_page is True
    assert meta.has_previous_page is True


def test_pagination_meta_empty():
    meta = pagination_meta(1, 10, 0)

    assert meta.total == 0
    assert meta.total_pages == 0
    assert meta.has_next_page is False
    assert meta.has_previous_page is False
