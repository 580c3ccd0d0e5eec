from __future__ import annotations

import math
import typing as t

from .models import Pagination

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


def _as_int(value: t.Any, default: int) -> int:
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        return default
    # 0 falls back to the default, like a missing value
    return parsed or default


def validate_pagination(page: t.Any = DEFAULT_PAGE, limit: t.Any = DEFAULT_LIMIT) -> t.Tuple[int, int]:
    """Normalise raw page/limit input to ``page >= 1`` and ``1 <= limit <= 100``."""
    valid_page = max(1, _as_int(page, DEFAULT_PAGE))
    valid_limit = min(MAX_LIMIT, max(1, _as_int(limit, DEFAULT_LIMIT)))
    return valid_page, valid_limit


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def pagination_meta(page: int, limit: int, total: int) -> Pagination:
    total_pages = math.ceil(total / limit) if limit else 0
    return Pagination(
        page=page,
        limit=limit,
        total=total,
        total_pages=total_pages,
        has_next_page=page < total_pages,
        has_previous_page=page > 1,
    )
