"""
Pagination and sorting helpers shared by the post listing/search paths.

Everything here is pure: inputs come straight from the request and are
normalised to safe values before they reach SQLAlchemy.
"""
import math

from app.config import settings

SORT_ORDERS: frozenset[str] = frozenset({"asc", "desc"})

# Largest accepted page number; keeps OFFSET inside a 64-bit integer for any
# page size up to MAX_PAGE_SIZE.
MAX_PAGE_NUMBER = 2**31 - 1


def clamp_pagination(page: int, limit: int) -> tuple[int, int]:
    """
    Return a ``(page, limit)`` pair that is always usable.

    - ``page`` below 1 becomes 1, above ``MAX_PAGE_NUMBER`` is capped.
    - ``limit`` of 0 or less becomes ``settings.DEFAULT_PAGE_SIZE``.
    - ``limit`` above ``settings.MAX_PAGE_SIZE`` is capped.
    """
    if page < 1:
        page = 1
    page = min(page, MAX_PAGE_NUMBER)
    if limit <= 0:
        limit = settings.DEFAULT_PAGE_SIZE
    return page, min(limit, settings.MAX_PAGE_SIZE)


def offset_for(page: int, limit: int) -> int:
    return (page - 1) * limit


def total_pages(count: int, limit: int) -> int:
    """``ceil(count / limit)``, or 0 when there is nothing to page through."""
    if count <= 0:
        return 0
    return math.ceil(count / limit)


def normalize_sort_order(sort_order: str | None) -> str:
    """Case-insensitive ``asc``/``desc``; anything else means ``desc``."""
    if sort_order and sort_order.lower() in SORT_ORDERS:
        return sort_order.lower()
    return "desc"
