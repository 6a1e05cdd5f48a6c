"""
Page/limit arithmetic shared by list endpoints.
"""
import math

DEFAULT_PAGE_SIZE = 50
MAX_PAGE_SIZE = 100


def clamp_limit(limit: int) -> int:
    """Bound a requested page size to 1..MAX_PAGE_SIZE."""
    return max(1, min(int(limit or DEFAULT_PAGE_SIZE), MAX_PAGE_SIZE))


def offset_for(page: int, limit: int) -> int:
    """Row offset of a 1-based page."""
    return (max(1, page) - 1) * limit


def total_pages(total: int, limit: int) -> int:
    """Number of pages needed for total rows."""
    return math.ceil(total / limit) if limit else 0
