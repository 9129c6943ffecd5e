"""Pagination envelope shared by the listing endpoints."""

import math
from typing import Any, Dict, List

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def offset_for(page: int, limit: int) -> int:
    return (page - 1) * limit


def paginate(items: List[Any], total: int, page: int, limit: int) -> Dict[str, Any]:
    """Build ``{items, pagination: {total, totalPages, currentPage, limit}}``.

    Example:
        >>> paginate([], 41, 1, 20)["pagination"]
        {'total': 41, 'totalPages': 3, 'currentPage': 1, 'limit': 20}
    """
    return {
        "items": items,
        "pagination": {
            "total": total,
            "totalPages": math.ceil(total / limit) if limit else 0,
            "currentPage": page,
            "limit": limit,
        },
    }
