"""
Page/limit pagination shared by list endpoints.

List responses carry ``count``, ``total``, ``totalPages``, ``currentPage`` and
``pagination: {next?, prev?}`` so the client can render pagers directly.
"""

import math
from typing import Annotated, Any

from fastapi import Query

PageParam = Annotated[int, Query(ge=1, description="1-based page number")]
LimitParam = Annotated[
    int, Query(ge=1, le=100, description="Maximum number of records to return")
]


def offset_for(page: int, limit: int) -> int:
    return (page - 1) * limit


def page_links(page: int, limit: int, total: int) -> dict[str, dict[str, int]]:
    """Links to the neighbouring pages that exist."""
    links: dict[str, dict[str, int]] = {}
    if page * limit < total:
        links["next"] = {"page": page + 1, "limit": limit}
    if page > 1:
        links["prev"] = {"page": page - 1, "limit": limit}
    return links


def paginated(items: list[Any], page: int, limit: int, total: int) -> dict[str, Any]:
    """
    Build the standard paginated envelope.

    Args:
        items: Records on the current page.
        page: Current page (1-based).
        limit: Page size.
        total: Number of records across all pages.
    """
    return {
        "success": True,
        "count": len(items),
        "total": total,
        "total_pages": math.ceil(total / limit) if limit else 0,
        "current_page": page,
        "pagination": page_links(page, limit, total),
        "data": items,
    }
