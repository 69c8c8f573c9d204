"""
Standardized pagination parameters for consistent API pagination.
"""

import math
from typing import Annotated

from fastapi import Query

from models.schemas import PaginationInfo

# Standard pagination for feed endpoints
PaginationSkip = Annotated[int, Query(ge=0, description="Number of records to skip")]
PaginationLimit = Annotated[
    int, Query(ge=1, le=100, description="Maximum number of records to return")
]

# Page-based pagination (comments, liked/saved lists)
PaginationPage = Annotated[int, Query(ge=1, description="Page number (1-based)")]
PaginationLimitComments = Annotated[
    int, Query(ge=1, le=100, description="Maximum number of comments to return")
]


def build_pagination(page: int, limit: int, total: int) -> PaginationInfo:
    """
    Build the pagination block returned with paged lists.

    Args:
        page: Current page (1-based)
        limit: Page size
        total: Total number of matching records

    Returns:
        PaginationInfo with total_pages and has_more filled in
    """
    total_pages = math.ceil(total / limit) if limit else 0
    return PaginationInfo(
        page=page,
        limit=limit,
        total=total,
        total_pages=total_pages,
        has_more=page < total_pages,
    )
