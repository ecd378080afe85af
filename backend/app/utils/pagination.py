"""
Pagination Utility Module

Provides standardized pagination helpers for list endpoints.
"""
from typing import Optional
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select

MAX_PAGE_SIZE = 100


async def paginate(
    db: AsyncSession,
    query: Select,
    page: int = 1,
    page_size: int = 20,
    count_query: Optional[Select] = None
) -> dict:
    """
    Apply pagination to a SQLAlchemy query.

    Args:
        db: Database session
        query: Base SQLAlchemy query (already filtered and ordered)
        page: Page number (1-indexed)
        page_size: Items per page
        count_query: Optional custom count query

    Returns:
        Dictionary with items, total, page, page_size, total_pages, has_next, has_previous
    """
    # Ensure valid page and page_size
    page = max(1, page)
    page_size = max(1, min(MAX_PAGE_SIZE, page_size))

    offset = (page - 1) * page_size

    if count_query is not None:
        count_result = await db.execute(count_query)
    else:
        count_stmt = select(func.count()).select_from(query.order_by(None).subquery())
        count_result = await db.execute(count_stmt)

    total = count_result.scalar() or 0
    total_pages = (total + page_size - 1) // page_size if total > 0 else 1

    result = await db.execute(query.offset(offset).limit(page_size))
    items = result.scalars().all()

    return {
        "items": items,
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": total_pages,
        "has_next": page < total_pages,
        "has_previous": page > 1
    }
