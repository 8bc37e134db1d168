"""
Pagination helpers shared by list endpoints.

List endpoints answer ``{"items": [...], "pagination": {...}}``.
"""

from typing import Any, Generic, List, Optional, Tuple, TypeVar

from fastapi import Query
from pydantic import BaseModel, Field
from sqlalchemy.orm import Query as SQLQuery

from .config import get_settings

T = TypeVar("T")


class PaginationMeta(BaseModel):
    """Standard pagination metadata"""
    page: int = Field(description="Current page number (1-indexed)")
    limit: int = Field(description="Number of items per page")
    total: int = Field(description="Total number of items")
    pages: int = Field(description="Total number of pages")
    has_next: bool = Field(description="Whether there is a next page")
    has_prev: bool = Field(description="Whether there is a previous page")


class Page(BaseModel, Generic[T]):
    items: List[T]
    pagination: PaginationMeta


class PaginationParams:
    """Standard pagination parameters for API endpoints"""

    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number (1-indexed)"),
        limit: Optional[int] = Query(None, ge=1, description="Items per page"),
    ):
        settings = get_settings()
        self.page = page
        self.limit = min(limit or settings.default_page_size, settings.max_page_size)
        self.skip = (page - 1) * self.limit

    def paginate_query(self, query: SQLQuery) -> Tuple[List[Any], int]:
        """Apply pagination to SQLAlchemy query and return items and total count"""
        total = query.order_by(None).count()
        items = query.offset(self.skip).limit(self.limit).all()
        return items, total

    def create_pagination_meta(self, total: int) -> PaginationMeta:
        pages = (total + self.limit - 1) // self.limit if self.limit > 0 else 0
        return PaginationMeta(
            page=self.page,
            limit=self.limit,
            total=total,
            pages=pages,
            has_next=self.page < pages,
            has_prev=self.page > 1,
        )

    def page_of(self, items: List[Any], total: int) -> dict:
        return {"items": items, "pagination": self.create_pagination_meta(total)}
