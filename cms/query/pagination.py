"""
Pagination arithmetic and the uniform paginated response shape.

``calculate_pagination`` is total: non-positive pages become page 1 and
non-positive sizes fall back to ``DEFAULT_PAGE_SIZE``.  Pages past the end
are legal and simply produce an empty slice.
"""
import math
from dataclasses import dataclass
from typing import Generic, Sequence, TypeVar

from pydantic import BaseModel

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 20


@dataclass(frozen=True)
class PaginationMeta:
    offset: int
    limit: int
    page: int
    page_size: int
    total_pages: int


def calculate_pagination(page: int, page_size: int, total_count: int) -> PaginationMeta:
    """
    Return offset/limit and page count for one page of *total_count* rows.

    >>> calculate_pagination(2, 10, 45)
    PaginationMeta(offset=10, limit=10, page=2, page_size=10, total_pages=5)
    """
    page = max(1, page)
    page_size = page_size if page_size >= 1 else DEFAULT_PAGE_SIZE
    total_pages = math.ceil(total_count / page_size) if total_count > 0 else 0
    return PaginationMeta(
        offset=(page - 1) * page_size,
        limit=page_size,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
    )


class PaginatedResult(BaseModel, Generic[T]):
    data: list[T]
    total: int
    page: int
    page_size: int
    total_pages: int


def paginate(data: Sequence[T], page: int, page_size: int, total_count: int) -> PaginatedResult[T]:
    """
    Wrap one fetched page in a ``PaginatedResult``.

    *page* and *page_size* must be the values that produced the offset and
    limit used to fetch *data*; a mismatch is not detected here.
    """
    meta = calculate_pagination(page, page_size, total_count)
    return PaginatedResult(
        data=list(data),
        total=total_count,
        page=meta.page,
        page_size=meta.page_size,
        total_pages=meta.total_pages,
    )
