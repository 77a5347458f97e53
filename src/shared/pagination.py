import math
from collections.abc import Sequence
from typing import Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


def total_pages(total: int, page_size: int) -> int:
    if page_size <= 0:
        raise ValueError("page_size must be positive")
    return math.ceil(total / page_size) if total > 0 else 0


def page_offset(page: int, page_size: int) -> int:
    return (max(page, 1) - 1) * page_size


class Page(BaseModel, Generic[T]):
    items: list[T]
    total: int
    page: int
    page_size: int
    total_pages: int
    has_next: bool
    has_prev: bool

    @classmethod
    def build(
        cls, items: Sequence[T], total: int, page: int, page_size: int
    ) -> "Page[T]":
        """Wraps an already-sliced window of results."""
        page = max(page, 1)
        pages = total_pages(total, page_size)
        return cls(
            items=list(items),
            total=total,
            page=page,
            page_size=page_size,
            total_pages=pages,
            has_next=page < pages,
            has_prev=page > 1,
        )


def paginate(items: Sequence[T], page: int, page_size: int) -> Page[T]:
    """Slices a fully-loaded collection into one page."""
    start = page_offset(page, page_size)
    return Page.build(items[start : start + page_size], len(items), page, page_size)
