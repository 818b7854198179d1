"""Fixed-size pagination helpers for list endpoints."""

import math
from dataclasses import dataclass
from typing import Generic, List, TypeVar

PAGE_SIZE = 20

T = TypeVar("T")


def page_offset(page: int, page_size: int = PAGE_SIZE) -> int:
    """Return the number of rows to skip for a 1-indexed page."""
    return (page - 1) * page_size


@dataclass
class Page(Generic[T]):
    """One page of results plus the totals needed to build ``meta``.

    Attributes:
        data: Rows on this page.
        total_items: Number of rows matching the query across all pages.
        current_page: 1-indexed page number that was requested.
        page_size: Maximum number of rows per page.
    """

    data: List[T]
    total_items: int
    current_page: int
    page_size: int = PAGE_SIZE

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_items / self.page_size)

    def meta(self) -> dict:
        return {
            "totalItems": self.total_items,
            "itemCount": len(self.data),
            "itemsPerPage": self.page_size,
            "totalPages": self.total_pages,
            "currentPage": self.current_page,
        }
