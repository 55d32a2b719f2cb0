# ABOUTME: Slices sorted views into fixed-size pages for list and gallery screens.
# ABOUTME: Clamps requested pages so callers never land on an empty page.

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, List, Sequence, TypeVar

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 6


@dataclass(frozen=True)
class Page(Generic[T]):
    items: List[T]
    page: int
    page_size: int
    total_items: int
    total_pages: int

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages


def total_pages(total_items: int, page_size: int) -> int:
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")
    return max(1, math.ceil(total_items / page_size))


def clamp_page(page: int, total_items: int, page_size: int) -> int:
    """Return the closest valid 1-based page for the given item count."""

    return min(max(1, page), total_pages(total_items, page_size))


def paginate(items: Sequence[T], page: int = 1, page_size: int = DEFAULT_PAGE_SIZE) -> Page[T]:
    current = clamp_page(page, len(items), page_size)
    start = (current - 1) * page_size
    return Page(
        items=list(items[start : start + page_size]),
        page=current,
        page_size=page_size,
        total_items=len(items),
        total_pages=total_pages(len(items), page_size),
    )
