"""Page slicing for in-memory list views.

The functions here are pure: they never raise on malformed page numbers or
page sizes and never mutate the sequence they are given. ``PaginationState``
holds the current page and page size for one view and applies the page clamp
when the collection underneath it shrinks.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 25


def coerce_positive_int(value: Any, default: int) -> int:
    """Coerce ``value`` to an int >= 1.

    Values below 1 clamp to 1; values that are not numbers at all fall back
    to ``default``.
    """
    if isinstance(value, bool):
        return default
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return max(number, 1)


def total_pages_for(count: int, page_size: int) -> int:
    if count <= 0:
        return 0
    return math.ceil(count / max(page_size, 1))


def clamp_page(page: int, total_pages: int) -> int:
    """Return the page to show once ``total_pages`` is known.

    A page past the end of a non-empty collection goes back to 1.
    """
    page = max(page, 1)
    if total_pages > 0 and page > total_pages:
        return 1
    return page


@dataclass(frozen=True)
class PageResult(Generic[T]):
    page_items: tuple[T, ...]
    total_pages: int
    total_count: int
    page: int
    page_size: int

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1

    @property
    def first_index(self) -> int:
        """1-based index of the first item on this page, 0 when empty."""
        if not self.page_items:
            return 0
        return (self.page - 1) * self.page_size + 1

    @property
    def last_index(self) -> int:
        if not self.page_items:
            return 0
        return self.first_index + len(self.page_items) - 1


def paginate(items: Sequence[T], page: Any, page_size: Any) -> PageResult[T]:
    page = coerce_positive_int(page, DEFAULT_PAGE)
    page_size = coerce_positive_int(page_size, DEFAULT_PAGE_SIZE)
    count = len(items)
    start = (page - 1) * page_size
    return PageResult(
        page_items=tuple(items[start : start + page_size]),
        total_pages=total_pages_for(count, page_size),
        total_count=count,
        page=page,
        page_size=page_size,
    )


def page_window(page: int, total_pages: int, width: int = 5) -> list[int]:
    """Page numbers to show in a pager, centred on ``page`` where possible."""
    if total_pages <= 0:
        return []
    width = max(width, 1)
    page = min(max(page, 1), total_pages)
    start = max(page - width // 2, 1)
    end = min(start + width - 1, total_pages)
    start = max(end - width + 1, 1)
    return list(range(start, end + 1))


@dataclass(frozen=True)
class PageReset:
    previous_page: int
    total_pages: int


PageResetListener = Callable[[PageReset], None]


class PaginationState:
    """Current page and page size of one list view."""

    def __init__(
        self,
        entries_per_page: int = DEFAULT_PAGE_SIZE,
        current_page: int = DEFAULT_PAGE,
        max_page_size: int | None = None,
    ) -> None:
        self.max_page_size = max_page_size
        self.entries_per_page = self._bounded_size(entries_per_page)
        self.current_page = coerce_positive_int(current_page, DEFAULT_PAGE)
        self._listeners: list[PageResetListener] = []

    def _bounded_size(self, value: Any) -> int:
        size = coerce_positive_int(value, DEFAULT_PAGE_SIZE)
        if self.max_page_size is not None:
            size = min(size, self.max_page_size)
        return size

    def on_page_reset(self, listener: PageResetListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    def set_page(self, page: Any) -> None:
        self.current_page = coerce_positive_int(page, DEFAULT_PAGE)

    def set_entries_per_page(self, entries_per_page: Any) -> None:
        self.entries_per_page = self._bounded_size(entries_per_page)
        self.current_page = DEFAULT_PAGE

    def reset_to_first_page(self) -> None:
        self.current_page = DEFAULT_PAGE

    def apply(self, items: Sequence[T]) -> PageResult[T]:
        total_pages = total_pages_for(len(items), self.entries_per_page)
        corrected = clamp_page(self.current_page, total_pages)
        if corrected != self.current_page:
            event = PageReset(previous_page=self.current_page, total_pages=total_pages)
            logger.debug(
                "Page %s out of range (%s pages), resetting to %s",
                self.current_page,
                total_pages,
                corrected,
            )
            self.current_page = corrected
            for listener in list(self._listeners):
                listener(event)
        return paginate(items, self.current_page, self.entries_per_page)
