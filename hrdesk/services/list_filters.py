"""Search, status and category filtering plus ordering for list views.

Items are opaque. Fields are reached through accessors: a key/attribute name
or a callable taking the item. Every unknown filter value fails open.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Callable, Collection, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

ALL = "all"

FieldAccessor = str | Callable[[Any], Any]


def read_field(item: Any, accessor: FieldAccessor) -> Any:
    if callable(accessor):
        return accessor(item)
    if isinstance(item, Mapping):
        return item.get(accessor)
    return getattr(item, accessor, None)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, enum.Enum):
        value = value.value
    return str(value)


@dataclass
class FilterState:
    search_query: str = ""
    status_filter: str = ALL
    categories: dict[str, str] = field(default_factory=dict)


def normalize_status_filter(value: Any, statuses: Collection[str]) -> str:
    """Return ``value`` if it names a known status, otherwise ``"all"``."""
    text = _as_text(value).strip()
    if not text or text == ALL:
        return ALL
    if text in statuses:
        return text
    logger.debug("Unknown status filter %r, showing all statuses", text)
    return ALL


def matches_search(item: Any, query: str, search_fields: Iterable[FieldAccessor]) -> bool:
    needle = query.strip().lower()
    if not needle:
        return True
    return any(needle in _as_text(read_field(item, accessor)).lower() for accessor in search_fields)


def filter_items(
    items: Iterable[T],
    search_query: str | None,
    status_filter: str | None,
    *,
    search_fields: Sequence[FieldAccessor],
    status_field: FieldAccessor = "status",
    statuses: Collection[str] = (),
    categories: Mapping[str, str] | None = None,
    category_fields: Mapping[str, FieldAccessor] | None = None,
) -> list[T]:
    query = (search_query or "").strip()
    status = normalize_status_filter(status_filter, statuses)

    active_categories: dict[str, tuple[FieldAccessor, str]] = {}
    for key, value in (categories or {}).items():
        text = _as_text(value).strip()
        if not text or text == ALL:
            continue
        accessor = (category_fields or {}).get(key)
        if accessor is None:
            logger.debug("Ignoring unregistered category filter %r", key)
            continue
        active_categories[key] = (accessor, text)

    result = []
    for item in items:
        if status != ALL and _as_text(read_field(item, status_field)) != status:
            continue
        if any(
            _as_text(read_field(item, accessor)) != expected
            for accessor, expected in active_categories.values()
        ):
            continue
        if not matches_search(item, query, search_fields):
            continue
        result.append(item)
    return result


def normalize_sort_dir(sort_dir: str | None) -> str:
    value = (sort_dir or "asc").strip().lower()
    return value if value in {"asc", "desc"} else "asc"


def sort_items(
    items: Sequence[T],
    sort_by: str | None,
    sort_dir: str | None,
    sortable: Mapping[str, FieldAccessor],
) -> list[T]:
    """Stable sort on one field; ``None`` values always sort last.

    An unknown or non-sortable ``sort_by`` keeps the source order.
    """
    if not sort_by or sort_by not in sortable:
        return list(items)
    accessor = sortable[sort_by]
    descending = normalize_sort_dir(sort_dir) == "desc"

    present: list[T] = []
    missing: list[T] = []
    for item in items:
        (missing if read_field(item, accessor) is None else present).append(item)

    def _key(item: T) -> Any:
        value = read_field(item, accessor)
        if isinstance(value, enum.Enum):
            value = value.value
        if isinstance(value, str):
            return (1, value.lower())
        return (0, value)

    present.sort(key=_key, reverse=descending)
    return present + missing
