"""Stateful list view: filter, sort, paginate and project one collection.

A ``ListView`` owns the filter, sort, page and column state of a single view
instance. Every change re-runs the pipeline and publishes a fresh
``ListViewSnapshot``. Remote data and user preferences come from injected
collaborators; their failures are recorded on the snapshot instead of being
raised.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from hrdesk import metrics
from hrdesk.config import settings
from hrdesk.services.column_visibility import ColumnVisibilityState, ResolvedColumn
from hrdesk.services.list_filters import (
    ALL,
    FilterState,
    filter_items,
    normalize_sort_dir,
    normalize_status_filter,
    sort_items,
)
from hrdesk.services.list_registry import ListViewDefinition, ListViewRegistry
from hrdesk.services.pagination import PageReset, PaginationState, page_window
from hrdesk.services.preferences import PreferenceStore
from hrdesk.services.query_layer import ListCriteria, QueryLayer

logger = logging.getLogger(__name__)


class FetchStatus(enum.Enum):
    pending = "pending"
    success = "success"
    error = "error"


class ListEventKind(enum.Enum):
    search_changed = "search_changed"
    status_changed = "status_changed"
    category_changed = "category_changed"
    sort_changed = "sort_changed"
    page_changed = "page_changed"
    page_size_changed = "page_size_changed"
    column_toggled = "column_toggled"


@dataclass(frozen=True)
class ListViewEvent:
    kind: ListEventKind
    value: Any = None
    key: str | None = None
    show: bool = True


@dataclass(frozen=True)
class ListViewSnapshot:
    view_key: str
    page_items: tuple[Any, ...]
    total_pages: int
    total_count: int
    current_page: int
    entries_per_page: int
    page_numbers: tuple[int, ...]
    visible_columns: tuple[str, ...]
    columns: tuple[ResolvedColumn, ...]
    search_query: str
    status_filter: str
    categories: dict[str, str] = field(default_factory=dict)
    sort_by: str | None = None
    sort_dir: str = "asc"
    fetch_status: FetchStatus = FetchStatus.pending
    fetch_error: str | None = None
    columns_loading: bool = True
    columns_saving: bool = False
    column_error: str | None = None


Subscriber = Callable[[str, Any], None]


class ListView:
    def __init__(
        self,
        definition: ListViewDefinition,
        *,
        query_layer: QueryLayer,
        preference_store: PreferenceStore,
        user_id: str,
        page_size: int | None = None,
        scope: dict[str, Any] | None = None,
        rollback_on_failure: bool | None = None,
    ) -> None:
        self.definition = definition
        self.query_layer = query_layer
        self.preference_store = preference_store
        self.user_id = user_id
        self.criteria = ListCriteria.for_view(definition.view_key, scope)

        self.filters = FilterState()
        self.sort_by, self.sort_dir = definition.default_sort
        self._explicit_page_size = page_size is not None
        self.pagination = PaginationState(
            entries_per_page=page_size if page_size is not None else definition.default_page_size,
            max_page_size=settings.max_page_size,
        )
        self.pagination.on_page_reset(self._on_page_reset)
        if rollback_on_failure is None:
            rollback_on_failure = settings.preference_save_rollback
        self.columns = ColumnVisibilityState(
            definition.view_key,
            definition.catalog,
            rollback_on_failure=rollback_on_failure,
        )

        self.items: list[Any] = []
        self.fetch_status = FetchStatus.pending
        self.fetch_error: str | None = None
        self._fetch_seq = 0
        self._subscribers: list[Subscriber] = []
        self._snapshot = self.recompute()

    @property
    def view_key(self) -> str:
        return self.definition.view_key

    @property
    def snapshot(self) -> ListViewSnapshot:
        return self._snapshot

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def _unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return _unsubscribe

    def _publish(self, kind: str, payload: Any) -> None:
        for callback in list(self._subscribers):
            callback(kind, payload)

    def _on_page_reset(self, event: PageReset) -> None:
        metrics.PAGE_RESETS.labels(view=self.view_key).inc()
        self._publish("page_reset", event)

    def recompute(self) -> ListViewSnapshot:
        definition = self.definition
        filtered = filter_items(
            self.items,
            self.filters.search_query,
            self.filters.status_filter,
            search_fields=definition.search_fields,
            status_field=definition.status_field,
            statuses=definition.statuses,
            categories=self.filters.categories,
            category_fields=definition.category_fields,
        )
        ordered = sort_items(
            filtered, self.sort_by, self.sort_dir, definition.sortable_fields()
        )
        page = self.pagination.apply(ordered)
        snapshot = ListViewSnapshot(
            view_key=definition.view_key,
            page_items=page.page_items,
            total_pages=page.total_pages,
            total_count=page.total_count,
            current_page=page.page,
            entries_per_page=page.page_size,
            page_numbers=tuple(page_window(page.page, page.total_pages)),
            visible_columns=self.columns.visible,
            columns=tuple(self.columns.resolved()),
            search_query=self.filters.search_query,
            status_filter=self.filters.status_filter,
            categories=dict(self.filters.categories),
            sort_by=self.sort_by,
            sort_dir=self.sort_dir,
            fetch_status=self.fetch_status,
            fetch_error=self.fetch_error,
            columns_loading=self.columns.is_loading,
            columns_saving=self.columns.is_saving,
            column_error=self.columns.error,
        )
        self._snapshot = snapshot
        self._publish("snapshot", snapshot)
        return snapshot

    # Collaborator I/O

    async def load(self) -> ListViewSnapshot:
        """Hydrate column and page-size preferences, then fetch the collection."""
        await asyncio.gather(self._hydrate_preferences(), self.refresh())
        return self.recompute()

    async def _hydrate_preferences(self) -> None:
        await self.columns.hydrate(self.preference_store, self.user_id)
        loader = getattr(self.preference_store, "load_items_per_page", None)
        if self._explicit_page_size or loader is None:
            return
        try:
            preferred = await loader(self.user_id)
        except Exception as exc:
            logger.warning("Loading page size preference failed for %s: %s", self.user_id, exc)
            return
        if preferred and preferred != self.pagination.entries_per_page:
            self.pagination.set_entries_per_page(preferred)

    async def refresh(self) -> ListViewSnapshot:
        """Fetch the collection again.

        Only the most recently issued fetch may commit; results and errors of
        older fetches are dropped.
        """
        self._fetch_seq += 1
        seq = self._fetch_seq
        self.fetch_status = FetchStatus.pending
        try:
            items = await self.query_layer.fetch_list(self.criteria)
        except Exception as exc:
            if seq != self._fetch_seq:
                self._discard_stale(seq)
                return self._snapshot
            metrics.FETCH_FAILURES.labels(view=self.view_key).inc()
            logger.warning("Fetching %s failed: %s", self.view_key, exc)
            self.fetch_status = FetchStatus.error
            self.fetch_error = str(exc) or exc.__class__.__name__
            return self.recompute()
        if seq != self._fetch_seq:
            self._discard_stale(seq)
            return self._snapshot
        self.items = list(items)
        self.fetch_status = FetchStatus.success
        self.fetch_error = None
        return self.recompute()

    def _discard_stale(self, seq: int) -> None:
        metrics.SUPERSEDED_FETCHES.labels(view=self.view_key).inc()
        logger.debug(
            "Discarding fetch %s for %s, superseded by %s", seq, self.view_key, self._fetch_seq
        )

    async def set_scope(self, scope: dict[str, Any] | None) -> ListViewSnapshot:
        self.criteria = ListCriteria.for_view(self.view_key, scope)
        return await self.refresh()

    def replace_items(self, items: Sequence[Any]) -> ListViewSnapshot:
        self.items = list(items)
        return self.recompute()

    # User events

    def search_changed(self, query: str | None) -> ListViewSnapshot:
        self.filters.search_query = (query or "").strip()
        self.pagination.reset_to_first_page()
        return self.recompute()

    def status_changed(self, status: str | None) -> ListViewSnapshot:
        self.filters.status_filter = normalize_status_filter(status, self.definition.statuses)
        self.pagination.reset_to_first_page()
        return self.recompute()

    def category_changed(self, key: str, value: str | None) -> ListViewSnapshot:
        if key not in self.definition.category_fields:
            logger.debug("Ignoring unknown category %r for %s", key, self.view_key)
            return self._snapshot
        if not value or value == ALL:
            self.filters.categories.pop(key, None)
        else:
            self.filters.categories[key] = str(value)
        self.pagination.reset_to_first_page()
        return self.recompute()

    def sort_changed(self, sort_by: str | None, sort_dir: str | None = None) -> ListViewSnapshot:
        if sort_by and sort_by not in self.definition.sortable_fields():
            logger.debug("Ignoring unknown sort field %r for %s", sort_by, self.view_key)
            sort_by = self.definition.default_sort[0]
        self.sort_by = sort_by
        self.sort_dir = normalize_sort_dir(sort_dir)
        self.pagination.reset_to_first_page()
        return self.recompute()

    def page_changed(self, page: Any) -> ListViewSnapshot:
        self.pagination.set_page(page)
        return self.recompute()

    def page_size_changed(self, page_size: Any) -> ListViewSnapshot:
        self.pagination.set_entries_per_page(page_size)
        return self.recompute()

    async def column_toggled(self, column_key: str, show: bool) -> ListViewSnapshot:
        await self.columns.toggle(self.preference_store, self.user_id, column_key, show)
        return self.recompute()

    async def reset_columns(self) -> ListViewSnapshot:
        await self.columns.reset(self.preference_store, self.user_id)
        return self.recompute()

    async def dispatch(self, event: ListViewEvent) -> ListViewSnapshot:
        kind = event.kind
        if kind is ListEventKind.search_changed:
            return self.search_changed(event.value)
        if kind is ListEventKind.status_changed:
            return self.status_changed(event.value)
        if kind is ListEventKind.category_changed:
            return self.category_changed(event.key or "", event.value)
        if kind is ListEventKind.sort_changed:
            return self.sort_changed(event.key, event.value)
        if kind is ListEventKind.page_changed:
            return self.page_changed(event.value)
        if kind is ListEventKind.page_size_changed:
            return self.page_size_changed(event.value)
        if kind is ListEventKind.column_toggled:
            return await self.column_toggled(event.key or "", event.show)
        raise ValueError(f"Unsupported list view event: {kind}")


def build_list_view(
    view_key: str,
    user_id: str,
    *,
    query_layer: QueryLayer,
    preference_store: PreferenceStore,
    **options: Any,
) -> ListView:
    return ListView(
        ListViewRegistry.get(view_key),
        query_layer=query_layer,
        preference_store=preference_store,
        user_id=user_id,
        **options,
    )
