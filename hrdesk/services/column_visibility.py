from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from hrdesk import metrics

if TYPE_CHECKING:
    from hrdesk.services.preferences import PreferenceStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ColumnDefinition:
    key: str
    label: str
    required: bool = False
    hidden_by_default: bool = False
    sortable: bool = True


@dataclass(frozen=True)
class ResolvedColumn:
    key: str
    label: str
    required: bool
    sortable: bool
    is_visible: bool
    display_order: int


class ColumnCatalog:
    """Fixed, canonically ordered column definitions of one list view."""

    def __init__(self, columns: Iterable[ColumnDefinition]) -> None:
        self.columns: tuple[ColumnDefinition, ...] = tuple(columns)
        seen: set[str] = set()
        for column in self.columns:
            if not column.key:
                raise ValueError("Column key is required")
            if column.key in seen:
                raise ValueError(f"Duplicate column in catalog: {column.key}")
            seen.add(column.key)
        self._by_key = {column.key: column for column in self.columns}
        self._order = {column.key: index for index, column in enumerate(self.columns)}

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    def __iter__(self):
        return iter(self.columns)

    def __len__(self) -> int:
        return len(self.columns)

    def keys(self) -> tuple[str, ...]:
        return tuple(column.key for column in self.columns)

    def get(self, key: str) -> ColumnDefinition | None:
        return self._by_key.get(key)

    def is_required(self, key: str) -> bool:
        column = self._by_key.get(key)
        return bool(column and column.required)

    def required_keys(self) -> tuple[str, ...]:
        return tuple(column.key for column in self.columns if column.required)

    def sortable_keys(self) -> tuple[str, ...]:
        return tuple(column.key for column in self.columns if column.sortable)

    def canonical(self, keys: Iterable[str]) -> tuple[str, ...]:
        wanted = set(keys)
        return tuple(column.key for column in self.columns if column.key in wanted)

    def resolve(self, visible: Sequence[str]) -> list[ResolvedColumn]:
        shown = set(visible)
        return [
            ResolvedColumn(
                key=column.key,
                label=column.label,
                required=column.required,
                sortable=column.sortable,
                is_visible=column.key in shown,
                display_order=self._order[column.key],
            )
            for column in self.columns
        ]


def default_columns(catalog: ColumnCatalog) -> tuple[str, ...]:
    return tuple(
        column.key
        for column in catalog
        if column.required or not column.hidden_by_default
    )


def normalize_columns(stored: Any, catalog: ColumnCatalog) -> tuple[str, ...]:
    """Turn a persisted column list into a valid visible set.

    Missing or malformed preferences fall back to the catalog defaults.
    Unknown keys are dropped and required columns are always present.
    """
    if not isinstance(stored, (list, tuple)):
        return default_columns(catalog)
    keys = {key for key in stored if isinstance(key, str) and key in catalog}
    keys.update(catalog.required_keys())
    return catalog.canonical(keys)


def toggle_column(
    current: Sequence[str],
    column_key: str,
    show: bool,
    catalog: ColumnCatalog,
) -> tuple[str, ...]:
    if column_key not in catalog:
        logger.debug("Ignoring toggle of unknown column %r", column_key)
        return tuple(current)
    if show:
        return catalog.canonical([*current, column_key])
    if catalog.is_required(column_key):
        return tuple(current)
    return tuple(key for key in current if key != column_key)


class ColumnVisibilityState:
    """Visible columns of one view plus the load/save status of the preference.

    Toggles update the visible set immediately and then hand it to the
    preference store. Saves are numbered: a save that settles after a newer
    one was confirmed is ignored, and the visible set is only reconciled with
    the last confirmed set once no newer save is in flight. With
    ``rollback_on_failure`` a failed save restores the last set the store
    accepted.
    """

    def __init__(
        self,
        view_key: str,
        catalog: ColumnCatalog,
        *,
        rollback_on_failure: bool = True,
    ) -> None:
        self.view_key = view_key
        self.catalog = catalog
        self.rollback_on_failure = rollback_on_failure
        self.visible: tuple[str, ...] = default_columns(catalog)
        self._confirmed: tuple[str, ...] = self.visible
        self._confirmed_seq = 0
        self._save_seq = 0
        self._pending: set[int] = set()
        self.is_loading = True
        self.error: str | None = None

    @property
    def is_saving(self) -> bool:
        return bool(self._pending)

    def resolved(self) -> list[ResolvedColumn]:
        return self.catalog.resolve(self.visible)

    async def hydrate(self, store: PreferenceStore, user_id: str) -> tuple[str, ...]:
        self.is_loading = True
        try:
            stored = await store.load_column_preferences(user_id, self.view_key)
        except Exception as exc:
            logger.warning(
                "Loading column preferences failed for %s/%s: %s",
                user_id,
                self.view_key,
                exc,
            )
            self.error = str(exc) or exc.__class__.__name__
            stored = None
        else:
            self.error = None
        self.visible = normalize_columns(stored, self.catalog)
        self._confirmed = self.visible
        self.is_loading = False
        return self.visible

    async def _persist(
        self,
        store: PreferenceStore,
        user_id: str,
        updated: tuple[str, ...],
        stored: list[str] | None,
    ) -> None:
        self._save_seq += 1
        seq = self._save_seq
        self._pending.add(seq)
        self.visible = updated
        try:
            await store.save_column_preferences(user_id, self.view_key, stored)
        except Exception as exc:
            metrics.PREFERENCE_SAVE_FAILURES.labels(view=self.view_key).inc()
            logger.warning(
                "Saving column preferences failed for %s/%s: %s",
                user_id,
                self.view_key,
                exc,
            )
            if seq < self._confirmed_seq:
                logger.debug(
                    "Ignoring failed save %s for %s, superseded by %s",
                    seq,
                    self.view_key,
                    self._confirmed_seq,
                )
                return
            self.error = str(exc) or exc.__class__.__name__
            if self.rollback_on_failure and not self._newer_pending(seq):
                self.visible = self._confirmed
        else:
            if seq > self._confirmed_seq:
                self._confirmed = updated
                self._confirmed_seq = seq
                self.error = None
            if not self._newer_pending(seq):
                self.visible = self._confirmed
        finally:
            self._pending.discard(seq)

    def _newer_pending(self, seq: int) -> bool:
        return any(other > seq for other in self._pending)

    async def toggle(
        self,
        store: PreferenceStore,
        user_id: str,
        column_key: str,
        show: bool,
    ) -> bool:
        """Apply a toggle and persist it. Returns False when nothing changed."""
        updated = toggle_column(self.visible, column_key, show, self.catalog)
        if updated == self.visible:
            return False
        await self._persist(store, user_id, updated, list(updated))
        return True

    async def reset(self, store: PreferenceStore, user_id: str) -> tuple[str, ...]:
        await self._persist(store, user_id, default_columns(self.catalog), None)
        return self.visible
