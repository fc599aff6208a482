"""User preference storage for list views.

``PreferenceStore`` is the narrow async interface list views depend on. The
SQL implementation keeps one ``user_preferences`` row per user; the
in-memory one is used by tests and when no database is configured.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from typing import Protocol

from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from hrdesk.models.user_preference import UserPreference

logger = logging.getLogger(__name__)


class PreferenceStore(Protocol):
    async def load_column_preferences(self, user_id: str, view_key: str) -> list[str] | None:
        ...

    async def save_column_preferences(
        self, user_id: str, view_key: str, columns: Sequence[str] | None
    ) -> None:
        ...


class InMemoryPreferenceStore:
    def __init__(self) -> None:
        self.columns: dict[tuple[str, str], list[str]] = {}
        self.items_per_page: dict[str, int] = {}

    async def load_column_preferences(self, user_id: str, view_key: str) -> list[str] | None:
        stored = self.columns.get((user_id, view_key))
        return list(stored) if stored is not None else None

    async def save_column_preferences(
        self, user_id: str, view_key: str, columns: Sequence[str] | None
    ) -> None:
        if columns is None:
            self.columns.pop((user_id, view_key), None)
            return
        self.columns[(user_id, view_key)] = list(columns)

    async def load_items_per_page(self, user_id: str) -> int | None:
        return self.items_per_page.get(user_id)

    async def save_items_per_page(self, user_id: str, value: int) -> None:
        self.items_per_page[user_id] = value


def _get_preference(db: Session, user_id: str) -> UserPreference | None:
    return db.query(UserPreference).filter(UserPreference.user_id == user_id).first()


def _get_or_create_preference(db: Session, user_id: str) -> UserPreference:
    preference = _get_preference(db, user_id)
    if preference is None:
        preference = UserPreference(user_id=user_id, table_columns={})
        db.add(preference)
    return preference


class SqlPreferenceStore:
    """Preference store backed by the ``user_preferences`` table.

    Takes a session factory rather than a session: each call opens and closes
    its own session on a worker thread.
    """

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self.session_factory = session_factory

    def _load_columns(self, user_id: str, view_key: str) -> list[str] | None:
        db = self.session_factory()
        try:
            preference = _get_preference(db, user_id)
            if preference is None:
                return None
            stored = (preference.table_columns or {}).get(view_key)
            if stored is None:
                return None
            if not isinstance(stored, list):
                logger.warning(
                    "Discarding malformed column preference for %s/%s", user_id, view_key
                )
                return None
            return list(stored)
        finally:
            db.close()

    def _save_columns(
        self, user_id: str, view_key: str, columns: Sequence[str] | None
    ) -> None:
        db = self.session_factory()
        try:
            preference = _get_or_create_preference(db, user_id)
            if columns is None:
                preference.table_columns.pop(view_key, None)
            else:
                preference.table_columns[view_key] = list(columns)
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def _load_items_per_page(self, user_id: str) -> int | None:
        db = self.session_factory()
        try:
            preference = _get_preference(db, user_id)
            if preference is None or not preference.items_per_page:
                return None
            if preference.items_per_page < 1:
                return None
            return preference.items_per_page
        finally:
            db.close()

    def _save_items_per_page(self, user_id: str, value: int) -> None:
        db = self.session_factory()
        try:
            preference = _get_or_create_preference(db, user_id)
            preference.items_per_page = value
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    async def load_column_preferences(self, user_id: str, view_key: str) -> list[str] | None:
        return await run_in_threadpool(self._load_columns, user_id, view_key)

    async def save_column_preferences(
        self, user_id: str, view_key: str, columns: Sequence[str] | None
    ) -> None:
        await run_in_threadpool(self._save_columns, user_id, view_key, columns)

    async def load_items_per_page(self, user_id: str) -> int | None:
        return await run_in_threadpool(self._load_items_per_page, user_id)

    async def save_items_per_page(self, user_id: str, value: int) -> None:
        await run_in_threadpool(self._save_items_per_page, user_id, value)
