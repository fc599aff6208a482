from __future__ import annotations

import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from threading import Lock
from time import monotonic
from typing import TYPE_CHECKING, Any, Protocol
from uuid import UUID

from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from hrdesk import metrics
from hrdesk.config import settings

if TYPE_CHECKING:
    from hrdesk.services.list_registry import ListViewDefinition

logger = logging.getLogger(__name__)


class FreshnessClass(enum.Enum):
    reference = "reference"
    config = "config"
    live = "live"
    user = "user"


def freshness_ttl(freshness: FreshnessClass) -> float:
    return {
        FreshnessClass.reference: settings.reference_ttl_seconds,
        FreshnessClass.config: settings.config_ttl_seconds,
        FreshnessClass.live: settings.live_ttl_seconds,
        FreshnessClass.user: settings.user_ttl_seconds,
    }[freshness]


@dataclass(frozen=True)
class ListCriteria:
    """What to fetch for a view.

    ``scope`` holds server-side equality narrowing as sorted (field, value)
    pairs so criteria can be used as cache keys.
    """

    view_key: str
    scope: tuple[tuple[str, str], ...] = ()

    @classmethod
    def for_view(cls, view_key: str, scope: dict[str, Any] | None = None) -> ListCriteria:
        pairs = tuple(
            sorted((str(key), str(value)) for key, value in (scope or {}).items() if value)
        )
        return cls(view_key=view_key, scope=pairs)


class QueryLayer(Protocol):
    async def fetch_list(self, criteria: ListCriteria) -> list[Any]:
        ...


def convert_value(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, enum.Enum):
        return value.value
    return value


def convert_row(row: dict[str, Any]) -> dict[str, Any]:
    return {key: convert_value(value) for key, value in row.items()}


class QueryCache:
    """Time-based cache of fetched collections, keyed by criteria.

    Expired entries are purged on every ``set``.
    """

    def __init__(self, clock: Callable[[], float] = monotonic) -> None:
        self._clock = clock
        self._entries: dict[ListCriteria, tuple[float, float, list[Any]]] = {}
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, criteria: ListCriteria, freshness: FreshnessClass) -> list[Any] | None:
        now = self._clock()
        with self._lock:
            entry = self._entries.get(criteria)
            if entry is not None and now - entry[0] < freshness_ttl(freshness):
                metrics.QUERY_CACHE_LOOKUPS.labels(freshness=freshness.value, result="hit").inc()
                return list(entry[2])
            if entry is not None:
                del self._entries[criteria]
        metrics.QUERY_CACHE_LOOKUPS.labels(freshness=freshness.value, result="miss").inc()
        return None

    def set(
        self,
        criteria: ListCriteria,
        rows: list[Any],
        freshness: FreshnessClass = FreshnessClass.live,
    ) -> None:
        now = self._clock()
        with self._lock:
            expired = [
                key
                for key, (stored_at, ttl, _rows) in self._entries.items()
                if now - stored_at >= ttl
            ]
            for key in expired:
                del self._entries[key]
            self._entries[criteria] = (now, freshness_ttl(freshness), list(rows))

    def invalidate(self, view_key: str | None = None) -> None:
        with self._lock:
            if view_key is None:
                self._entries.clear()
                return
            for criteria in [c for c in self._entries if c.view_key == view_key]:
                del self._entries[criteria]


class SqlListQueryLayer:
    """Fetches a registered view's rows through SQLAlchemy.

    The synchronous query runs on a worker thread; results are cached per the
    view's freshness class.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        cache: QueryCache | None = None,
        definitions: Callable[[str], ListViewDefinition] | None = None,
    ) -> None:
        self.session_factory = session_factory
        self.cache = cache if cache is not None else QueryCache()
        if definitions is None:
            from hrdesk.services.list_registry import ListViewRegistry

            definitions = ListViewRegistry.get
        self._definitions = definitions

    def _query(self, definition: ListViewDefinition, criteria: ListCriteria) -> list[dict]:
        db = self.session_factory()
        try:
            query = db.query(definition.model)
            if definition.base_filter is not None:
                query = definition.base_filter(query, definition.model)
            for field_name, value in criteria.scope:
                if field_name not in definition.scope_fields:
                    logger.debug("Ignoring unknown scope field %r for %s", field_name, definition.view_key)
                    continue
                query = query.filter(getattr(definition.model, field_name) == value)
            if definition.default_order is not None:
                query = query.order_by(*definition.default_order(definition.model))
            return [convert_row(definition.row_builder(record)) for record in query.all()]
        finally:
            db.close()

    async def fetch_list(self, criteria: ListCriteria) -> list[dict]:
        definition = self._definitions(criteria.view_key)
        cached = self.cache.get(criteria, definition.freshness)
        if cached is not None:
            return cached
        rows = await run_in_threadpool(self._query, definition, criteria)
        self.cache.set(criteria, rows, definition.freshness)
        logger.debug("Fetched %s rows for %s", len(rows), criteria.view_key)
        return rows
