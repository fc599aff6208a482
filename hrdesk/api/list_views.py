from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from hrdesk.api.deps import get_current_user_id, get_preference_store, get_query_layer
from hrdesk.config import settings
from hrdesk.schemas.list_view import (
    ColumnToggleRequest,
    ListColumnAvailable,
    ListColumnsResponse,
    ListViewDataResponse,
    resolved_column,
)
from hrdesk.services.list_registry import ListViewDefinition, ListViewRegistry
from hrdesk.services.list_view import ListView
from hrdesk.services.pagination import coerce_positive_int
from hrdesk.services.preferences import PreferenceStore
from hrdesk.services.query_layer import QueryLayer

router = APIRouter(prefix="/list-views", tags=["list-views"])

_RESERVED_PARAMS = {"q", "status", "page", "page_size", "sort_by", "sort_dir"}


class PageSizeRequest(BaseModel):
    page_size: int = Field(ge=1)


def _definition(view_key: str) -> ListViewDefinition:
    if not ListViewRegistry.exists(view_key):
        raise HTTPException(status_code=404, detail="Unregistered list view")
    return ListViewRegistry.get(view_key)


def _available_columns(definition: ListViewDefinition) -> list[ListColumnAvailable]:
    return [
        ListColumnAvailable(
            key=column.key,
            label=column.label,
            required=column.required,
            sortable=column.sortable,
            hidden_by_default=column.hidden_by_default,
        )
        for column in definition.catalog
    ]


def _columns_response(view: ListView, changed: bool = False) -> ListColumnsResponse:
    return ListColumnsResponse(
        view_key=view.view_key,
        available_columns=_available_columns(view.definition),
        columns=[resolved_column(column) for column in view.columns.resolved()],
        visible_columns=list(view.columns.visible),
        changed=changed,
        error=view.columns.error,
    )


def _page_size_options(definition: ListViewDefinition) -> list[int]:
    options = {size for size in settings.page_size_options if size <= settings.max_page_size}
    options.add(definition.default_page_size)
    return sorted(options)


@router.get("/{view_key}/columns", response_model=ListColumnsResponse)
async def get_list_columns(
    view_key: str,
    user_id: str = Depends(get_current_user_id),
    query_layer: QueryLayer = Depends(get_query_layer),
    preference_store: PreferenceStore = Depends(get_preference_store),
):
    view = ListView(
        _definition(view_key),
        query_layer=query_layer,
        preference_store=preference_store,
        user_id=user_id,
    )
    await view.columns.hydrate(preference_store, user_id)
    return _columns_response(view)


@router.post("/{view_key}/columns/toggle", response_model=ListColumnsResponse)
async def toggle_list_column(
    view_key: str,
    payload: ColumnToggleRequest,
    user_id: str = Depends(get_current_user_id),
    query_layer: QueryLayer = Depends(get_query_layer),
    preference_store: PreferenceStore = Depends(get_preference_store),
):
    definition = _definition(view_key)
    if payload.column_key not in definition.catalog:
        raise HTTPException(status_code=400, detail=f"Invalid column_key: {payload.column_key}")

    view = ListView(
        definition,
        query_layer=query_layer,
        preference_store=preference_store,
        user_id=user_id,
    )
    await view.columns.hydrate(preference_store, user_id)
    changed = await view.columns.toggle(
        preference_store, user_id, payload.column_key, payload.show
    )
    return _columns_response(view, changed=changed)


@router.post("/{view_key}/columns/reset", response_model=ListColumnsResponse)
async def reset_list_columns(
    view_key: str,
    user_id: str = Depends(get_current_user_id),
    query_layer: QueryLayer = Depends(get_query_layer),
    preference_store: PreferenceStore = Depends(get_preference_store),
):
    view = ListView(
        _definition(view_key),
        query_layer=query_layer,
        preference_store=preference_store,
        user_id=user_id,
    )
    await view.columns.hydrate(preference_store, user_id)
    await view.columns.reset(preference_store, user_id)
    return _columns_response(view, changed=True)


@router.post("/{view_key}/page-size", status_code=204)
async def save_page_size(
    view_key: str,
    payload: PageSizeRequest,
    user_id: str = Depends(get_current_user_id),
    preference_store: PreferenceStore = Depends(get_preference_store),
):
    _definition(view_key)
    saver = getattr(preference_store, "save_items_per_page", None)
    if saver is None:
        raise HTTPException(status_code=400, detail="Page size preferences are not supported")
    await saver(user_id, min(payload.page_size, settings.max_page_size))


@router.get("/{view_key}/data", response_model=ListViewDataResponse)
async def get_list_data(
    view_key: str,
    request: Request,
    q: str | None = None,
    status: str | None = None,
    page: str | None = None,
    page_size: str | None = None,
    sort_by: str | None = None,
    sort_dir: str | None = None,
    user_id: str = Depends(get_current_user_id),
    query_layer: QueryLayer = Depends(get_query_layer),
    preference_store: PreferenceStore = Depends(get_preference_store),
):
    definition = _definition(view_key)
    view = ListView(
        definition,
        query_layer=query_layer,
        preference_store=preference_store,
        user_id=user_id,
        page_size=(
            coerce_positive_int(page_size, definition.default_page_size)
            if page_size is not None
            else None
        ),
    )
    await view.load()

    if q:
        view.search_changed(q)
    if status:
        view.status_changed(status)
    for key, value in request.query_params.items():
        if key in _RESERVED_PARAMS or key not in definition.category_fields:
            continue
        view.category_changed(key, value)
    if sort_by or sort_dir:
        view.sort_changed(sort_by or definition.default_sort[0], sort_dir)
    if page is not None:
        view.page_changed(page)

    return ListViewDataResponse.from_snapshot(view.snapshot, _page_size_options(definition))
