from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from hrdesk.services.list_view import ListViewSnapshot


class ListColumnAvailable(BaseModel):
    key: str
    label: str
    required: bool = False
    sortable: bool = True
    hidden_by_default: bool = False


class ListColumnResolved(BaseModel):
    column_key: str
    label: str
    required: bool
    sortable: bool
    display_order: int
    is_visible: bool


class ColumnToggleRequest(BaseModel):
    column_key: str = Field(min_length=1, max_length=120)
    show: bool


class ListColumnsResponse(BaseModel):
    view_key: str
    available_columns: list[ListColumnAvailable]
    columns: list[ListColumnResolved]
    visible_columns: list[str]
    changed: bool = False
    error: str | None = None


class ListViewDataResponse(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    view_key: str
    items: list[dict[str, Any]]
    count: int
    total_pages: int
    current_page: int
    entries_per_page: int
    page_numbers: list[int]
    page_size_options: list[int]
    visible_columns: list[str]
    columns: list[ListColumnResolved]
    search_query: str
    status_filter: str
    categories: dict[str, str]
    sort_by: str | None
    sort_dir: str
    fetch_status: str
    fetch_error: str | None = None
    columns_loading: bool = False
    column_error: str | None = None

    @classmethod
    def from_snapshot(
        cls, snapshot: ListViewSnapshot, page_size_options: list[int]
    ) -> ListViewDataResponse:
        visible = set(snapshot.visible_columns)
        items = [
            {key: value for key, value in row.items() if key == "id" or key in visible}
            for row in snapshot.page_items
        ]
        return cls(
            view_key=snapshot.view_key,
            items=items,
            count=snapshot.total_count,
            total_pages=snapshot.total_pages,
            current_page=snapshot.current_page,
            entries_per_page=snapshot.entries_per_page,
            page_numbers=list(snapshot.page_numbers),
            page_size_options=page_size_options,
            visible_columns=list(snapshot.visible_columns),
            columns=[resolved_column(column) for column in snapshot.columns],
            search_query=snapshot.search_query,
            status_filter=snapshot.status_filter,
            categories=snapshot.categories,
            sort_by=snapshot.sort_by,
            sort_dir=snapshot.sort_dir,
            fetch_status=snapshot.fetch_status.value,
            fetch_error=snapshot.fetch_error,
            columns_loading=snapshot.columns_loading,
            column_error=snapshot.column_error,
        )


def resolved_column(column) -> ListColumnResolved:
    return ListColumnResolved(
        column_key=column.key,
        label=column.label,
        required=column.required,
        sortable=column.sortable,
        display_order=column.display_order,
        is_visible=column.is_visible,
    )
