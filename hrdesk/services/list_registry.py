from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from fastapi import HTTPException
from sqlalchemy.orm import Query

from hrdesk.config import settings
from hrdesk.models.employee import Employee, EmployeeStatus
from hrdesk.models.onboarding import OnboardingRecord, OnboardingStatus
from hrdesk.services.column_visibility import ColumnCatalog, ColumnDefinition
from hrdesk.services.list_filters import FieldAccessor
from hrdesk.services.query_layer import FreshnessClass

BaseFilter = Callable[[Query, type], Query]
OrderResolver = Callable[[type], tuple[Any, ...]]
RowBuilder = Callable[[Any], dict[str, Any]]


@dataclass(frozen=True)
class ListViewDefinition:
    view_key: str
    model: type
    catalog: ColumnCatalog
    row_builder: RowBuilder
    search_fields: tuple[FieldAccessor, ...]
    status_field: FieldAccessor = "status"
    statuses: tuple[str, ...] = ()
    category_fields: Mapping[str, FieldAccessor] = field(default_factory=dict)
    scope_fields: frozenset[str] = frozenset()
    default_page_size: int = settings.default_page_size
    default_sort: tuple[str | None, str] = (None, "asc")
    freshness: FreshnessClass = FreshnessClass.live
    base_filter: BaseFilter | None = None
    default_order: OrderResolver | None = None

    def sortable_fields(self) -> dict[str, FieldAccessor]:
        return {key: key for key in self.catalog.sortable_keys()}


class ListViewRegistry:
    _views: dict[str, ListViewDefinition] = {}

    @classmethod
    def register(cls, definition: ListViewDefinition) -> ListViewDefinition:
        if not definition.view_key:
            raise ValueError("view_key is required")
        if not definition.catalog.required_keys():
            raise ValueError(f"View {definition.view_key} needs at least one required column")
        if definition.default_page_size < 1:
            raise ValueError("default_page_size must be >= 1")
        for scope_field in definition.scope_fields:
            if not hasattr(definition.model, scope_field):
                raise ValueError(
                    f"Scope field {scope_field} is not present on model {definition.model.__name__}"
                )
        cls._views[definition.view_key] = definition
        return definition

    @classmethod
    def get(cls, view_key: str) -> ListViewDefinition:
        definition = cls._views.get(view_key)
        if not definition:
            raise HTTPException(status_code=404, detail="Unregistered list view")
        return definition

    @classmethod
    def exists(cls, view_key: str) -> bool:
        return view_key in cls._views

    @classmethod
    def keys(cls) -> list[str]:
        return sorted(cls._views)


def _employee_row(employee: Employee) -> dict[str, Any]:
    return {
        "id": employee.id,
        "employee": employee.full_name,
        "first_name": employee.first_name,
        "last_name": employee.last_name,
        "avatar_url": employee.avatar_url,
        "employee_code": employee.employee_code,
        "email": employee.email,
        "phone": employee.phone,
        "department": employee.department,
        "position": employee.position,
        "work_location": employee.work_location,
        "manager": employee.manager_name,
        "status": employee.status,
        "join_date": employee.join_date,
    }


def _onboarding_row(record: OnboardingRecord) -> dict[str, Any]:
    employee = record.employee
    return {
        "id": record.id,
        "employee_id": record.employee_id,
        "employee": employee.full_name if employee else None,
        "avatar_url": employee.avatar_url if employee else None,
        "department": employee.department if employee else None,
        "workflow_name": record.workflow_name,
        "start_date": record.start_date,
        "scheduled_completion": record.scheduled_completion,
        "progress": record.progress,
        "status": record.status,
    }


def _employee_order(model: type) -> tuple[Any, ...]:
    return (model.last_name.asc(), model.first_name.asc(), model.id.asc())


DEPARTED_STATUSES = (EmployeeStatus.terminated, EmployeeStatus.resigned)
# Statuses each employee view can return after its base filter
CURRENT_EMPLOYEE_STATUSES = tuple(
    status.value for status in EmployeeStatus if status not in DEPARTED_STATUSES
)
DIRECTORY_STATUSES = (EmployeeStatus.active.value,)
ONBOARDING_STATUSES = tuple(status.value for status in OnboardingStatus)

EMPLOYEE_COLUMNS = ColumnCatalog(
    [
        ColumnDefinition("employee", "Employee", required=True),
        ColumnDefinition("employee_code", "Employee ID"),
        ColumnDefinition("email", "Email"),
        ColumnDefinition("phone", "Phone", hidden_by_default=True),
        ColumnDefinition("department", "Department"),
        ColumnDefinition("position", "Job Title"),
        ColumnDefinition("work_location", "Work Location", hidden_by_default=True),
        ColumnDefinition("manager", "Manager", hidden_by_default=True),
        ColumnDefinition("status", "Status"),
        ColumnDefinition("join_date", "Join Date"),
    ]
)

DIRECTORY_COLUMNS = ColumnCatalog(
    [
        ColumnDefinition("employee", "Name", required=True),
        ColumnDefinition("position", "Job Title"),
        ColumnDefinition("department", "Department"),
        ColumnDefinition("email", "Email"),
        ColumnDefinition("phone", "Phone"),
        ColumnDefinition("work_location", "Work Location", hidden_by_default=True),
    ]
)

ONBOARDING_COLUMNS = ColumnCatalog(
    [
        ColumnDefinition("employee", "Employee", required=True),
        ColumnDefinition("workflow_name", "Workflow"),
        ColumnDefinition("department", "Department"),
        ColumnDefinition("start_date", "Start Date"),
        ColumnDefinition("scheduled_completion", "Target Completion", hidden_by_default=True),
        ColumnDefinition("progress", "Progress"),
        ColumnDefinition("status", "Status"),
    ]
)

ListViewRegistry.register(
    ListViewDefinition(
        view_key="employees",
        model=Employee,
        catalog=EMPLOYEE_COLUMNS,
        row_builder=_employee_row,
        search_fields=("employee", "email", "employee_code"),
        statuses=CURRENT_EMPLOYEE_STATUSES,
        category_fields={"department": "department", "work_location": "work_location"},
        scope_fields=frozenset({"department", "work_location"}),
        default_page_size=8,
        default_sort=("employee", "asc"),
        base_filter=lambda query, model: query.filter(
            model.status.not_in(DEPARTED_STATUSES)
        ),
        default_order=_employee_order,
    )
)

ListViewRegistry.register(
    ListViewDefinition(
        view_key="directory",
        model=Employee,
        catalog=DIRECTORY_COLUMNS,
        row_builder=_employee_row,
        search_fields=("employee",),
        statuses=DIRECTORY_STATUSES,
        category_fields={"department": "department"},
        scope_fields=frozenset({"department"}),
        default_page_size=12,
        default_sort=("employee", "asc"),
        base_filter=lambda query, model: query.filter(model.status == EmployeeStatus.active),
        default_order=_employee_order,
    )
)

ListViewRegistry.register(
    ListViewDefinition(
        view_key="onboarding",
        model=OnboardingRecord,
        catalog=ONBOARDING_COLUMNS,
        row_builder=_onboarding_row,
        search_fields=("employee", "workflow_name"),
        statuses=ONBOARDING_STATUSES,
        category_fields={"department": "department"},
        default_page_size=10,
        default_sort=("start_date", "desc"),
        default_order=lambda model: (model.start_date.desc(), model.id.asc()),
    )
)
