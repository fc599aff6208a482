from __future__ import annotations

import asyncio
import itertools
import random

import pytest

from hrdesk.services.column_visibility import (
    ColumnCatalog,
    ColumnDefinition,
    ColumnVisibilityState,
    default_columns,
    normalize_columns,
    toggle_column,
)
from hrdesk.services.preferences import InMemoryPreferenceStore
from tests.mocks import FailingPreferenceStore, GatedPreferenceStore

CATALOG = ColumnCatalog(
    [
        ColumnDefinition("employee", "Employee", required=True),
        ColumnDefinition("employee_code", "Employee ID"),
        ColumnDefinition("email", "Email"),
        ColumnDefinition("phone", "Phone", hidden_by_default=True),
        ColumnDefinition("department", "Department"),
        ColumnDefinition("status", "Status"),
    ]
)


def test_catalog_rejects_duplicate_keys():
    with pytest.raises(ValueError):
        ColumnCatalog([ColumnDefinition("a", "A"), ColumnDefinition("a", "Again")])


def test_default_columns_skip_hidden_ones():
    assert default_columns(CATALOG) == ("employee", "employee_code", "email", "department", "status")


def test_showing_a_column_reinserts_it_at_canonical_position():
    current = ("employee", "status")

    result = toggle_column(current, "email", True, CATALOG)

    assert result == ("employee", "email", "status")


def test_hiding_a_column_removes_it():
    result = toggle_column(("employee", "email", "status"), "email", False, CATALOG)

    assert result == ("employee", "status")


def test_hiding_a_required_column_is_a_no_op():
    current = ("employee", "email")

    assert toggle_column(current, "employee", False, CATALOG) == current


def test_unknown_column_toggle_is_a_no_op():
    current = ("employee", "email")

    assert toggle_column(current, "salary", True, CATALOG) == current


def test_any_toggle_sequence_keeps_canonical_order():
    rng = random.Random(7)
    keys = CATALOG.keys()
    canonical_index = {key: index for index, key in enumerate(keys)}
    current = default_columns(CATALOG)

    for _ in range(200):
        current = toggle_column(current, rng.choice(keys), rng.random() < 0.5, CATALOG)
        positions = [canonical_index[key] for key in current]
        assert positions == sorted(positions)
        assert "employee" in current


@pytest.mark.parametrize("order", list(itertools.permutations(["phone", "email", "status"])))
def test_show_order_does_not_change_result(order):
    current = ("employee",)
    for key in order:
        current = toggle_column(current, key, True, CATALOG)

    assert current == ("employee", "email", "phone", "status")


def test_normalize_columns_handles_missing_and_malformed_preferences():
    assert normalize_columns(None, CATALOG) == default_columns(CATALOG)
    assert normalize_columns({"email": True}, CATALOG) == default_columns(CATALOG)
    assert normalize_columns(["status", "bogus", 3, "email", "email"], CATALOG) == (
        "employee",
        "email",
        "status",
    )
    assert normalize_columns([], CATALOG) == ("employee",)


def test_resolve_reports_visibility_per_column():
    resolved = CATALOG.resolve(("employee", "status"))

    assert [column.key for column in resolved] == list(CATALOG.keys())
    assert {column.key for column in resolved if column.is_visible} == {"employee", "status"}
    assert resolved[0].required is True
    assert [column.display_order for column in resolved] == list(range(len(CATALOG)))


@pytest.mark.asyncio
async def test_state_starts_loading_then_hydrates_from_store():
    store = InMemoryPreferenceStore()
    await store.save_column_preferences("u-1", "employees", ["phone", "employee"])
    state = ColumnVisibilityState("employees", CATALOG)

    assert state.is_loading is True
    await state.hydrate(store, "u-1")

    assert state.is_loading is False
    assert state.visible == ("employee", "phone")
    assert state.error is None


@pytest.mark.asyncio
async def test_state_without_stored_preference_uses_defaults():
    state = ColumnVisibilityState("employees", CATALOG)

    await state.hydrate(InMemoryPreferenceStore(), "u-2")

    assert state.is_loading is False
    assert state.visible == default_columns(CATALOG)


@pytest.mark.asyncio
async def test_failed_load_keeps_defaults_and_records_error():
    state = ColumnVisibilityState("employees", CATALOG)

    await state.hydrate(FailingPreferenceStore(fail_load=True), "u-3")

    assert state.visible == default_columns(CATALOG)
    assert state.is_loading is False
    assert state.error == "preference store unavailable"


@pytest.mark.asyncio
async def test_toggle_persists_new_set():
    store = InMemoryPreferenceStore()
    state = ColumnVisibilityState("employees", CATALOG)
    await state.hydrate(store, "u-4")

    changed = await state.toggle(store, "u-4", "phone", True)

    assert changed is True
    assert await store.load_column_preferences("u-4", "employees") == list(state.visible)
    assert "phone" in state.visible


@pytest.mark.asyncio
async def test_required_column_toggle_does_not_reach_store():
    store = FailingPreferenceStore(fail_save=False)
    state = ColumnVisibilityState("employees", CATALOG)
    await state.hydrate(store, "u-5")
    before = state.visible

    changed = await state.toggle(store, "u-5", "employee", False)

    assert changed is False
    assert state.visible == before
    assert store.save_attempts == 0


@pytest.mark.asyncio
async def test_failed_save_rolls_back_to_last_saved_set():
    store = FailingPreferenceStore(fail_save=True)
    state = ColumnVisibilityState("employees", CATALOG)
    await state.hydrate(store, "u-6")
    before = state.visible

    changed = await state.toggle(store, "u-6", "email", False)

    assert changed is True
    assert state.visible == before
    assert state.error == "preference save failed"
    assert state.is_saving is False


@pytest.mark.asyncio
async def test_failed_save_without_rollback_keeps_optimistic_set():
    store = FailingPreferenceStore(fail_save=True)
    state = ColumnVisibilityState("employees", CATALOG, rollback_on_failure=False)
    await state.hydrate(store, "u-7")

    await state.toggle(store, "u-7", "email", False)

    assert "email" not in state.visible
    assert state.error == "preference save failed"


@pytest.mark.asyncio
async def test_reset_clears_stored_preference():
    store = InMemoryPreferenceStore()
    await store.save_column_preferences("u-8", "employees", ["employee"])
    state = ColumnVisibilityState("employees", CATALOG)
    await state.hydrate(store, "u-8")

    await state.reset(store, "u-8")

    assert state.visible == default_columns(CATALOG)
    assert await store.load_column_preferences("u-8", "employees") is None


async def _start_overlapping_toggles(store, state):
    """Show phone, then hide email while the first save is still in flight."""
    first = asyncio.create_task(state.toggle(store, "u-9", "phone", True))
    await asyncio.sleep(0)
    second = asyncio.create_task(state.toggle(store, "u-9", "email", False))
    await asyncio.sleep(0)
    assert len(store.saves) == 2
    assert state.is_saving is True
    return first, second


@pytest.mark.asyncio
async def test_older_failed_save_does_not_discard_newer_toggle():
    store = GatedPreferenceStore()
    state = ColumnVisibilityState("employees", CATALOG)
    await state.hydrate(store, "u-9")
    first, second = await _start_overlapping_toggles(store, state)

    store.release(0, RuntimeError("first save failed"))
    await first
    store.release(1)
    await second

    assert state.visible == ("employee", "employee_code", "phone", "department", "status")
    assert store.columns[("u-9", "employees")] == list(state.visible)
    assert state.error is None
    assert state.is_saving is False


@pytest.mark.asyncio
async def test_failure_settling_after_newer_confirmed_save_is_ignored():
    store = GatedPreferenceStore()
    state = ColumnVisibilityState("employees", CATALOG)
    await state.hydrate(store, "u-9")
    first, second = await _start_overlapping_toggles(store, state)

    store.release(1)
    await second
    store.release(0, RuntimeError("first save failed"))
    await first

    assert store.columns[("u-9", "employees")] == list(state.visible)
    assert "phone" in state.visible
    assert "email" not in state.visible
    assert state.error is None


@pytest.mark.asyncio
async def test_newest_failed_save_reconciles_with_older_accepted_save():
    store = GatedPreferenceStore()
    state = ColumnVisibilityState("employees", CATALOG)
    await state.hydrate(store, "u-9")
    first, second = await _start_overlapping_toggles(store, state)

    store.release(1, RuntimeError("second save failed"))
    await second
    store.release(0)
    await first

    assert state.visible == (
        "employee",
        "employee_code",
        "email",
        "phone",
        "department",
        "status",
    )
    assert store.columns[("u-9", "employees")] == list(state.visible)
