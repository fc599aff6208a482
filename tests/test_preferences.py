import pytest

from hrdesk.models.user_preference import UserPreference
from hrdesk.services.preferences import InMemoryPreferenceStore, SqlPreferenceStore


@pytest.mark.asyncio
async def test_sql_store_returns_none_without_a_row(session_factory):
    store = SqlPreferenceStore(session_factory)

    assert await store.load_column_preferences("nobody", "employees") is None
    assert await store.load_items_per_page("nobody") is None


@pytest.mark.asyncio
async def test_sql_store_round_trips_columns_per_view(session_factory):
    store = SqlPreferenceStore(session_factory)

    await store.save_column_preferences("u-1", "employees", ["employee", "email"])
    await store.save_column_preferences("u-1", "directory", ["employee"])

    assert await store.load_column_preferences("u-1", "employees") == ["employee", "email"]
    assert await store.load_column_preferences("u-1", "directory") == ["employee"]
    assert await store.load_column_preferences("u-2", "employees") is None


@pytest.mark.asyncio
async def test_sql_store_keeps_one_row_per_user(session_factory, db_session):
    store = SqlPreferenceStore(session_factory)

    await store.save_column_preferences("u-3", "employees", ["employee"])
    await store.save_column_preferences("u-3", "employees", ["employee", "status"])
    await store.save_items_per_page("u-3", 50)

    rows = db_session.query(UserPreference).filter(UserPreference.user_id == "u-3").all()
    assert len(rows) == 1
    assert rows[0].items_per_page == 50
    assert rows[0].table_columns == {"employees": ["employee", "status"]}


@pytest.mark.asyncio
async def test_sql_store_clearing_columns_removes_view_entry(session_factory):
    store = SqlPreferenceStore(session_factory)
    await store.save_column_preferences("u-4", "employees", ["employee"])
    await store.save_column_preferences("u-4", "onboarding", ["employee"])

    await store.save_column_preferences("u-4", "employees", None)

    assert await store.load_column_preferences("u-4", "employees") is None
    assert await store.load_column_preferences("u-4", "onboarding") == ["employee"]


@pytest.mark.asyncio
async def test_sql_store_ignores_malformed_stored_value(session_factory, db_session):
    db_session.add(UserPreference(user_id="u-5", table_columns={"employees": "employee,email"}))
    db_session.commit()
    store = SqlPreferenceStore(session_factory)

    assert await store.load_column_preferences("u-5", "employees") is None


@pytest.mark.asyncio
async def test_sql_store_ignores_non_positive_page_size(session_factory, db_session):
    db_session.add(UserPreference(user_id="u-6", table_columns={}, items_per_page=0))
    db_session.commit()
    store = SqlPreferenceStore(session_factory)

    assert await store.load_items_per_page("u-6") is None


@pytest.mark.asyncio
async def test_in_memory_store_copies_values():
    store = InMemoryPreferenceStore()
    columns = ["employee", "email"]

    await store.save_column_preferences("u-1", "employees", columns)
    columns.append("phone")
    loaded = await store.load_column_preferences("u-1", "employees")
    loaded.append("status")

    assert await store.load_column_preferences("u-1", "employees") == ["employee", "email"]


@pytest.mark.asyncio
async def test_in_memory_store_page_size():
    store = InMemoryPreferenceStore()

    assert await store.load_items_per_page("u-1") is None
    await store.save_items_per_page("u-1", 25)
    assert await store.load_items_per_page("u-1") == 25
