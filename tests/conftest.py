import uuid
from datetime import date, timedelta

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import hrdesk.models  # noqa: F401
from hrdesk.db import Base
from hrdesk.models.employee import Employee, EmployeeStatus
from hrdesk.services.preferences import InMemoryPreferenceStore
from tests.mocks import employee_row


@pytest.fixture(scope="session")
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(engine, "connect")
    def _enable_foreign_keys(dbapi_connection, _connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(engine)
    return engine


@pytest.fixture()
def session_factory(engine):
    connection = engine.connect()
    transaction = connection.begin()
    SessionLocal = sessionmaker(bind=connection, autoflush=False, autocommit=False)
    try:
        yield SessionLocal
    finally:
        transaction.rollback()
        connection.close()


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def employee_factory(db_session):
    def _create(
        first_name: str,
        last_name: str = "User",
        *,
        status: EmployeeStatus = EmployeeStatus.active,
        department: str | None = "Engineering",
        work_location: str | None = "Manama",
        join_offset_days: int = 0,
    ) -> Employee:
        employee = Employee(
            first_name=first_name,
            last_name=last_name,
            email=f"{first_name.lower()}.{uuid.uuid4().hex[:8]}@example.com",
            employee_code=f"EMP-{uuid.uuid4().hex[:8].upper()}",
            department=department,
            position="Engineer",
            work_location=work_location,
            status=status,
            join_date=date(2024, 1, 1) + timedelta(days=join_offset_days),
        )
        db_session.add(employee)
        db_session.commit()
        db_session.refresh(employee)
        return employee

    return _create


@pytest.fixture()
def preference_store():
    return InMemoryPreferenceStore()


@pytest.fixture()
def employee_rows():
    """22 active employees, the paging example of the employee table."""
    return [employee_row(index) for index in range(1, 23)]
