import enum
import uuid
from datetime import UTC, date, datetime

from sqlalchemy import Date, DateTime, Enum, ForeignKey, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hrdesk.db import Base


class OnboardingStatus(enum.Enum):
    pending = "pending"
    scheduled = "scheduled"
    in_progress = "in_progress"
    completed = "completed"
    incomplete = "incomplete"


class OnboardingRecord(Base):
    __tablename__ = "onboarding_records"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    employee_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("employees.id"), nullable=False
    )
    workflow_name: Mapped[str] = mapped_column(String(160), nullable=False)
    status: Mapped[OnboardingStatus] = mapped_column(
        Enum(OnboardingStatus, native_enum=False, length=20),
        default=OnboardingStatus.pending,
        nullable=False,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    scheduled_completion: Mapped[date | None] = mapped_column(Date)
    completed_on: Mapped[date | None] = mapped_column(Date)
    tasks_total: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    tasks_completed: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC)
    )

    employee = relationship("Employee", lazy="joined")

    @property
    def progress(self) -> int:
        if not self.tasks_total:
            return 0
        return round(self.tasks_completed * 100 / self.tasks_total)
