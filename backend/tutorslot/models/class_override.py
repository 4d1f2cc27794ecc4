import uuid
from datetime import date, datetime, time
from enum import Enum

from sqlalchemy import CheckConstraint, Date, DateTime, Enum as SAEnum, ForeignKey, String, Text, Time, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from tutorslot.db.base import Base
from tutorslot.models.class_definition import ScheduleStatus


class OverrideAction(str, Enum):
    cancel = "cancel"
    reschedule = "reschedule"
    status_only = "status_only"


class ClassOverride(Base):
    __tablename__ = "class_overrides"
    __table_args__ = (
        UniqueConstraint("class_id", "override_date", name="uq_class_overrides_class_date"),
        CheckConstraint(
            "override_end_time IS NULL OR override_start_time IS NULL OR override_end_time > override_start_time",
            name="ck_class_overrides_time_order",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    class_id: Mapped[str] = mapped_column(String(36), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False)
    override_date: Mapped[date] = mapped_column(Date, nullable=False)
    action: Mapped[OverrideAction] = mapped_column(SAEnum(OverrideAction, name="override_action"), nullable=False)
    override_instructor_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("instructors.id", ondelete="SET NULL"), index=True, nullable=True
    )
    override_start_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    override_end_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    override_status: Mapped[ScheduleStatus | None] = mapped_column(
        SAEnum(ScheduleStatus, name="schedule_status"), nullable=True
    )
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
