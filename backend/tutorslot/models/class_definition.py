import uuid
from datetime import date, datetime, time
from enum import Enum

from sqlalchemy import CheckConstraint, Date, DateTime, Enum as SAEnum, ForeignKey, Index, SmallInteger, String, Text, Time
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from tutorslot.db.base import Base
from tutorslot.models.catalog import ClassType, Subject
from tutorslot.models.instructor import Instructor


class ScheduleMode(str, Enum):
    recurring = "recurring"
    one_off = "one_off"


class ScheduleStatus(str, Enum):
    planned = "planned"
    confirmed = "confirmed"
    completed = "completed"
    cancelled = "cancelled"


class ClassDefinition(Base):
    __tablename__ = "classes"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_classes_time_order"),
        CheckConstraint(
            "(schedule_mode = 'recurring' AND weekday IS NOT NULL AND class_date IS NULL) OR "
            "(schedule_mode = 'one_off' AND class_date IS NOT NULL AND weekday IS NULL)",
            name="ck_classes_mode_fields",
        ),
        CheckConstraint("weekday IS NULL OR (weekday BETWEEN 1 AND 7)", name="ck_classes_weekday_range"),
        Index("ix_classes_instructor_weekday_time", "instructor_id", "weekday", "start_time", "end_time"),
        Index("ix_classes_instructor_date_time", "instructor_id", "class_date", "start_time", "end_time"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    schedule_mode: Mapped[ScheduleMode] = mapped_column(
        SAEnum(ScheduleMode, name="schedule_mode"), nullable=False, default=ScheduleMode.recurring
    )
    instructor_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("instructors.id", ondelete="RESTRICT"), nullable=False
    )
    subject_code: Mapped[str] = mapped_column(String(50), ForeignKey("subjects.code", ondelete="RESTRICT"), nullable=False)
    class_type_code: Mapped[str] = mapped_column(
        String(50), ForeignKey("class_types.code", ondelete="RESTRICT"), nullable=False
    )
    weekday: Mapped[int | None] = mapped_column(SmallInteger, nullable=True)
    class_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    active_from: Mapped[date] = mapped_column(Date, nullable=False)
    active_to: Mapped[date | None] = mapped_column(Date, nullable=True)
    progress_status: Mapped[ScheduleStatus] = mapped_column(
        SAEnum(ScheduleStatus, name="schedule_status"), nullable=False, default=ScheduleStatus.planned
    )
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    instructor: Mapped[Instructor] = relationship(lazy="joined")
    subject: Mapped[Subject] = relationship(lazy="joined")
    class_type: Mapped[ClassType] = relationship(lazy="joined")

    @property
    def schedule(self):
        from tutorslot.schemas.schedule import OneOffSchedule, RecurringSchedule

        if self.schedule_mode == ScheduleMode.recurring:
            return RecurringSchedule(weekday=self.weekday, active_from=self.active_from, active_to=self.active_to)
        return OneOffSchedule(class_date=self.class_date)

    def apply_schedule(self, schedule) -> None:
        self.schedule_mode = ScheduleMode(schedule.mode)
        if self.schedule_mode == ScheduleMode.recurring:
            self.weekday = schedule.weekday
            self.class_date = None
        else:
            self.weekday = None
            self.class_date = schedule.class_date
