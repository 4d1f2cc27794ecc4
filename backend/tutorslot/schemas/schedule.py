from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from tutorslot.models.class_definition import ScheduleMode, ScheduleStatus
from tutorslot.services.time_utils import TIME_PATTERN, clock_to_minutes, weekday_of


class RecurringSchedule(BaseModel):
    mode: Literal["recurring"] = "recurring"
    weekday: int = Field(ge=1, le=7)
    active_from: date | None = None
    active_to: date | None = None

    @model_validator(mode="after")
    def validate_window(self) -> "RecurringSchedule":
        if self.active_from and self.active_to and self.active_to < self.active_from:
            raise ValueError("active_to must not be earlier than active_from")
        return self


class OneOffSchedule(BaseModel):
    mode: Literal["one_off"] = "one_off"
    class_date: date


ScheduleVariant = Annotated[RecurringSchedule | OneOffSchedule, Field(discriminator="mode")]


class ScheduleCandidate(BaseModel):
    instructor_id: str = Field(min_length=1, max_length=36)
    student_ids: list[str] = Field(min_length=1, max_length=100)
    subject_code: str = Field(min_length=1, max_length=50)
    class_type_code: str = Field(min_length=1, max_length=50)
    schedule: ScheduleVariant
    start_time: str
    end_time: str
    note: str | None = Field(default=None, max_length=1000)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value

    @field_validator("student_ids")
    @classmethod
    def validate_student_ids(cls, value: list[str]) -> list[str]:
        cleaned = [item.strip() for item in value if item and item.strip()]
        if not cleaned:
            raise ValueError("student_ids must contain at least one student")
        return cleaned

    @model_validator(mode="after")
    def validate_order(self) -> "ScheduleCandidate":
        if clock_to_minutes(self.end_time) <= clock_to_minutes(self.start_time):
            raise ValueError("end_time must be after start_time")
        return self

    @property
    def mode(self) -> ScheduleMode:
        return ScheduleMode(self.schedule.mode)

    @property
    def weekday(self) -> int:
        if isinstance(self.schedule, RecurringSchedule):
            return self.schedule.weekday
        return weekday_of(self.schedule.class_date)

    def distinct_student_ids(self) -> list[str]:
        return list(dict.fromkeys(self.student_ids))


class ConflictEntry(BaseModel):
    class_id: str | None = None
    reason: str
    kind: Literal["overlap", "capacity"] = "overlap"


class ConflictResult(BaseModel):
    has_conflict: bool = False
    conflicts: list[ConflictEntry] = Field(default_factory=list)

    @classmethod
    def from_entries(cls, entries: list[ConflictEntry]) -> "ConflictResult":
        return cls(has_conflict=bool(entries), conflicts=entries)


class CreateScheduleResult(BaseModel):
    class_id: str | None = None
    conflict: ConflictResult


class MaterializedEvent(BaseModel):
    id: str
    schedule_mode: ScheduleMode
    instructor_id: str
    instructor_name: str
    student_ids: list[str]
    student_names: list[str]
    subject_code: str
    subject_name: str
    class_type_code: str
    class_type_label: str
    badge_text: str
    weekday: int
    class_date: date
    start_time: str
    end_time: str
    progress_status: ScheduleStatus
    overridden: bool = False
    note: str | None = None
    created_at: datetime | None = None


class WeekScheduleOut(BaseModel):
    week_start: date
    week_end: date
    events: list[MaterializedEvent]


class StatusUpdateRequest(BaseModel):
    status: ScheduleStatus
    reason: str | None = Field(default=None, max_length=500)


class StatusUpdateOut(BaseModel):
    id: str
    progress_status: ScheduleStatus
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class MoveRequest(BaseModel):
    weekday: int = Field(ge=1, le=7)
    start_time: str
    week_start: date

    @field_validator("start_time")
    @classmethod
    def validate_time_format(cls, value: str) -> str:
        if not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value


class MovedSlotOut(BaseModel):
    id: str
    weekday: int | None = None
    class_date: date | None = None
    start_time: str
    end_time: str


class MoveResult(BaseModel):
    moved: bool
    conflict: ConflictResult
    updated: MovedSlotOut | None = None


class ImportResult(BaseModel):
    status: Literal["created", "enrolled", "existing", "conflict"]
    class_id: str | None = None
    conflict: ConflictResult


class ImportBatchRequest(BaseModel):
    items: list[ScheduleCandidate] = Field(min_length=1, max_length=500)


class ImportBatchResult(BaseModel):
    results: list[ImportResult]


class StatusLogOut(BaseModel):
    id: int
    class_id: str
    status: ScheduleStatus
    changed_by: str | None = None
    changed_at: datetime | None = None
    reason: str | None = None

    model_config = {"from_attributes": True}
