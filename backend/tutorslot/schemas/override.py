from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from tutorslot.models.class_definition import ScheduleStatus
from tutorslot.models.class_override import OverrideAction
from tutorslot.services.time_utils import TIME_PATTERN, clock_to_minutes


class OverrideUpsert(BaseModel):
    action: OverrideAction
    instructor_id: str | None = Field(default=None, min_length=1, max_length=36)
    start_time: str | None = None
    end_time: str | None = None
    status: ScheduleStatus | None = None
    note: str | None = Field(default=None, max_length=1000)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time_format(cls, value: str | None) -> str | None:
        if value is not None and not TIME_PATTERN.match(value):
            raise ValueError("Time must be in HH:MM 24-hour format")
        return value

    @model_validator(mode="after")
    def validate_action_fields(self) -> "OverrideUpsert":
        has_start = self.start_time is not None
        has_end = self.end_time is not None
        if has_start != has_end:
            raise ValueError("start_time and end_time must be provided together")
        if has_start and clock_to_minutes(self.end_time) <= clock_to_minutes(self.start_time):
            raise ValueError("end_time must be after start_time")
        if self.action == OverrideAction.reschedule:
            if self.instructor_id is None and not has_start:
                raise ValueError("reschedule requires an instructor_id or a new time window")
        elif self.instructor_id is not None or has_start:
            raise ValueError("only reschedule overrides may change the instructor or time window")
        return self


class OverrideOut(BaseModel):
    id: str
    class_id: str
    override_date: date
    action: OverrideAction
    instructor_id: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    status: ScheduleStatus | None = None
    note: str | None = None
    created_at: datetime | None = None
