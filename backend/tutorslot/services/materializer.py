"""Expand stored class definitions into the concrete sessions of one week.

Recurring definitions contribute at most one occurrence per week, one-off
definitions contribute their own date, and per-date overrides are folded in
before the viewer scope decides what is visible. Everything here is read-only.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from typing import Literal

from sqlalchemy import ColumnElement, and_, or_, select
from sqlalchemy.orm import Session

from tutorslot.core.exceptions import ScheduleValidationError
from tutorslot.models.class_definition import ClassDefinition, ScheduleMode
from tutorslot.models.class_override import ClassOverride, OverrideAction
from tutorslot.models.enrollment import Enrollment
from tutorslot.models.instructor import Instructor
from tutorslot.schemas.schedule import MaterializedEvent, WeekScheduleOut
from tutorslot.services.time_utils import date_for_weekday, format_clock, week_window, weekday_of

UNKNOWN_INSTRUCTOR = "Unknown Instructor"
UNKNOWN_STUDENT = "Unknown Student"


class ViewerScope(ABC):
    """Decides which definitions a viewer may see and which occurrences survive overrides."""

    @abstractmethod
    def restrict(self, db: Session, week_start: date, week_end: date) -> list[ColumnElement[bool]] | None:
        """Return extra filters for candidate definitions, or None when nothing can be visible."""

    @abstractmethod
    def admits(self, effective_instructor_id: str) -> bool:
        """Whether an occurrence taught by the given instructor belongs in this view."""


class StudentScope(ViewerScope):
    def __init__(self, student_id: str):
        self.student_id = student_id

    def restrict(self, db: Session, week_start: date, week_end: date) -> list[ColumnElement[bool]] | None:
        class_ids = set(
            db.execute(select(Enrollment.class_id).where(Enrollment.student_id == self.student_id)).scalars()
        )
        if not class_ids:
            return None
        return [ClassDefinition.id.in_(sorted(class_ids))]

    def admits(self, effective_instructor_id: str) -> bool:
        return True


class InstructorScope(ViewerScope):
    """Sessions taught by one instructor, or by everyone when no instructor is given."""

    def __init__(self, instructor_id: str | None = None):
        self.instructor_id = instructor_id

    def restrict(self, db: Session, week_start: date, week_end: date) -> list[ColumnElement[bool]] | None:
        if self.instructor_id is None:
            return []
        # Definitions owned by someone else can still land here through a reschedule override.
        reassigned = select(ClassOverride.class_id).where(
            ClassOverride.override_instructor_id == self.instructor_id,
            ClassOverride.action == OverrideAction.reschedule,
            ClassOverride.override_date >= week_start,
            ClassOverride.override_date <= week_end,
        )
        return [
            or_(
                ClassDefinition.instructor_id == self.instructor_id,
                ClassDefinition.id.in_(reassigned),
            )
        ]

    def admits(self, effective_instructor_id: str) -> bool:
        return self.instructor_id is None or effective_instructor_id == self.instructor_id


def build_viewer_scope(view: Literal["instructor", "student"], viewer_id: str | None) -> ViewerScope:
    if view == "student":
        if not viewer_id:
            raise ScheduleValidationError("viewer_id is required for the student view")
        return StudentScope(viewer_id)
    if view == "instructor":
        return InstructorScope(viewer_id or None)
    raise ScheduleValidationError(f"Unknown view {view!r}; expected instructor or student")


def _occurrence_date(row: ClassDefinition, week_start: date, week_end: date) -> date | None:
    if row.schedule_mode == ScheduleMode.recurring:
        if row.weekday is None:
            return None
        occurrence = date_for_weekday(week_start, row.weekday)
        if occurrence < row.active_from:
            return None
        if row.active_to is not None and occurrence > row.active_to:
            return None
        return occurrence
    if row.class_date is None or not (week_start <= row.class_date <= week_end):
        return None
    return row.class_date


def _load_definitions(
    db: Session,
    week_start: date,
    week_end: date,
    filters: list[ColumnElement[bool]],
) -> list[ClassDefinition]:
    recurring = select(ClassDefinition).where(
        ClassDefinition.schedule_mode == ScheduleMode.recurring,
        ClassDefinition.active_from <= week_end,
        or_(ClassDefinition.active_to.is_(None), ClassDefinition.active_to >= week_start),
        *filters,
    )
    one_off = select(ClassDefinition).where(
        ClassDefinition.schedule_mode == ScheduleMode.one_off,
        and_(ClassDefinition.class_date >= week_start, ClassDefinition.class_date <= week_end),
        *filters,
    )
    rows = list(db.execute(recurring).unique().scalars())
    rows.extend(db.execute(one_off).unique().scalars())
    return rows


def fetch_week(db: Session, week_start: date, scope: ViewerScope) -> WeekScheduleOut:
    week_start, week_end = week_window(week_start)
    empty = WeekScheduleOut(week_start=week_start, week_end=week_end, events=[])

    filters = scope.restrict(db, week_start, week_end)
    if filters is None:
        return empty

    rows = _load_definitions(db, week_start, week_end, filters)
    if not rows:
        return empty
    class_ids = [row.id for row in rows]

    enrollments: dict[str, list[Enrollment]] = {}
    enrollment_rows = db.execute(
        select(Enrollment).where(Enrollment.class_id.in_(class_ids)).order_by(Enrollment.created_at, Enrollment.id)
    ).unique().scalars()
    for enrollment in enrollment_rows:
        enrollments.setdefault(enrollment.class_id, []).append(enrollment)

    overrides: dict[tuple[str, date], ClassOverride] = {}
    override_rows = db.execute(
        select(ClassOverride).where(
            ClassOverride.class_id.in_(class_ids),
            ClassOverride.override_date >= week_start,
            ClassOverride.override_date <= week_end,
        )
    ).scalars()
    for override in override_rows:
        overrides[(override.class_id, override.override_date)] = override

    instructor_names = {row.instructor.id: row.instructor.name for row in rows if row.instructor is not None}
    missing_instructor_ids = {
        override.override_instructor_id
        for override in overrides.values()
        if override.override_instructor_id and override.override_instructor_id not in instructor_names
    }
    if missing_instructor_ids:
        extra = db.execute(select(Instructor).where(Instructor.id.in_(sorted(missing_instructor_ids)))).scalars()
        for instructor in extra:
            instructor_names[instructor.id] = instructor.name

    events: list[MaterializedEvent] = []
    for row in rows:
        occurrence = _occurrence_date(row, week_start, week_end)
        if occurrence is None:
            continue

        override = overrides.get((row.id, occurrence))
        if override is not None and override.action == OverrideAction.cancel:
            continue

        instructor_id = row.instructor_id
        start_time, end_time = row.start_time, row.end_time
        status = row.progress_status
        if override is not None:
            if override.action == OverrideAction.reschedule:
                instructor_id = override.override_instructor_id or instructor_id
                start_time = override.override_start_time or start_time
                end_time = override.override_end_time or end_time
            status = override.override_status or status

        if not scope.admits(instructor_id):
            continue

        class_enrollments = enrollments.get(row.id, [])
        events.append(
            MaterializedEvent(
                id=row.id,
                schedule_mode=row.schedule_mode,
                instructor_id=instructor_id,
                instructor_name=instructor_names.get(instructor_id, UNKNOWN_INSTRUCTOR),
                student_ids=[item.student_id for item in class_enrollments],
                student_names=[item.student.name if item.student else UNKNOWN_STUDENT for item in class_enrollments],
                subject_code=row.subject_code,
                subject_name=row.subject.display_name if row.subject else row.subject_code,
                class_type_code=row.class_type_code,
                class_type_label=row.class_type.display_name if row.class_type else row.class_type_code,
                badge_text=row.class_type.badge_text if row.class_type else f"[{row.class_type_code}]",
                weekday=weekday_of(occurrence),
                class_date=occurrence,
                start_time=format_clock(start_time),
                end_time=format_clock(end_time),
                progress_status=status,
                overridden=override is not None,
                note=row.note,
                created_at=row.created_at,
            )
        )

    events.sort(key=lambda event: (event.class_date, event.start_time))
    return WeekScheduleOut(week_start=week_start, week_end=week_end, events=events)
