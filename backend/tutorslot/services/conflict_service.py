from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, time

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from tutorslot.models.class_definition import ClassDefinition, ScheduleMode
from tutorslot.schemas.schedule import ConflictEntry, ConflictResult, RecurringSchedule, ScheduleCandidate
from tutorslot.services.compatibility import CompatibilityPolicy
from tutorslot.services.materializer import InstructorScope, fetch_week
from tutorslot.services.time_utils import academy_today, date_for_weekday, overlaps, parse_clock, weekday_of

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OccupiedSlot:
    class_id: str
    class_type_code: str


def _recurring_overlaps(
    db: Session,
    *,
    instructor_id: str,
    weekday: int,
    reference_date: date,
    start_time: time,
    end_time: time,
) -> list[ClassDefinition]:
    query = select(ClassDefinition).where(
        ClassDefinition.instructor_id == instructor_id,
        ClassDefinition.schedule_mode == ScheduleMode.recurring,
        ClassDefinition.weekday == weekday,
        ClassDefinition.active_from <= reference_date,
        or_(ClassDefinition.active_to.is_(None), ClassDefinition.active_to >= reference_date),
    )
    rows = db.execute(query).unique().scalars()
    return [row for row in rows if overlaps(start_time, end_time, row.start_time, row.end_time)]


def find_existing_overlaps(
    db: Session,
    candidate: ScheduleCandidate,
    exclude_class_id: str | None = None,
) -> list[OccupiedSlot]:
    start_time = parse_clock(candidate.start_time)
    end_time = parse_clock(candidate.end_time)
    schedule = candidate.schedule

    if isinstance(schedule, RecurringSchedule):
        rows = _recurring_overlaps(
            db,
            instructor_id=candidate.instructor_id,
            weekday=schedule.weekday,
            reference_date=schedule.active_from or academy_today(),
            start_time=start_time,
            end_time=end_time,
        )
    else:
        target_date = schedule.class_date
        one_off = select(ClassDefinition).where(
            ClassDefinition.instructor_id == candidate.instructor_id,
            ClassDefinition.schedule_mode == ScheduleMode.one_off,
            ClassDefinition.class_date == target_date,
        )
        rows = [
            row
            for row in db.execute(one_off).unique().scalars()
            if overlaps(start_time, end_time, row.start_time, row.end_time)
        ]
        rows.extend(
            _recurring_overlaps(
                db,
                instructor_id=candidate.instructor_id,
                weekday=weekday_of(target_date),
                reference_date=target_date,
                start_time=start_time,
                end_time=end_time,
            )
        )

    return [
        OccupiedSlot(class_id=row.id, class_type_code=row.class_type_code)
        for row in rows
        if row.id != exclude_class_id
    ]


def classify_overlaps(db: Session, candidate_type: str, occupied: list[OccupiedSlot]) -> ConflictResult:
    if not occupied:
        return ConflictResult()

    policy = CompatibilityPolicy.load(db, candidate_type, {slot.class_type_code for slot in occupied})
    entries: list[ConflictEntry] = []
    for slot in occupied:
        verdict = policy.resolve(candidate_type, slot.class_type_code)
        if not verdict.is_compatible:
            entries.append(ConflictEntry(class_id=slot.class_id, reason=verdict.reason))
    return ConflictResult.from_entries(entries)


def check_conflict(
    db: Session,
    candidate: ScheduleCandidate,
    *,
    exclude_class_id: str | None = None,
) -> ConflictResult:
    occupied = find_existing_overlaps(db, candidate, exclude_class_id)
    result = classify_overlaps(db, candidate.class_type_code, occupied)
    if result.has_conflict:
        logger.debug(
            "Candidate %s for instructor %s collides with %d session(s)",
            candidate.class_type_code,
            candidate.instructor_id,
            len(result.conflicts),
        )
    return result


def check_move_conflict(
    db: Session,
    *,
    class_id: str,
    instructor_id: str,
    class_type_code: str,
    week_start: date,
    weekday: int,
    start_time: time,
    end_time: time,
) -> ConflictResult:
    """Check a destination slot against the instructor's materialized week, overrides included."""
    target_date = date_for_weekday(week_start, weekday)
    week = fetch_week(db, week_start, InstructorScope(instructor_id))
    occupied = [
        OccupiedSlot(class_id=event.id, class_type_code=event.class_type_code)
        for event in week.events
        if event.id != class_id
        and event.class_date == target_date
        and overlaps(start_time, end_time, parse_clock(event.start_time), parse_clock(event.end_time))
    ]
    return classify_overlaps(db, class_type_code, occupied)
