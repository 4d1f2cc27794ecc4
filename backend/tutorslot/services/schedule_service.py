"""Mutations on class definitions: create, status change, move and import.

Conflicts and capacity overflows come back as results. Malformed input,
missing rows and store failures raise. Every mutation re-runs the conflict
check before it writes.
"""

from __future__ import annotations

import logging

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from tutorslot.core.config import get_settings
from tutorslot.core.exceptions import ResourceNotFoundError, ScheduleValidationError, StorageError
from tutorslot.models.catalog import ClassType, Subject
from tutorslot.models.class_definition import ClassDefinition, ScheduleMode, ScheduleStatus
from tutorslot.models.enrollment import Enrollment
from tutorslot.models.instructor import Instructor
from tutorslot.models.student import Student
from tutorslot.schemas.schedule import (
    ConflictEntry,
    ConflictResult,
    CreateScheduleResult,
    ImportResult,
    MovedSlotOut,
    MoveRequest,
    MoveResult,
    OneOffSchedule,
    RecurringSchedule,
    ScheduleCandidate,
)
from tutorslot.services.audit import log_status_change
from tutorslot.services.conflict_service import check_conflict, check_move_conflict
from tutorslot.services.storage import storage_guard
from tutorslot.services.time_utils import (
    academy_today,
    clock_to_minutes,
    date_for_weekday,
    format_clock,
    minutes_to_clock,
    parse_clock,
)

logger = logging.getLogger(__name__)

INSTRUCTOR_DAY_OFF_MESSAGE = "The instructor is off on that day"


def get_class_definition(db: Session, class_id: str) -> ClassDefinition:
    definition = db.get(ClassDefinition, class_id)
    if definition is None:
        raise ResourceNotFoundError("Class", class_id)
    return definition


def get_class_type(db: Session, code: str) -> ClassType:
    class_type = db.get(ClassType, code)
    if class_type is None:
        raise ResourceNotFoundError("ClassType", code)
    return class_type


def _ensure_references(db: Session, candidate: ScheduleCandidate, student_ids: list[str]) -> Instructor:
    instructor = db.get(Instructor, candidate.instructor_id)
    if instructor is None:
        raise ResourceNotFoundError("Instructor", candidate.instructor_id)
    if db.get(Subject, candidate.subject_code) is None:
        raise ResourceNotFoundError("Subject", candidate.subject_code)

    found = set(db.execute(select(Student.id).where(Student.id.in_(student_ids))).scalars())
    missing = [student_id for student_id in student_ids if student_id not in found]
    if missing:
        raise ResourceNotFoundError("Student", missing[0])

    if candidate.weekday in set(instructor.days_off or []):
        raise ScheduleValidationError(
            INSTRUCTOR_DAY_OFF_MESSAGE,
            details={"instructor_id": instructor.id, "weekday": candidate.weekday},
        )
    return instructor


def _capacity_conflict(class_type: ClassType, class_id: str | None = None) -> ConflictResult:
    reason = f"Capacity exceeded: {class_type.display_name} allows at most {class_type.max_students} students"
    return ConflictResult.from_entries([ConflictEntry(class_id=class_id, reason=reason, kind="capacity")])


def _build_definition(candidate: ScheduleCandidate, actor_id: str | None) -> ClassDefinition:
    definition = ClassDefinition(
        instructor_id=candidate.instructor_id,
        subject_code=candidate.subject_code,
        class_type_code=candidate.class_type_code,
        start_time=parse_clock(candidate.start_time),
        end_time=parse_clock(candidate.end_time),
        progress_status=ScheduleStatus.planned,
        note=candidate.note,
        created_by=actor_id,
    )
    schedule = candidate.schedule
    definition.apply_schedule(schedule)
    if isinstance(schedule, RecurringSchedule):
        definition.active_from = schedule.active_from or academy_today()
        definition.active_to = schedule.active_to
    else:
        definition.active_from = schedule.class_date
        definition.active_to = None
    return definition


def _insert_enrollments(db: Session, class_id: str, student_ids: list[str]) -> None:
    db.add_all([Enrollment(class_id=class_id, student_id=student_id) for student_id in student_ids])
    db.flush()


def _undo_class_insert(db: Session, class_id: str) -> None:
    with storage_guard(db, "compensating class delete"):
        db.execute(delete(ClassDefinition).where(ClassDefinition.id == class_id))
        db.commit()


def create_with_enrollment(db: Session, candidate: ScheduleCandidate, actor_id: str | None) -> CreateScheduleResult:
    student_ids = candidate.distinct_student_ids()
    class_type = get_class_type(db, candidate.class_type_code)
    _ensure_references(db, candidate, student_ids)

    if len(student_ids) > class_type.max_students:
        logger.warning(
            "Rejected %s class for instructor %s: %d students exceed capacity %d",
            class_type.code,
            candidate.instructor_id,
            len(student_ids),
            class_type.max_students,
        )
        return CreateScheduleResult(class_id=None, conflict=_capacity_conflict(class_type))

    conflict = check_conflict(db, candidate)
    if conflict.has_conflict:
        logger.warning(
            "Rejected %s class for instructor %s: overlaps %s",
            candidate.class_type_code,
            candidate.instructor_id,
            ", ".join(entry.class_id or "?" for entry in conflict.conflicts),
        )
        return CreateScheduleResult(class_id=None, conflict=conflict)

    definition = _build_definition(candidate, actor_id)
    with storage_guard(db, "class insert"):
        db.add(definition)
        db.flush()
        class_id = definition.id
        db.commit()

    # Enrollments go in a second write; if they fail the class row must not linger without students.
    try:
        _insert_enrollments(db, class_id, student_ids)
        log_status_change(db, class_id=class_id, status=ScheduleStatus.planned, changed_by=actor_id, reason="created")
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Enrollment insert failed for class %s; removing the class", class_id)
        _undo_class_insert(db, class_id)
        raise StorageError(
            "Failed to enroll students; the class was not created",
            details={"class_id": class_id},
        ) from exc

    logger.info(
        "Created %s class %s for instructor %s with %d student(s)",
        candidate.mode.value,
        class_id,
        candidate.instructor_id,
        len(student_ids),
    )
    return CreateScheduleResult(class_id=class_id, conflict=conflict)


def update_status(
    db: Session,
    class_id: str,
    status: ScheduleStatus,
    actor_id: str | None,
    reason: str | None = None,
) -> ClassDefinition:
    definition = get_class_definition(db, class_id)
    with storage_guard(db, "status update"):
        definition.progress_status = status
        log_status_change(db, class_id=class_id, status=status, changed_by=actor_id, reason=reason or "manual-update")
        db.commit()
    db.refresh(definition)
    logger.info("Class %s status set to %s by %s", class_id, status.value, actor_id)
    return definition


def move_slot(db: Session, class_id: str, target: MoveRequest, actor_id: str | None) -> MoveResult:
    definition = get_class_definition(db, class_id)
    settings = get_settings()

    duration = max(
        settings.min_move_duration_minutes,
        clock_to_minutes(definition.end_time) - clock_to_minutes(definition.start_time),
    )
    start_time = parse_clock(target.start_time)
    try:
        end_time = minutes_to_clock(clock_to_minutes(start_time) + duration)
    except ValueError as exc:
        raise ScheduleValidationError(
            "The moved class would run past midnight",
            details={"start_time": target.start_time, "duration_minutes": duration},
        ) from exc

    conflict = check_move_conflict(
        db,
        class_id=class_id,
        instructor_id=definition.instructor_id,
        class_type_code=definition.class_type_code,
        week_start=target.week_start,
        weekday=target.weekday,
        start_time=start_time,
        end_time=end_time,
    )
    if conflict.has_conflict:
        logger.warning("Move of class %s to weekday %d %s rejected", class_id, target.weekday, target.start_time)
        return MoveResult(moved=False, conflict=conflict)

    with storage_guard(db, "class move"):
        if definition.schedule_mode == ScheduleMode.recurring:
            definition.apply_schedule(
                RecurringSchedule(
                    weekday=target.weekday,
                    active_from=definition.active_from,
                    active_to=definition.active_to,
                )
            )
        else:
            class_date = date_for_weekday(target.week_start, target.weekday)
            definition.apply_schedule(OneOffSchedule(class_date=class_date))
            definition.active_from = class_date
        definition.start_time = start_time
        definition.end_time = end_time
        log_status_change(
            db,
            class_id=class_id,
            status=definition.progress_status,
            changed_by=actor_id,
            reason=f"moved:{target.weekday}:{target.start_time}",
        )
        db.commit()
    db.refresh(definition)

    logger.info("Moved class %s to weekday %d %s", class_id, target.weekday, target.start_time)
    return MoveResult(
        moved=True,
        conflict=conflict,
        updated=MovedSlotOut(
            id=definition.id,
            weekday=definition.weekday,
            class_date=definition.class_date,
            start_time=format_clock(definition.start_time),
            end_time=format_clock(definition.end_time),
        ),
    )


def _find_exact_match(db: Session, candidate: ScheduleCandidate) -> ClassDefinition | None:
    query = select(ClassDefinition).where(
        ClassDefinition.schedule_mode == candidate.mode,
        ClassDefinition.instructor_id == candidate.instructor_id,
        ClassDefinition.subject_code == candidate.subject_code,
        ClassDefinition.class_type_code == candidate.class_type_code,
        ClassDefinition.start_time == parse_clock(candidate.start_time),
        ClassDefinition.end_time == parse_clock(candidate.end_time),
    )
    schedule = candidate.schedule
    if isinstance(schedule, RecurringSchedule):
        query = query.where(ClassDefinition.weekday == schedule.weekday)
    else:
        query = query.where(ClassDefinition.class_date == schedule.class_date)
    query = query.order_by(ClassDefinition.created_at, ClassDefinition.id).limit(1)
    return db.execute(query).unique().scalar_one_or_none()


def _widen_active_window(definition: ClassDefinition, candidate: ScheduleCandidate) -> bool:
    schedule = candidate.schedule
    if not isinstance(schedule, RecurringSchedule) or schedule.active_from is None:
        return False
    changed = False
    if definition.active_from > schedule.active_from:
        definition.active_from = schedule.active_from
        changed = True
    if definition.active_to is not None and definition.active_to < schedule.active_from:
        definition.active_to = None
        changed = True
    return changed


def _is_enrolled(db: Session, class_id: str, student_id: str) -> bool:
    query = select(Enrollment.id).where(Enrollment.class_id == class_id, Enrollment.student_id == student_id)
    return db.execute(query).first() is not None


def import_row(db: Session, candidate: ScheduleCandidate, actor_id: str | None) -> ImportResult:
    """Apply one imported row; replaying the same row never creates duplicates."""
    student_ids = candidate.distinct_student_ids()
    student_id = student_ids[0]
    _ensure_references(db, candidate, student_ids)

    existing = _find_exact_match(db, candidate)
    if existing is None:
        created = create_with_enrollment(db, candidate, actor_id)
        if created.conflict.has_conflict:
            logger.warning("Import row for instructor %s rejected by conflict check", candidate.instructor_id)
            return ImportResult(status="conflict", class_id=None, conflict=created.conflict)
        return ImportResult(status="created", class_id=created.class_id, conflict=created.conflict)

    class_id = existing.id
    if _widen_active_window(existing, candidate):
        with storage_guard(db, "active window update"):
            db.commit()
        logger.info("Widened active window of class %s", class_id)

    if _is_enrolled(db, class_id, student_id):
        return ImportResult(status="existing", class_id=class_id, conflict=ConflictResult())

    class_type = get_class_type(db, candidate.class_type_code)
    enrollment_count = db.execute(
        select(func.count(Enrollment.id)).where(Enrollment.class_id == class_id)
    ).scalar_one()
    if enrollment_count >= class_type.max_students:
        logger.warning("Import could not enroll %s into full class %s", student_id, class_id)
        return ImportResult(status="conflict", class_id=class_id, conflict=_capacity_conflict(class_type, class_id))

    try:
        db.add(Enrollment(class_id=class_id, student_id=student_id))
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        # Only a concurrent enrollment of the same student counts as "existing".
        if _is_enrolled(db, class_id, student_id):
            return ImportResult(status="existing", class_id=class_id, conflict=ConflictResult())
        logger.exception("Enrollment insert for class %s violated a constraint", class_id)
        raise StorageError(
            "Failed to enroll student",
            details={"class_id": class_id, "student_id": student_id},
        ) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Enrollment insert failed for class %s", class_id)
        raise StorageError("Failed to enroll student", details={"class_id": class_id}) from exc

    logger.info("Import enrolled student %s into class %s", student_id, class_id)
    return ImportResult(status="enrolled", class_id=class_id, conflict=ConflictResult())


def import_batch(db: Session, candidates: list[ScheduleCandidate], actor_id: str | None) -> list[ImportResult]:
    results = [import_row(db, candidate, actor_id) for candidate in candidates]
    counts: dict[str, int] = {}
    for result in results:
        counts[result.status] = counts.get(result.status, 0) + 1
    logger.info("Batch import of %d row(s) finished: %s", len(results), counts)
    return results
