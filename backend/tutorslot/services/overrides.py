from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from tutorslot.core.exceptions import ResourceNotFoundError, ScheduleValidationError
from tutorslot.models.class_definition import ClassDefinition, ScheduleMode
from tutorslot.models.class_override import ClassOverride
from tutorslot.models.instructor import Instructor
from tutorslot.schemas.override import OverrideOut, OverrideUpsert
from tutorslot.services.schedule_service import get_class_definition
from tutorslot.services.storage import storage_guard
from tutorslot.services.time_utils import format_clock, parse_clock, weekday_of

logger = logging.getLogger(__name__)


def _is_occurrence(definition: ClassDefinition, override_date: date) -> bool:
    if definition.schedule_mode == ScheduleMode.one_off:
        return definition.class_date == override_date
    if weekday_of(override_date) != definition.weekday:
        return False
    if override_date < definition.active_from:
        return False
    return definition.active_to is None or override_date <= definition.active_to


def override_to_out(record: ClassOverride) -> OverrideOut:
    return OverrideOut(
        id=record.id,
        class_id=record.class_id,
        override_date=record.override_date,
        action=record.action,
        instructor_id=record.override_instructor_id,
        start_time=format_clock(record.override_start_time) if record.override_start_time else None,
        end_time=format_clock(record.override_end_time) if record.override_end_time else None,
        status=record.override_status,
        note=record.note,
        created_at=record.created_at,
    )


def _find_override(db: Session, class_id: str, override_date: date) -> ClassOverride | None:
    query = select(ClassOverride).where(
        ClassOverride.class_id == class_id,
        ClassOverride.override_date == override_date,
    )
    return db.execute(query).scalar_one_or_none()


def list_overrides(db: Session, class_id: str) -> list[ClassOverride]:
    get_class_definition(db, class_id)
    query = select(ClassOverride).where(ClassOverride.class_id == class_id).order_by(ClassOverride.override_date)
    return list(db.execute(query).scalars())


def set_override(
    db: Session,
    class_id: str,
    override_date: date,
    payload: OverrideUpsert,
    actor_id: str | None,
) -> ClassOverride:
    """Create or replace the single exception recorded for one occurrence of a class."""
    definition = get_class_definition(db, class_id)
    if not _is_occurrence(definition, override_date):
        raise ScheduleValidationError(
            f"Class {class_id} does not meet on {override_date.isoformat()}",
            details={"class_id": class_id, "override_date": override_date.isoformat()},
        )
    if payload.instructor_id is not None and db.get(Instructor, payload.instructor_id) is None:
        raise ResourceNotFoundError("Instructor", payload.instructor_id)

    with storage_guard(db, "override upsert"):
        record = _find_override(db, class_id, override_date)
        if record is None:
            record = ClassOverride(class_id=class_id, override_date=override_date)
            db.add(record)
        record.action = payload.action
        record.override_instructor_id = payload.instructor_id
        record.override_start_time = parse_clock(payload.start_time) if payload.start_time else None
        record.override_end_time = parse_clock(payload.end_time) if payload.end_time else None
        record.override_status = payload.status
        record.note = payload.note
        db.commit()
    db.refresh(record)

    logger.info(
        "Override %s set on class %s for %s by %s",
        payload.action.value,
        class_id,
        override_date.isoformat(),
        actor_id,
    )
    return record


def clear_override(db: Session, class_id: str, override_date: date, actor_id: str | None) -> None:
    get_class_definition(db, class_id)
    record = _find_override(db, class_id, override_date)
    if record is None:
        raise ResourceNotFoundError("Override", f"{class_id}:{override_date.isoformat()}")
    with storage_guard(db, "override delete"):
        db.delete(record)
        db.commit()
    logger.info("Override cleared on class %s for %s by %s", class_id, override_date.isoformat(), actor_id)
