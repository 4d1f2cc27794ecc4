from __future__ import annotations

import logging
import re

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from tutorslot.core.exceptions import ResourceNotFoundError, RuleConflictError, ScheduleValidationError
from tutorslot.models.catalog import ClassType, Subject
from tutorslot.models.class_definition import ClassDefinition
from tutorslot.models.instructor import Instructor
from tutorslot.models.student import Student
from tutorslot.schemas.catalog import ClassTypeOption, InstructorOption, OptionsOut, StudentOption, SubjectOption
from tutorslot.services.storage import storage_guard

logger = logging.getLogger(__name__)

SUBJECT_CODE_DISALLOWED = re.compile(r"[^A-Z0-9_]")


def list_options(db: Session) -> OptionsOut:
    instructors = db.execute(
        select(Instructor).where(Instructor.is_active.is_(True)).order_by(Instructor.name)
    ).scalars()
    students = db.execute(select(Student).where(Student.is_active.is_(True)).order_by(Student.name)).scalars()
    subjects = db.execute(select(Subject).order_by(Subject.display_name)).scalars()
    class_types = db.execute(select(ClassType).order_by(ClassType.display_name)).scalars()

    return OptionsOut(
        instructors=[
            InstructorOption(id=item.id, name=item.name, days_off=sorted(item.days_off or []))
            for item in instructors
        ],
        students=[
            StudentOption(id=item.id, name=item.name, default_instructor_id=item.default_instructor_id)
            for item in students
        ],
        subjects=[SubjectOption(code=item.code, label=item.display_name) for item in subjects],
        class_types=[
            ClassTypeOption(
                code=item.code,
                label=item.display_name,
                badge_text=item.badge_text,
                max_students=item.max_students,
            )
            for item in class_types
        ],
    )


def set_days_off(db: Session, instructor_id: str, days_off: list[int]) -> Instructor:
    instructor = db.get(Instructor, instructor_id)
    if instructor is None:
        raise ResourceNotFoundError("Instructor", instructor_id)
    with storage_guard(db, "days off update"):
        instructor.days_off = sorted(set(days_off))
        db.commit()
    db.refresh(instructor)
    logger.info("Instructor %s days off set to %s", instructor_id, instructor.days_off)
    return instructor


def normalize_subject_code(value: str) -> str:
    """Upper-case the code and replace anything outside A-Z, 0-9 and underscore with an underscore."""
    return SUBJECT_CODE_DISALLOWED.sub("_", value.strip().upper())


def _require_subject_code(value: str) -> str:
    code = normalize_subject_code(value)
    if not code:
        raise ScheduleValidationError("Subject code is required", details={"code": value})
    return code


def _get_subject(db: Session, code: str) -> Subject:
    subject = db.get(Subject, code)
    if subject is None:
        raise ResourceNotFoundError("Subject", code)
    return subject


def list_subjects(db: Session) -> list[Subject]:
    return list(db.execute(select(Subject).order_by(Subject.display_name, Subject.code)).scalars())


def upsert_subject(db: Session, code: str, display_name: str) -> Subject:
    code = _require_subject_code(code)
    with storage_guard(db, "subject upsert"):
        subject = db.get(Subject, code)
        if subject is None:
            subject = Subject(code=code, display_name=display_name)
            db.add(subject)
        else:
            subject.display_name = display_name
        db.commit()
    db.refresh(subject)
    logger.info("Subject %s saved as %r", code, display_name)
    return subject


def update_subject(db: Session, code: str, display_name: str) -> Subject:
    subject = _get_subject(db, _require_subject_code(code))
    with storage_guard(db, "subject update"):
        subject.display_name = display_name
        db.commit()
    db.refresh(subject)
    logger.info("Subject %s renamed to %r", subject.code, display_name)
    return subject


def delete_subject(db: Session, code: str) -> None:
    code = _require_subject_code(code)
    subject = _get_subject(db, code)
    in_use = db.execute(
        select(func.count(ClassDefinition.id)).where(ClassDefinition.subject_code == code)
    ).scalar_one()
    if in_use:
        raise RuleConflictError(
            "Subject is still used by scheduled classes",
            details={"code": code, "class_count": in_use},
        )
    with storage_guard(db, "subject delete"):
        db.delete(subject)
        db.commit()
    logger.info("Subject %s deleted", code)
