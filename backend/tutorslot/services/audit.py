from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from tutorslot.models.class_definition import ScheduleStatus
from tutorslot.models.status_log import ClassStatusLog


def log_status_change(
    db: Session,
    *,
    class_id: str,
    status: ScheduleStatus,
    changed_by: str | None,
    reason: str | None = None,
) -> ClassStatusLog:
    record = ClassStatusLog(
        class_id=class_id,
        status=status,
        changed_by=changed_by,
        reason=reason,
    )
    db.add(record)
    return record


def list_status_logs(db: Session, class_id: str) -> list[ClassStatusLog]:
    query = (
        select(ClassStatusLog)
        .where(ClassStatusLog.class_id == class_id)
        .order_by(ClassStatusLog.changed_at.desc(), ClassStatusLog.id.desc())
    )
    return list(db.execute(query).scalars())
