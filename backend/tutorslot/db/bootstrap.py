from __future__ import annotations

import logging

from sqlalchemy import Connection, inspect, text

import tutorslot.models  # noqa: F401
from tutorslot.core.config import get_settings
from tutorslot.db.base import Base
from tutorslot.db.seed import seed_reference_data
from tutorslot.db.session import SessionLocal, engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "instructors": {"id", "name", "days_off"},
    "students": {"id", "name"},
    "class_types": {"code", "max_students"},
    "class_type_compatibility": {"class_type_a", "class_type_b", "is_compatible"},
    "classes": {
        "id",
        "schedule_mode",
        "instructor_id",
        "class_type_code",
        "weekday",
        "class_date",
        "start_time",
        "end_time",
        "active_from",
        "active_to",
        "progress_status",
    },
    "class_enrollments": {"class_id", "student_id"},
    "class_overrides": {"class_id", "override_date", "action"},
    "class_status_logs": {"class_id", "status", "changed_by", "reason"},
}


def _ensure_instructor_days_off_column() -> None:
    with engine.begin() as connection:
        inspector = inspect(connection)
        if "instructors" not in set(inspector.get_table_names()):
            return
        column_names = {item["name"] for item in inspector.get_columns("instructors")}
        if "days_off" in column_names:
            return

        if connection.dialect.name == "postgresql":
            connection.execute(
                text("ALTER TABLE instructors ADD COLUMN days_off JSONB NOT NULL DEFAULT '[]'::jsonb")
            )
            return

        connection.execute(text("ALTER TABLE instructors ADD COLUMN days_off JSON NOT NULL DEFAULT '[]'"))


def find_schema_gaps(connection: Connection) -> tuple[list[str], dict[str, list[str]]]:
    """Return (missing tables, missing columns per table) against REQUIRED_COLUMNS."""
    inspector = inspect(connection)
    table_names = set(inspector.get_table_names())
    missing_tables = sorted(name for name in REQUIRED_COLUMNS if name not in table_names)
    missing_columns: dict[str, list[str]] = {}
    for table_name, required in REQUIRED_COLUMNS.items():
        if table_name not in table_names:
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        missing = sorted(required - existing)
        if missing:
            missing_columns[table_name] = missing
    return missing_tables, missing_columns


def _assert_required_columns() -> None:
    with engine.begin() as connection:
        missing_tables, missing_columns = find_schema_gaps(connection)
    if missing_tables:
        raise RuntimeError(f"Missing required tables: {', '.join(missing_tables)}")
    if missing_columns:
        flat = [f"{table}.{column}" for table, columns in missing_columns.items() for column in columns]
        raise RuntimeError(f"Missing required columns: {', '.join(flat)}")


def _seed_reference_data() -> None:
    with SessionLocal() as session:
        seed_reference_data(session)


def ensure_runtime_schema_compatibility() -> None:
    try:
        # Ensure missing tables are present before additive compatibility patches.
        Base.metadata.create_all(bind=engine)
        _ensure_instructor_days_off_column()
        _assert_required_columns()
        if get_settings().seed_reference_data:
            _seed_reference_data()
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema compatibility bootstrap failed")
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc
