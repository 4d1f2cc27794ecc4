from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter
from fastapi.responses import JSONResponse
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from tutorslot.db.bootstrap import find_schema_gaps
from tutorslot.db.session import engine
from tutorslot.models.catalog import ClassType

router = APIRouter()
logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health")
def health() -> dict:
    return {"status": "ok"}


@router.get("/health/live")
def health_live() -> dict:
    return {"status": "ok", "timestamp": _now()}


@router.get("/health/ready")
def health_ready() -> JSONResponse:
    """Readiness: the store answers, the schema is complete and class types exist."""
    database = {
        "ok": False,
        "schema_ok": False,
        "missing_tables": [],
        "missing_columns": {},
        "class_type_count": 0,
        "error": None,
    }
    try:
        with engine.connect() as connection:
            missing_tables, missing_columns = find_schema_gaps(connection)
            database.update(ok=True, missing_tables=missing_tables, missing_columns=missing_columns)
            database["schema_ok"] = not missing_tables and not missing_columns
            if "class_types" not in missing_tables:
                database["class_type_count"] = connection.execute(
                    select(func.count()).select_from(ClassType)
                ).scalar_one()
    except SQLAlchemyError as exc:
        logger.warning("Readiness probe could not reach the database: %s", exc)
        database["error"] = str(exc)

    ready = database["ok"] and database["schema_ok"]
    return JSONResponse(
        status_code=200 if ready else 503,
        content={"status": "ok" if ready else "degraded", "timestamp": _now(), "database": database},
    )
