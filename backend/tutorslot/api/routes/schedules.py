from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from tutorslot.api.deps import get_current_actor, get_db
from tutorslot.schemas.override import OverrideOut, OverrideUpsert
from tutorslot.schemas.schedule import (
    ConflictResult,
    CreateScheduleResult,
    ImportBatchRequest,
    ImportBatchResult,
    ImportResult,
    MoveRequest,
    MoveResult,
    ScheduleCandidate,
    StatusLogOut,
    StatusUpdateOut,
    StatusUpdateRequest,
    WeekScheduleOut,
)
from tutorslot.services import overrides as override_service
from tutorslot.services import schedule_service
from tutorslot.services.audit import list_status_logs
from tutorslot.services.conflict_service import check_conflict
from tutorslot.services.materializer import build_viewer_scope, fetch_week

router = APIRouter()


@router.post("/check-conflict", response_model=ConflictResult)
def check_schedule_conflict(
    payload: ScheduleCandidate,
    db: Session = Depends(get_db),
) -> ConflictResult:
    return check_conflict(db, payload)


@router.post("", response_model=CreateScheduleResult, status_code=status.HTTP_201_CREATED)
def create_schedule(
    payload: ScheduleCandidate,
    response: Response,
    actor_id: str = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> CreateScheduleResult:
    result = schedule_service.create_with_enrollment(db, payload, actor_id)
    if result.conflict.has_conflict:
        response.status_code = status.HTTP_409_CONFLICT
    return result


@router.get("/week", response_model=WeekScheduleOut)
def get_week(
    week_start: date = Query(...),
    view: Literal["instructor", "student"] = Query(default="instructor"),
    viewer_id: str | None = Query(default=None, max_length=36),
    db: Session = Depends(get_db),
) -> WeekScheduleOut:
    return fetch_week(db, week_start, build_viewer_scope(view, viewer_id))


@router.post("/import", response_model=ImportResult)
def import_schedule_row(
    payload: ScheduleCandidate,
    response: Response,
    actor_id: str = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> ImportResult:
    result = schedule_service.import_row(db, payload, actor_id)
    if result.status == "conflict":
        response.status_code = status.HTTP_409_CONFLICT
    return result


@router.post("/import/batch", response_model=ImportBatchResult)
def import_schedule_batch(
    payload: ImportBatchRequest,
    actor_id: str = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> ImportBatchResult:
    return ImportBatchResult(results=schedule_service.import_batch(db, payload.items, actor_id))


@router.patch("/{class_id}/status", response_model=StatusUpdateOut)
def update_schedule_status(
    class_id: str,
    payload: StatusUpdateRequest,
    actor_id: str = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> StatusUpdateOut:
    return schedule_service.update_status(db, class_id, payload.status, actor_id, payload.reason)


@router.patch("/{class_id}/move", response_model=MoveResult)
def move_schedule_slot(
    class_id: str,
    payload: MoveRequest,
    response: Response,
    actor_id: str = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> MoveResult:
    result = schedule_service.move_slot(db, class_id, payload, actor_id)
    if not result.moved and result.conflict.has_conflict:
        response.status_code = status.HTTP_409_CONFLICT
    return result


@router.get("/{class_id}/status-logs", response_model=list[StatusLogOut])
def get_status_logs(class_id: str, db: Session = Depends(get_db)) -> list[StatusLogOut]:
    schedule_service.get_class_definition(db, class_id)
    return list_status_logs(db, class_id)


@router.get("/{class_id}/overrides", response_model=list[OverrideOut])
def get_overrides(class_id: str, db: Session = Depends(get_db)) -> list[OverrideOut]:
    return [override_service.override_to_out(item) for item in override_service.list_overrides(db, class_id)]


@router.put("/{class_id}/overrides/{override_date}", response_model=OverrideOut)
def put_override(
    class_id: str,
    override_date: date,
    payload: OverrideUpsert,
    actor_id: str = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> OverrideOut:
    record = override_service.set_override(db, class_id, override_date, payload, actor_id)
    return override_service.override_to_out(record)


@router.delete("/{class_id}/overrides/{override_date}")
def delete_override(
    class_id: str,
    override_date: date,
    actor_id: str = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> dict:
    override_service.clear_override(db, class_id, override_date, actor_id)
    return {"success": True}
