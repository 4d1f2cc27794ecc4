from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from tutorslot.api.deps import get_current_actor, get_db
from tutorslot.schemas.catalog import DaysOffOut, DaysOffUpdate
from tutorslot.services.catalog import set_days_off

router = APIRouter()


@router.patch("/{instructor_id}/days-off", response_model=DaysOffOut)
def update_days_off(
    instructor_id: str,
    payload: DaysOffUpdate,
    actor_id: str = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> DaysOffOut:
    instructor = set_days_off(db, instructor_id, payload.days_off)
    return DaysOffOut(id=instructor.id, days_off=instructor.days_off or [])
