from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from tutorslot.api.deps import get_current_actor, get_db
from tutorslot.schemas.catalog import SubjectIn, SubjectOut, SubjectUpdate
from tutorslot.services import catalog

router = APIRouter()


@router.get("", response_model=list[SubjectOut])
def get_subjects(db: Session = Depends(get_db)) -> list[SubjectOut]:
    return catalog.list_subjects(db)


@router.post("", response_model=SubjectOut, status_code=status.HTTP_201_CREATED)
def save_subject(
    payload: SubjectIn,
    actor_id: str = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> SubjectOut:
    return catalog.upsert_subject(db, payload.code, payload.display_name)


@router.patch("/{code}", response_model=SubjectOut)
def rename_subject(
    code: str,
    payload: SubjectUpdate,
    actor_id: str = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> SubjectOut:
    return catalog.update_subject(db, code, payload.display_name)


@router.delete("/{code}")
def remove_subject(
    code: str,
    actor_id: str = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> dict:
    catalog.delete_subject(db, code)
    return {"success": True}
