from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from tutorslot.api.deps import get_db
from tutorslot.schemas.catalog import OptionsOut
from tutorslot.services.catalog import list_options

router = APIRouter()


@router.get("/options", response_model=OptionsOut)
def get_options(db: Session = Depends(get_db)) -> OptionsOut:
    return list_options(db)
