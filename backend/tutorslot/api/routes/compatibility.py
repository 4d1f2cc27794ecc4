import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from tutorslot.api.deps import get_current_actor, get_db
from tutorslot.schemas.catalog import CompatibilityRuleIn, CompatibilityRuleOut
from tutorslot.services.compatibility import list_rules, upsert_rule
from tutorslot.services.storage import storage_guard

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("", response_model=list[CompatibilityRuleOut])
def get_rules(db: Session = Depends(get_db)) -> list[CompatibilityRuleOut]:
    return list_rules(db)


@router.put("", response_model=CompatibilityRuleOut)
def put_rule(
    payload: CompatibilityRuleIn,
    actor_id: str = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> CompatibilityRuleOut:
    with storage_guard(db, "compatibility rule upsert"):
        rule = upsert_rule(
            db,
            class_type_a=payload.class_type_a,
            class_type_b=payload.class_type_b,
            is_compatible=payload.is_compatible,
            reason=payload.reason,
        )
        db.commit()
    db.refresh(rule)
    logger.info(
        "Compatibility %s -> %s set to %s by %s",
        rule.class_type_a,
        rule.class_type_b,
        rule.is_compatible,
        actor_id,
    )
    return rule
