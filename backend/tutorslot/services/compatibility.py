"""Class-type compatibility matrix lookups.

Rules are stored one direction per row and the table is not kept symmetric.
A candidate type is resolved against an existing type by trying the exact
pair first, then the reversed pair, then falling back to the defaults: a type
is compatible with itself and incompatible with anything else.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from sqlalchemy import and_, select
from sqlalchemy.orm import Session

from tutorslot.core.exceptions import ResourceNotFoundError, RuleConflictError
from tutorslot.models.catalog import ClassType, ClassTypeCompatibility

logger = logging.getLogger(__name__)

DEFAULT_INCOMPATIBLE_REASON = "Incompatible class type overlap"
SAME_TYPE_REASON = "same class type"


@dataclass(frozen=True)
class CompatibilityVerdict:
    is_compatible: bool
    reason: str


class CompatibilityPolicy:
    def __init__(self, rules: Iterable[ClassTypeCompatibility]):
        self._rules: dict[tuple[str, str], ClassTypeCompatibility] = {}
        for rule in rules:
            self._rules[(rule.class_type_a, rule.class_type_b)] = rule

    @classmethod
    def load(cls, db: Session, candidate_type: str, existing_types: Iterable[str]) -> "CompatibilityPolicy":
        existing = sorted(set(existing_types))
        if not existing:
            return cls([])
        direct = select(ClassTypeCompatibility).where(
            and_(
                ClassTypeCompatibility.class_type_a == candidate_type,
                ClassTypeCompatibility.class_type_b.in_(existing),
            )
        )
        reverse = select(ClassTypeCompatibility).where(
            and_(
                ClassTypeCompatibility.class_type_b == candidate_type,
                ClassTypeCompatibility.class_type_a.in_(existing),
            )
        )
        rows = list(db.execute(direct).scalars()) + list(db.execute(reverse).scalars())
        return cls(rows)

    def resolve(self, candidate_type: str, existing_type: str) -> CompatibilityVerdict:
        direct = self._rules.get((candidate_type, existing_type))
        reverse = self._rules.get((existing_type, candidate_type))
        if direct is not None:
            if reverse is not None and reverse.is_compatible != direct.is_compatible:
                logger.warning(
                    "Contradictory compatibility rules for %s/%s; using the %s -> %s direction",
                    candidate_type,
                    existing_type,
                    candidate_type,
                    existing_type,
                )
            return CompatibilityVerdict(direct.is_compatible, direct.reason or DEFAULT_INCOMPATIBLE_REASON)
        if reverse is not None:
            return CompatibilityVerdict(reverse.is_compatible, reverse.reason or DEFAULT_INCOMPATIBLE_REASON)
        if candidate_type == existing_type:
            return CompatibilityVerdict(True, SAME_TYPE_REASON)
        return CompatibilityVerdict(
            False,
            f"No compatibility rule defined for {candidate_type} vs {existing_type}",
        )


def list_rules(db: Session) -> list[ClassTypeCompatibility]:
    query = select(ClassTypeCompatibility).order_by(
        ClassTypeCompatibility.class_type_a,
        ClassTypeCompatibility.class_type_b,
    )
    return list(db.execute(query).scalars())


def upsert_rule(
    db: Session,
    *,
    class_type_a: str,
    class_type_b: str,
    is_compatible: bool,
    reason: str | None = None,
) -> ClassTypeCompatibility:
    for code in {class_type_a, class_type_b}:
        if db.get(ClassType, code) is None:
            raise ResourceNotFoundError("ClassType", code)

    if class_type_a != class_type_b:
        reverse = db.get(ClassTypeCompatibility, (class_type_b, class_type_a))
        if reverse is not None and reverse.is_compatible != is_compatible:
            raise RuleConflictError(
                f"Rule {class_type_b} -> {class_type_a} already says "
                f"{'compatible' if reverse.is_compatible else 'incompatible'}",
                details={
                    "class_type_a": class_type_b,
                    "class_type_b": class_type_a,
                    "is_compatible": reverse.is_compatible,
                },
            )

    rule = db.get(ClassTypeCompatibility, (class_type_a, class_type_b))
    if rule is None:
        rule = ClassTypeCompatibility(class_type_a=class_type_a, class_type_b=class_type_b)
        db.add(rule)
    rule.is_compatible = is_compatible
    rule.reason = reason
    return rule
