import pytest

from tutorslot.core.exceptions import ResourceNotFoundError, RuleConflictError
from tutorslot.models.catalog import ClassType, ClassTypeCompatibility
from tutorslot.services.compatibility import (
    DEFAULT_INCOMPATIBLE_REASON,
    SAME_TYPE_REASON,
    CompatibilityPolicy,
    list_rules,
    upsert_rule,
)


def _rule(type_a, type_b, is_compatible, reason=None):
    return ClassTypeCompatibility(
        class_type_a=type_a,
        class_type_b=type_b,
        is_compatible=is_compatible,
        reason=reason,
    )


def test_reverse_rule_is_used_when_direct_rule_is_missing():
    policy = CompatibilityPolicy([_rule("X", "Y", True, "shared room")])

    verdict = policy.resolve("Y", "X")

    assert verdict.is_compatible is True
    assert verdict.reason == "shared room"


def test_direct_rule_wins_over_reverse_rule():
    policy = CompatibilityPolicy([_rule("X", "Y", False, "direct"), _rule("Y", "X", True, "reverse")])

    assert policy.resolve("X", "Y").reason == "direct"
    assert policy.resolve("Y", "X").reason == "reverse"


def test_same_type_without_rule_defaults_to_compatible():
    verdict = CompatibilityPolicy([]).resolve("ONE_TO_ONE", "ONE_TO_ONE")

    assert verdict.is_compatible is True
    assert verdict.reason == SAME_TYPE_REASON


def test_missing_rule_between_types_is_incompatible():
    verdict = CompatibilityPolicy([]).resolve("A", "B")

    assert verdict.is_compatible is False
    assert "A" in verdict.reason and "B" in verdict.reason


def test_incompatible_rule_without_reason_gets_default_reason():
    verdict = CompatibilityPolicy([_rule("A", "B", False)]).resolve("A", "B")

    assert verdict.reason == DEFAULT_INCOMPATIBLE_REASON


def test_load_reads_both_directions(db):
    policy = CompatibilityPolicy.load(db, "ONE_TO_ONE", {"SPECIAL", "REGULAR_MULTI"})

    assert policy.resolve("ONE_TO_ONE", "SPECIAL").is_compatible is False
    assert policy.resolve("SPECIAL", "ONE_TO_ONE").is_compatible is False
    assert policy.resolve("ONE_TO_ONE", "REGULAR_MULTI").is_compatible is False


def test_seeded_matrix_only_allows_shared_group_slots(db):
    rules = list_rules(db)
    compatible = {(rule.class_type_a, rule.class_type_b) for rule in rules if rule.is_compatible}

    assert len(rules) == 16
    assert compatible == {("REGULAR_MULTI", "REGULAR_MULTI"), ("SPECIAL", "SPECIAL")}


def test_upsert_rule_updates_existing_row(db):
    rule = upsert_rule(
        db,
        class_type_a="SPECIAL",
        class_type_b="SPECIAL",
        is_compatible=False,
        reason="One lecture at a time",
    )
    db.commit()

    assert rule.is_compatible is False
    assert db.get(ClassTypeCompatibility, ("SPECIAL", "SPECIAL")).reason == "One lecture at a time"


def test_upsert_rule_rejects_contradicting_reverse_rule(db):
    with pytest.raises(RuleConflictError):
        upsert_rule(db, class_type_a="ONE_TO_ONE", class_type_b="SPECIAL", is_compatible=True)


def test_upsert_rule_accepts_matching_reverse_rule(db):
    db.add(ClassType(code="TRIAL", display_name="Trial", badge_text="[Trial]", max_students=1))
    db.commit()

    upsert_rule(db, class_type_a="TRIAL", class_type_b="ONE_TO_ONE", is_compatible=True)
    db.commit()
    upsert_rule(db, class_type_a="ONE_TO_ONE", class_type_b="TRIAL", is_compatible=True)
    db.commit()

    assert db.get(ClassTypeCompatibility, ("ONE_TO_ONE", "TRIAL")).is_compatible is True


def test_upsert_rule_requires_known_types(db):
    with pytest.raises(ResourceNotFoundError):
        upsert_rule(db, class_type_a="GHOST", class_type_b="SPECIAL", is_compatible=False)
