"""Default reference data: subjects, class types and the compatibility matrix."""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from tutorslot.models.catalog import ClassType, ClassTypeCompatibility, Subject

logger = logging.getLogger(__name__)

DEFAULT_SUBJECTS = [
    {"code": "MATH", "display_name": "Mathematics"},
    {"code": "ENGLISH", "display_name": "English"},
]

DEFAULT_CLASS_TYPES = [
    {"code": "ONE_TO_ONE", "display_name": "1:1", "badge_text": "[1:1]", "max_students": 1},
    {"code": "TWO_TO_ONE", "display_name": "2:1", "badge_text": "[2:1]", "max_students": 2},
    {"code": "REGULAR_MULTI", "display_name": "Regular group", "badge_text": "[Regular]", "max_students": 8},
    {"code": "SPECIAL", "display_name": "Special lecture", "badge_text": "[Special]", "max_students": 20},
]

# (candidate type, existing type, compatible, reason)
DEFAULT_COMPATIBILITY = [
    ("ONE_TO_ONE", "ONE_TO_ONE", False, "An instructor cannot teach two 1:1 classes at the same time."),
    ("ONE_TO_ONE", "TWO_TO_ONE", False, "1:1 and 2:1 classes cannot overlap for one instructor."),
    ("ONE_TO_ONE", "REGULAR_MULTI", False, "A 1:1 class cannot be placed in a regular group slot."),
    ("ONE_TO_ONE", "SPECIAL", False, "A 1:1 class cannot overlap a special lecture."),
    ("TWO_TO_ONE", "ONE_TO_ONE", False, "2:1 and 1:1 classes cannot overlap for one instructor."),
    ("TWO_TO_ONE", "TWO_TO_ONE", False, "An instructor cannot teach two 2:1 classes at the same time."),
    ("TWO_TO_ONE", "REGULAR_MULTI", False, "A 2:1 class cannot be placed in a regular group slot."),
    ("TWO_TO_ONE", "SPECIAL", False, "A 2:1 class cannot overlap a special lecture."),
    ("REGULAR_MULTI", "ONE_TO_ONE", False, "A regular group slot cannot take a 1:1 class."),
    ("REGULAR_MULTI", "TWO_TO_ONE", False, "A regular group slot cannot take a 2:1 class."),
    ("REGULAR_MULTI", "REGULAR_MULTI", True, "Same regular group slot means adding students to it."),
    ("REGULAR_MULTI", "SPECIAL", False, "Regular groups and special lectures cannot overlap."),
    ("SPECIAL", "ONE_TO_ONE", False, "A special lecture cannot overlap a 1:1 class."),
    ("SPECIAL", "TWO_TO_ONE", False, "A special lecture cannot overlap a 2:1 class."),
    ("SPECIAL", "REGULAR_MULTI", False, "A special lecture cannot overlap a regular group."),
    ("SPECIAL", "SPECIAL", True, "Same special lecture slot means adding students to it."),
]


def seed_reference_data(db: Session) -> int:
    """Insert any missing reference rows without touching existing ones; returns rows added."""
    added = 0
    for item in DEFAULT_SUBJECTS:
        if db.get(Subject, item["code"]) is None:
            db.add(Subject(**item))
            added += 1
    for item in DEFAULT_CLASS_TYPES:
        if db.get(ClassType, item["code"]) is None:
            db.add(ClassType(**item))
            added += 1
    db.flush()
    for type_a, type_b, is_compatible, reason in DEFAULT_COMPATIBILITY:
        if db.get(ClassTypeCompatibility, (type_a, type_b)) is None:
            db.add(
                ClassTypeCompatibility(
                    class_type_a=type_a,
                    class_type_b=type_b,
                    is_compatible=is_compatible,
                    reason=reason,
                )
            )
            added += 1
    db.commit()
    if added:
        logger.info("Seeded %d reference row(s)", added)
    return added
