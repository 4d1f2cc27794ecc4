from datetime import date

import pytest
from pydantic import ValidationError

from tutorslot.core.exceptions import ResourceNotFoundError, ScheduleValidationError
from tutorslot.models.class_override import OverrideAction
from tutorslot.schemas.override import OverrideUpsert
from tutorslot.schemas.schedule import ScheduleCandidate
from tutorslot.services.overrides import clear_override, list_overrides, set_override
from tutorslot.services.schedule_service import create_with_enrollment


@pytest.fixture()
def class_id(db, make_instructor, make_student):
    candidate = ScheduleCandidate(
        instructor_id=make_instructor().id,
        student_ids=[make_student().id],
        subject_code="MATH",
        class_type_code="ONE_TO_ONE",
        schedule={"mode": "recurring", "weekday": 1, "active_from": "2024-01-01", "active_to": "2024-06-30"},
        start_time="17:00",
        end_time="18:00",
    )
    return create_with_enrollment(db, candidate, "actor-1").class_id


def test_setting_override_twice_replaces_it(db, class_id):
    set_override(db, class_id, date(2024, 1, 8), OverrideUpsert(action=OverrideAction.cancel), "actor-1")
    set_override(
        db,
        class_id,
        date(2024, 1, 8),
        OverrideUpsert(action=OverrideAction.reschedule, start_time="18:00", end_time="19:00"),
        "actor-1",
    )

    records = list_overrides(db, class_id)

    assert len(records) == 1
    assert records[0].action == OverrideAction.reschedule


def test_override_must_target_an_occurrence(db, class_id):
    with pytest.raises(ScheduleValidationError):
        set_override(db, class_id, date(2024, 1, 9), OverrideUpsert(action=OverrideAction.cancel), "actor-1")
    with pytest.raises(ScheduleValidationError):
        set_override(db, class_id, date(2024, 7, 1), OverrideUpsert(action=OverrideAction.cancel), "actor-1")


def test_override_rejects_unknown_substitute(db, class_id):
    payload = OverrideUpsert(action=OverrideAction.reschedule, instructor_id="nobody")

    with pytest.raises(ResourceNotFoundError):
        set_override(db, class_id, date(2024, 1, 8), payload, "actor-1")


def test_clear_override(db, class_id):
    set_override(db, class_id, date(2024, 1, 8), OverrideUpsert(action=OverrideAction.cancel), "actor-1")

    clear_override(db, class_id, date(2024, 1, 8), "actor-1")

    assert list_overrides(db, class_id) == []
    with pytest.raises(ResourceNotFoundError):
        clear_override(db, class_id, date(2024, 1, 8), "actor-1")


def test_override_payload_rules():
    with pytest.raises(ValidationError):
        OverrideUpsert(action=OverrideAction.reschedule)
    with pytest.raises(ValidationError):
        OverrideUpsert(action=OverrideAction.cancel, start_time="10:00", end_time="11:00")
    with pytest.raises(ValidationError):
        OverrideUpsert(action=OverrideAction.reschedule, start_time="10:00")
    with pytest.raises(ValidationError):
        OverrideUpsert(action=OverrideAction.reschedule, start_time="11:00", end_time="10:00")
