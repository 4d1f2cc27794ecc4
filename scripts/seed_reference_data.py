"""Seed class types, subjects and the compatibility matrix, plus an optional demo roster.

Run:
  PYTHONPATH=backend python scripts/seed_reference_data.py
"""

from __future__ import annotations

import os

from sqlalchemy import select

from tutorslot.db.bootstrap import ensure_runtime_schema_compatibility
from tutorslot.db.seed import seed_reference_data
from tutorslot.db.session import SessionLocal
from tutorslot.models.instructor import Instructor
from tutorslot.models.student import Student

SEED_DEMO_ROSTER = os.getenv("SEED_DEMO_ROSTER", "false").strip().lower() in {"1", "true", "yes", "on"}

DEMO_INSTRUCTORS = [
    {"name": "Kim Minji", "days_off": [7]},
    {"name": "Park Jisoo", "days_off": [6, 7]},
]
DEMO_STUDENTS = ["Lee Hana", "Choi Yuna", "Jung Doyun", "Kang Seoah"]


def _seed_demo_roster(session) -> tuple[int, int]:
    instructors: list[Instructor] = []
    for item in DEMO_INSTRUCTORS:
        existing = session.execute(select(Instructor).where(Instructor.name == item["name"])).scalar_one_or_none()
        if existing is None:
            existing = Instructor(name=item["name"], days_off=item["days_off"])
            session.add(existing)
        instructors.append(existing)
    session.flush()

    added_students = 0
    for index, name in enumerate(DEMO_STUDENTS):
        if session.execute(select(Student.id).where(Student.name == name)).first() is not None:
            continue
        session.add(Student(name=name, default_instructor_id=instructors[index % len(instructors)].id))
        added_students += 1
    session.commit()
    return len(instructors), added_students


def main() -> None:
    ensure_runtime_schema_compatibility()
    with SessionLocal() as session:
        added = seed_reference_data(session)
        print(f"Reference rows added: {added}")
        if SEED_DEMO_ROSTER:
            instructor_count, student_count = _seed_demo_roster(session)
            print(f"Demo roster: {instructor_count} instructor(s), {student_count} new student(s)")


if __name__ == "__main__":
    main()
