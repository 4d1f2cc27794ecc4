import os

# Point the app engine at an in-memory database before tutorslot reads its settings.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tutorslot.api.deps import get_db
from tutorslot.core.security import create_access_token
from tutorslot.db.base import Base
from tutorslot.db.seed import seed_reference_data
from tutorslot.main import app
from tutorslot.models.instructor import Instructor
from tutorslot.models.student import Student


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    seed_reference_data(session)
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(db, session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def auth_headers():
    return {"Authorization": f"Bearer {create_access_token('actor-1')}"}


@pytest.fixture()
def make_instructor(db):
    def _make(name: str = "Kim", days_off: list[int] | None = None) -> Instructor:
        instructor = Instructor(name=name, days_off=days_off or [])
        db.add(instructor)
        db.commit()
        return instructor

    return _make


@pytest.fixture()
def make_student(db):
    def _make(name: str = "Lee", default_instructor_id: str | None = None) -> Student:
        student = Student(name=name, default_instructor_id=default_instructor_id)
        db.add(student)
        db.commit()
        return student

    return _make
