import pytest
from sqlalchemy import func, inspect, select

from tutorslot.db import bootstrap
from tutorslot.db.base import Base
from tutorslot.db.seed import DEFAULT_COMPATIBILITY
from tutorslot.models.catalog import ClassTypeCompatibility


def _raise_error(message: str):
    raise RuntimeError(message)


def test_runtime_schema_bootstrap_raises_on_validation_failure(monkeypatch):
    monkeypatch.setattr(bootstrap.Base.metadata, "create_all", lambda bind: None)
    monkeypatch.setattr(bootstrap, "_ensure_instructor_days_off_column", lambda: None)
    monkeypatch.setattr(
        bootstrap,
        "_assert_required_columns",
        lambda: _raise_error("missing required schema"),
    )

    with pytest.raises(RuntimeError, match="Runtime schema compatibility bootstrap failed"):
        bootstrap.ensure_runtime_schema_compatibility()


def test_days_off_column_is_added_to_older_schema(engine, monkeypatch):
    monkeypatch.setattr(bootstrap, "engine", engine)
    with engine.begin() as connection:
        connection.exec_driver_sql("DROP TABLE students")
        connection.exec_driver_sql("DROP TABLE instructors")
        connection.exec_driver_sql("CREATE TABLE instructors (id VARCHAR(36) PRIMARY KEY, name VARCHAR(200))")

    bootstrap._ensure_instructor_days_off_column()

    columns = {item["name"] for item in inspect(engine).get_columns("instructors")}
    assert "days_off" in columns


def test_bootstrap_seeds_reference_data_when_enabled(engine, session_factory, monkeypatch):
    Base.metadata.drop_all(bind=engine)
    monkeypatch.setattr(bootstrap, "engine", engine)
    monkeypatch.setattr(bootstrap, "SessionLocal", session_factory)
    monkeypatch.setattr(bootstrap.get_settings(), "seed_reference_data", True)

    bootstrap.ensure_runtime_schema_compatibility()

    with session_factory() as session:
        count = session.execute(select(func.count()).select_from(ClassTypeCompatibility)).scalar_one()
        assert count == len(DEFAULT_COMPATIBILITY)
