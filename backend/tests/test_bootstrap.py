import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool

from app.db import bootstrap


def _memory_engine():
    return create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


def test_runtime_schema_bootstrap_creates_missing_tables():
    engine = _memory_engine()

    bootstrap.ensure_runtime_schema(engine)

    assert bootstrap.find_schema_gaps(engine) == ([], {})
    engine.dispose()


def test_schema_gaps_report_missing_tables_and_columns():
    engine = _memory_engine()
    with engine.begin() as connection:
        connection.execute(text("CREATE TABLE schedules (id VARCHAR(36) PRIMARY KEY, term_id VARCHAR(36))"))

    missing_tables, missing_columns = bootstrap.find_schema_gaps(engine)

    assert "semester_schedules" in missing_tables
    assert "schedules" not in missing_tables
    assert missing_columns["schedules"] == ["class_id", "day_of_week", "room", "teacher_id", "time_slot"]
    engine.dispose()


def test_runtime_schema_bootstrap_raises_when_columns_are_missing(monkeypatch):
    monkeypatch.setattr(bootstrap.Base.metadata, "create_all", lambda bind: None)
    monkeypatch.setattr(
        bootstrap,
        "find_schema_gaps",
        lambda bind=None: ([], {"schedules": ["room"]}),
    )

    with pytest.raises(RuntimeError, match="missing required objects"):
        bootstrap.ensure_runtime_schema(_memory_engine())


def test_runtime_schema_bootstrap_wraps_inspection_errors(monkeypatch):
    def _boom(bind=None):
        raise ValueError("inspector unavailable")

    monkeypatch.setattr(bootstrap.Base.metadata, "create_all", lambda bind: None)
    monkeypatch.setattr(bootstrap, "find_schema_gaps", _boom)

    with pytest.raises(RuntimeError, match="Runtime schema bootstrap failed"):
        bootstrap.ensure_runtime_schema(_memory_engine())
