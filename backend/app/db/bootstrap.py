from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

import app.models  # noqa: F401
from app.db.base import Base
from app.db.session import engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "semester_schedules": {"id", "term_id", "class_id", "version", "status", "meta"},
    "semester_schedule_slots": {"id", "semester_schedule_id", "day_of_week", "time_slot", "subject_id", "teacher_id"},
    "schedules": {"id", "term_id", "class_id", "teacher_id", "day_of_week", "time_slot", "room"},
    "teacher_assignments": {"id", "class_id", "term_id", "subject_id", "teacher_id"},
    "teacher_preferences": {"id", "teacher_id", "max_load_per_day", "max_load_per_week", "unavailable"},
}


def find_schema_gaps(bind: Engine | None = None) -> tuple[list[str], dict[str, list[str]]]:
    """Tables and columns the scheduler needs that the connected database does not have."""
    missing_tables: list[str] = []
    missing_columns: dict[str, list[str]] = {}
    with (bind or engine).connect() as connection:
        inspector = inspect(connection)
        table_names = set(inspector.get_table_names())
        for table_name, columns in REQUIRED_COLUMNS.items():
            if table_name not in table_names:
                missing_tables.append(table_name)
                continue
            existing = {item["name"] for item in inspector.get_columns(table_name)}
            missing = sorted(columns - existing)
            if missing:
                missing_columns[table_name] = missing
    return missing_tables, missing_columns


def ensure_runtime_schema(bind: Engine | None = None) -> None:
    target = bind or engine
    try:
        # Migrations own the schema; this only fills in tables missing from a fresh dev database.
        Base.metadata.create_all(bind=target)
        missing_tables, missing_columns = find_schema_gaps(target)
    except Exception as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("Runtime schema bootstrap failed")
        raise RuntimeError("Runtime schema bootstrap failed") from exc
    if missing_tables or missing_columns:
        raise RuntimeError(
            "Database schema is missing required objects. "
            f"tables={missing_tables} columns={missing_columns}. Run alembic upgrade head."
        )
    logger.info("runtime_schema_ready | tables=%s", len(REQUIRED_COLUMNS))
