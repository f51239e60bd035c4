from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

import campus_scheduler.models  # noqa: F401
from campus_scheduler.db.base import Base
from campus_scheduler.db.session import engine

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "academic_sessions": {"id", "name", "status"},
    "batches": {"id", "session_id", "department_id", "shift", "current_semester", "status"},
    "courses": {"id", "code", "course_type"},
    "session_courses": {"id", "session_id", "course_id", "department_id", "semester"},
    "instructor_assignments": {"id", "batch_id", "session_course_id", "teacher_id", "is_active"},
    "classrooms": {"id", "room_number", "room_type", "capacity", "is_active", "is_under_maintenance"},
    "schedule_proposals": {"id", "session_id", "status", "schedule_data", "metadata"},
    "course_schedules": {"id", "batch_id", "days_of_week", "start_time", "end_time", "status", "proposal_id"},
    "activity_logs": {"id", "action", "details"},
}


def missing_schema(connection: Connection) -> tuple[list[str], dict[str, list[str]]]:
    inspector = inspect(connection)
    table_names = set(inspector.get_table_names())
    missing_tables = sorted(name for name in REQUIRED_COLUMNS if name not in table_names)
    missing_columns: dict[str, list[str]] = {}
    for table_name, required in REQUIRED_COLUMNS.items():
        if table_name not in table_names:
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        missing = sorted(required - existing)
        if missing:
            missing_columns[table_name] = missing
    return missing_tables, missing_columns


def _assert_required_columns() -> None:
    with engine.connect() as connection:
        missing_tables, missing_columns = missing_schema(connection)
    if missing_tables:
        raise RuntimeError(f"Missing required tables: {', '.join(missing_tables)}")
    if missing_columns:
        flattened = [f"{table}.{column}" for table, columns in missing_columns.items() for column in columns]
        raise RuntimeError(f"Missing required columns: {', '.join(flattened)}")


def ensure_runtime_schema_compatibility() -> None:
    try:
        # Postgres schemas are owned by Alembic; SQLite development databases are created in place.
        if engine.dialect.name == "sqlite":
            Base.metadata.create_all(bind=engine)
        _assert_required_columns()
    except (SQLAlchemyError, RuntimeError) as exc:  # pragma: no cover - runtime environment dependent
        logger.exception("SCHEMA BOOTSTRAP FAILED | dialect=%s", engine.dialect.name)
        raise RuntimeError("Runtime schema compatibility bootstrap failed") from exc
    logger.info("SCHEMA BOOTSTRAP COMPLETE | dialect=%s", engine.dialect.name)
