from __future__ import annotations

import logging

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from campusdesk.db.base import Base
from campusdesk.db.session import engine as default_engine
import campusdesk.models  # noqa: F401

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, set[str]] = {
    "users": {"id", "roll_number", "email", "role", "approval_status", "class_name"},
    "bookings": {"id", "student_id", "room", "date", "start_time", "end_time", "status"},
    "booking_room_locks": {"room", "date"},
    "issues": {"id", "student_id", "status", "attachments", "affected_components"},
    "announcements": {"id", "target_audience", "expiry_date", "views"},
    "announcement_views": {"announcement_id", "user_id"},
}


def missing_schema(bind: Engine) -> dict[str, list[str]]:
    inspector = inspect(bind)
    table_names = set(inspector.get_table_names())
    missing: dict[str, list[str]] = {}
    for table_name, columns in REQUIRED_COLUMNS.items():
        if table_name not in table_names:
            missing[table_name] = sorted(columns)
            continue
        existing = {item["name"] for item in inspector.get_columns(table_name)}
        absent = sorted(columns - existing)
        if absent:
            missing[table_name] = absent
    return missing


def ensure_database_schema(bind: Engine | None = None) -> None:
    bind = bind or default_engine
    try:
        Base.metadata.create_all(bind=bind)
        missing = missing_schema(bind)
        if missing:
            raise RuntimeError(f"Missing tables or columns: {missing}")
    except Exception as exc:
        logger.exception("Database schema bootstrap failed")
        raise RuntimeError("Database schema bootstrap failed. Run `alembic upgrade head` and restart backend.") from exc
    logger.info("Database schema ready")
