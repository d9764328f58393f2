from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from campusdesk.models.activity_log import ActivityLog
from campusdesk.models.user import User

logger = logging.getLogger(__name__)


def log_activity(
    db: Session,
    *,
    user: User | None,
    action: str,
    entity_type: str | None = None,
    entity_id: str | None = None,
    details: dict | None = None,
) -> ActivityLog:
    """Stage an audit row in the caller's transaction; it commits with the change it describes."""
    record = ActivityLog(
        user_id=user.id if user is not None else None,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=details or {},
    )
    db.add(record)
    logger.info(
        "%s %s/%s by %s",
        action,
        entity_type or "-",
        entity_id or "-",
        user.roll_number if user is not None else "anonymous",
    )
    return record
