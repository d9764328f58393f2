from __future__ import annotations

import logging

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from campusdesk.core.exceptions import ConflictError
from campusdesk.models.user import ApprovalStatus, User

logger = logging.getLogger(__name__)


def find_identity_clashes(db: Session, *, email: str, roll_number: str) -> list[User]:
    return list(
        db.execute(
            select(User).where(or_(User.email == email.lower(), User.roll_number == roll_number.upper()))
        ).scalars()
    )


def release_rejected_identities(db: Session, *, email: str, roll_number: str, conflict_suffix: str = "exists") -> None:
    """Raise on a live clash; drop rejected records so their email and roll number can be reused."""
    clashes = find_identity_clashes(db, email=email, roll_number=roll_number)
    for existing in clashes:
        if existing.approval_status != ApprovalStatus.rejected:
            if existing.email == email.lower():
                raise ConflictError(f"Email already {conflict_suffix}")
            raise ConflictError(f"Roll number already {conflict_suffix}")
    for existing in clashes:
        logger.info("Replacing rejected registration %s", existing.roll_number)
        db.delete(existing)
    if clashes:
        db.flush()
