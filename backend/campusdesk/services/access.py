from __future__ import annotations

from campusdesk.core.exceptions import PermissionDeniedError
from campusdesk.models.user import User, UserRole


def is_admin(user: User | None) -> bool:
    return user is not None and user.role == UserRole.admin


def owner_matches(user: User | None, owner_id: str | None) -> bool:
    return user is not None and owner_id is not None and str(user.id) == str(owner_id)


def can_access(user: User | None, owner_id: str | None) -> bool:
    return is_admin(user) or owner_matches(user, owner_id)


def ensure_can_access(user: User | None, owner_id: str | None) -> None:
    if not can_access(user, owner_id):
        raise PermissionDeniedError()
