"""Who may see which announcement."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import and_, false, or_, true
from sqlalchemy.sql.elements import ColumnElement

from campusdesk.models.announcement import Announcement, TargetAudience
from campusdesk.models.user import User, UserRole

AUDIENCE_ROLES = (UserRole.student, UserRole.class_representative)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_expired(announcement: Announcement, *, now: datetime | None = None) -> bool:
    expiry = _as_utc(announcement.expiry_date)
    return expiry is not None and expiry < (now or datetime.now(timezone.utc))


def targets(announcement: Announcement, viewer: User | None) -> bool:
    """Does the targeting rule include ``viewer``? Anonymous callers only get ``all``."""
    audience = announcement.target_audience
    if audience == TargetAudience.all:
        return True
    if viewer is None:
        return False
    if viewer.role == UserRole.admin:
        return True
    if viewer.role not in AUDIENCE_ROLES:
        return False
    if audience == TargetAudience.students:
        return True
    if audience == TargetAudience.specific_year:
        return announcement.target_year == viewer.year
    if audience == TargetAudience.specific_department:
        return announcement.target_department == viewer.department.value
    return False


def is_visible_to(announcement: Announcement, viewer: User | None, *, now: datetime | None = None) -> bool:
    if viewer is not None and viewer.role == UserRole.admin:
        return True
    if not announcement.is_active or is_expired(announcement, now=now):
        return False
    return targets(announcement, viewer)


def audience_clause(viewer: User | None) -> ColumnElement[bool]:
    """SQL equivalent of :func:`targets` for list queries."""
    if viewer is None:
        return Announcement.target_audience == TargetAudience.all
    if viewer.role == UserRole.admin:
        return true()
    if viewer.role not in AUDIENCE_ROLES:
        return false()
    return or_(
        Announcement.target_audience == TargetAudience.all,
        Announcement.target_audience == TargetAudience.students,
        and_(
            Announcement.target_audience == TargetAudience.specific_year,
            Announcement.target_year == viewer.year,
        ),
        and_(
            Announcement.target_audience == TargetAudience.specific_department,
            Announcement.target_department == viewer.department.value,
        ),
    )


def current_clause(*, now: datetime | None = None) -> ColumnElement[bool]:
    moment = now or datetime.now(timezone.utc)
    return and_(
        Announcement.is_active.is_(True),
        or_(Announcement.expiry_date.is_(None), Announcement.expiry_date >= moment),
    )
