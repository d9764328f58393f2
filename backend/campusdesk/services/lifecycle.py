"""Status transitions for bookings, issues and account approval.

Handlers never assign status fields directly; they call these functions,
which either apply the whole transition (status plus audit stamps) or raise
``ConflictError`` and leave the record untouched.
"""

from __future__ import annotations

from datetime import datetime, timezone

from campusdesk.core.exceptions import ConflictError
from campusdesk.models.booking import Booking, BookingStatus
from campusdesk.models.issue import TERMINAL_ISSUE_STATUSES, Issue, IssueStatus
from campusdesk.models.user import ApprovalStatus, User

BOOKING_DECISIONS = (BookingStatus.approved, BookingStatus.rejected)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def decide_booking(
    booking: Booking,
    *,
    decision: BookingStatus,
    admin: User,
    admin_notes: str | None = None,
    now: datetime | None = None,
) -> Booking:
    if decision not in BOOKING_DECISIONS:
        raise ConflictError("Status must be either approved or rejected")
    if booking.status != BookingStatus.pending:
        raise ConflictError("Booking status has already been updated")
    booking.status = decision
    booking.admin_notes = admin_notes
    booking.processed_by_id = admin.id
    booking.processed_at = now or _now()
    return booking


def can_withdraw_booking(booking: Booking, *, is_admin: bool) -> bool:
    return is_admin or booking.status == BookingStatus.pending


def apply_issue_status(
    issue: Issue,
    *,
    status: IssueStatus,
    admin: User,
    admin_notes: str | None = None,
    assigned_to_id: str | None = None,
    now: datetime | None = None,
) -> Issue:
    """Move an issue to ``status``; any status may follow any other.

    The first move away from ``pending`` records who processed it. Entering
    ``resolved`` or ``rejected`` from a different status records the resolver;
    setting the same terminal status again leaves the stamps alone.
    """
    moment = now or _now()
    previous = issue.status
    if previous == IssueStatus.pending and status != IssueStatus.pending and issue.processed_at is None:
        issue.processed_by_id = admin.id
        issue.processed_at = moment
    if status in TERMINAL_ISSUE_STATUSES and previous != status:
        issue.resolved_by_id = admin.id
        issue.resolved_at = moment
    issue.status = status
    if admin_notes:
        issue.admin_notes = admin_notes
    if assigned_to_id:
        issue.assigned_to_id = assigned_to_id
    return issue


def can_withdraw_issue(issue: Issue, *, is_admin: bool) -> bool:
    return is_admin or issue.status == IssueStatus.pending


def approve_account(user: User, *, admin: User, now: datetime | None = None) -> User:
    if user.is_admin:
        raise ConflictError("Admin accounts cannot be approved through this endpoint")
    if user.approval_status == ApprovalStatus.approved:
        raise ConflictError("User is already approved")
    user.approval_status = ApprovalStatus.approved
    user.is_active = True
    user.approved_by_id = admin.id
    user.approved_at = now or _now()
    return user


def reject_account(user: User, *, admin: User, now: datetime | None = None) -> User:
    """Keep the record but lock it out; a later registration may reclaim its email and roll number."""
    if user.is_admin:
        raise ConflictError("Admin accounts cannot be rejected through this endpoint")
    if user.approval_status == ApprovalStatus.rejected:
        raise ConflictError("User registration has already been rejected")
    user.approval_status = ApprovalStatus.rejected
    user.is_active = False
    user.approved_by_id = admin.id
    user.approved_at = now or _now()
    return user
