from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Body, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from campusdesk.api.deps import (
    get_current_user,
    get_db,
    list_query,
    require_admin,
    require_student_or_representative,
)
from campusdesk.api.responses import paginate, success, validate_payload
from campusdesk.core.exceptions import ConflictError, ResourceNotFoundError, ValidationFailedError
from campusdesk.models.issue import Issue, IssueCategory, IssuePriority, IssueStatus
from campusdesk.models.user import User
from campusdesk.schemas.common import ListQuery
from campusdesk.schemas.issue import IssueCreate, IssueNotes, IssueOut, IssueStatusUpdate
from campusdesk.services.access import ensure_can_access, is_admin
from campusdesk.services.audit import log_activity
from campusdesk.services.lifecycle import apply_issue_status, can_withdraw_issue
from campusdesk.services.room_catalog import get_room_info, resolve_components
from campusdesk.services.statistics import issue_summary
from campusdesk.services.uploads import ISSUE_FOLDER, read_uploads, remove_files, resolve_attachment, store_files

router = APIRouter()
logger = logging.getLogger(__name__)

ISSUE_SORT_COLUMNS = {
    "createdAt": Issue.created_at,
    "updatedAt": Issue.updated_at,
    "priority": Issue.priority,
    "status": Issue.status,
    "category": Issue.category,
    "title": Issue.title,
}


def _get_issue(db: Session, issue_id: str) -> Issue:
    issue = db.get(Issue, issue_id)
    if issue is None:
        raise ResourceNotFoundError("Issue")
    return issue


def _parse_components(raw: str | None) -> list[dict]:
    """Accept a JSON array of component ids or ``{id, name, category}`` objects."""
    if raw is None or not raw.strip():
        return []
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValidationFailedError.for_field(
            "affectedComponents", "Affected components must be a JSON array"
        ) from exc
    if not isinstance(parsed, list):
        raise ValidationFailedError.for_field("affectedComponents", "Affected components must be a JSON array")
    return [{"id": str(item)} if not isinstance(item, dict) else item for item in parsed]


def _filtered(
    query,
    *,
    status_filter: IssueStatus | None,
    category: IssueCategory | None,
    priority: IssuePriority | None,
):
    if status_filter is not None:
        query = query.where(Issue.status == status_filter)
    if category is not None:
        query = query.where(Issue.category == category)
    if priority is not None:
        query = query.where(Issue.priority == priority)
    return query


def _issue_page(db: Session, query, params: ListQuery) -> dict:
    issues, pagination = paginate(db, query, params, sortable=ISSUE_SORT_COLUMNS, default_sort="createdAt")
    return success({"issues": [IssueOut.model_validate(item) for item in issues], "pagination": pagination})


@router.post("", status_code=status.HTTP_201_CREATED)
def create_issue(
    title: str = Form(...),
    description: str = Form(...),
    category: str = Form(default=IssueCategory.other.value),
    priority: str = Form(default=IssuePriority.medium.value),
    room_code: str = Form(..., alias="roomCode"),
    room_name: str | None = Form(default=None, alias="roomName"),
    affected_components: str | None = Form(default=None, alias="affectedComponents"),
    attachments: list[UploadFile] | None = File(default=None),
    current_user: User = Depends(require_student_or_representative),
    db: Session = Depends(get_db),
) -> dict:
    payload = validate_payload(
        IssueCreate,
        {
            "title": title,
            "description": description,
            "category": category,
            "priority": priority,
            "room_code": room_code,
            "room_name": room_name,
            "affected_components": _parse_components(affected_components),
        },
    )
    # Reject bad files before anything reaches the database or the disk.
    pending = read_uploads(attachments)
    components = resolve_components(payload.room_code, [item.id for item in payload.affected_components])
    if not components:
        raise ValidationFailedError.for_field("affectedComponents", "At least one affected component is required")

    stored = store_files(pending, folder=ISSUE_FOLDER)
    issue = Issue(
        title=payload.title,
        description=payload.description,
        category=payload.category,
        priority=payload.priority,
        status=IssueStatus.pending,
        student_id=current_user.id,
        student_roll_number=current_user.roll_number,
        student_name=current_user.name,
        room_code=payload.room_code,
        room_name=payload.room_name or get_room_info(payload.room_code).name,
        affected_components=components,
        attachments=stored,
    )
    try:
        db.add(issue)
        db.flush()
        log_activity(
            db,
            user=current_user,
            action="issue.create",
            entity_type="issue",
            entity_id=issue.id,
            details={"roomCode": issue.room_code, "attachments": len(stored)},
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        remove_files(stored)
        raise
    db.refresh(issue)
    return success({"issue": IssueOut.model_validate(issue)}, "Issue submitted successfully")


@router.get("/my-issues")
def my_issues(
    status_filter: IssueStatus | None = Query(default=None, alias="status"),
    category: IssueCategory | None = None,
    priority: IssuePriority | None = None,
    params: ListQuery = Depends(list_query),
    current_user: User = Depends(require_student_or_representative),
    db: Session = Depends(get_db),
) -> dict:
    query = _filtered(
        select(Issue).where(Issue.student_id == current_user.id),
        status_filter=status_filter,
        category=category,
        priority=priority,
    )
    return _issue_page(db, query, params)


@router.get("/student/{student_id}")
def student_issues(
    student_id: str,
    status_filter: IssueStatus | None = Query(default=None, alias="status"),
    params: ListQuery = Depends(list_query),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    ensure_can_access(current_user, student_id)
    query = _filtered(
        select(Issue).where(Issue.student_id == student_id),
        status_filter=status_filter,
        category=None,
        priority=None,
    )
    return _issue_page(db, query, params)


@router.get("")
@router.get("/all")
def list_issues(
    status_filter: IssueStatus | None = Query(default=None, alias="status"),
    category: IssueCategory | None = None,
    priority: IssuePriority | None = None,
    student_roll_number: str | None = Query(default=None, alias="studentRollNumber", max_length=20),
    params: ListQuery = Depends(list_query),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    query = _filtered(select(Issue), status_filter=status_filter, category=category, priority=priority)
    if student_roll_number:
        query = query.where(Issue.student_roll_number == student_roll_number.strip().upper())
    return _issue_page(db, query, params)


@router.get("/stats/summary")
def issue_stats(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    return success(issue_summary(db))


def _transition(
    db: Session,
    issue_id: str,
    target: IssueStatus,
    admin: User,
    *,
    admin_notes: str | None = None,
    assigned_to_id: str | None = None,
    message: str = "Issue status updated successfully",
) -> dict:
    issue = _get_issue(db, issue_id)
    if assigned_to_id and db.get(User, assigned_to_id) is None:
        raise ValidationFailedError.for_field("assignedTo", "Assigned user not found")
    previous = issue.status
    apply_issue_status(issue, status=target, admin=admin, admin_notes=admin_notes, assigned_to_id=assigned_to_id)
    log_activity(
        db,
        user=admin,
        action="issue.status",
        entity_type="issue",
        entity_id=issue.id,
        details={"from": previous.value, "to": target.value},
    )
    db.commit()
    db.refresh(issue)
    return success({"issue": IssueOut.model_validate(issue)}, message)


@router.patch("/{issue_id}/status")
def update_issue_status(
    issue_id: str,
    payload: IssueStatusUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    return _transition(
        db,
        issue_id,
        payload.status,
        current_user,
        admin_notes=payload.admin_notes,
        assigned_to_id=payload.assigned_to,
    )


@router.patch("/{issue_id}/approve")
def approve_issue(
    issue_id: str,
    payload: IssueNotes | None = Body(default=None),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    notes = payload or IssueNotes()
    return _transition(
        db,
        issue_id,
        IssueStatus.open,
        current_user,
        admin_notes=notes.admin_notes,
        assigned_to_id=notes.assigned_to,
        message="Issue approved successfully",
    )


@router.patch("/{issue_id}/resolve")
def resolve_issue(
    issue_id: str,
    payload: IssueNotes | None = Body(default=None),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    notes = payload or IssueNotes()
    return _transition(
        db,
        issue_id,
        IssueStatus.resolved,
        current_user,
        admin_notes=notes.admin_notes,
        message="Issue resolved successfully",
    )


@router.patch("/{issue_id}/reject")
def reject_issue(
    issue_id: str,
    payload: IssueNotes | None = Body(default=None),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    notes = payload or IssueNotes()
    return _transition(
        db,
        issue_id,
        IssueStatus.rejected,
        current_user,
        admin_notes=notes.admin_notes,
        message="Issue rejected successfully",
    )


@router.get("/{issue_id}")
def get_issue(
    issue_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    issue = _get_issue(db, issue_id)
    ensure_can_access(current_user, issue.student_id)
    return success({"issue": IssueOut.model_validate(issue)})


@router.delete("/{issue_id}")
def delete_issue(
    issue_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    issue = _get_issue(db, issue_id)
    ensure_can_access(current_user, issue.student_id)
    if not can_withdraw_issue(issue, is_admin=is_admin(current_user)):
        raise ConflictError("Cannot delete issues that are already being processed")
    attachments = list(issue.attachments or [])
    log_activity(
        db,
        user=current_user,
        action="issue.delete",
        entity_type="issue",
        entity_id=issue.id,
        details={"status": issue.status.value},
    )
    db.delete(issue)
    db.commit()
    remove_files(attachments)
    return success(message="Issue deleted successfully")


@router.get("/{issue_id}/attachments/{filename}")
def download_issue_attachment(
    issue_id: str,
    filename: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> FileResponse:
    issue = _get_issue(db, issue_id)
    ensure_can_access(current_user, issue.student_id)
    path, meta = resolve_attachment(issue.attachments, filename)
    return FileResponse(path, media_type=meta.get("mimeType"), filename=meta.get("originalName") or filename)
