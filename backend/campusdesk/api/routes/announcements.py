from __future__ import annotations

from datetime import datetime, timezone
import logging
import uuid

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from campusdesk.api.deps import get_db, get_optional_user, list_query, require_admin
from campusdesk.api.responses import paginate, success, validate_payload
from campusdesk.core.exceptions import ResourceNotFoundError
from campusdesk.db.helpers import insert_ignoring_duplicates
from campusdesk.models.announcement import (
    Announcement,
    AnnouncementCategory,
    AnnouncementPriority,
    AnnouncementView,
    TargetAudience,
)
from campusdesk.models.user import User
from campusdesk.schemas.announcement import AnnouncementCreate, AnnouncementFields, AnnouncementOut, AnnouncementUpdate
from campusdesk.schemas.common import ListQuery
from campusdesk.services.audience import audience_clause, current_clause, is_visible_to
from campusdesk.services.audit import log_activity
from campusdesk.services.statistics import announcement_summary
from campusdesk.services.uploads import (
    ANNOUNCEMENT_FOLDER,
    read_uploads,
    remove_files,
    resolve_attachment,
    store_files,
)

router = APIRouter()
logger = logging.getLogger(__name__)

ANNOUNCEMENT_SORT_COLUMNS = {
    "publishDate": Announcement.publish_date,
    "createdAt": Announcement.created_at,
    "priority": Announcement.priority,
    "views": Announcement.views,
    "title": Announcement.title,
}

EDITABLE_FIELDS = (
    "title",
    "content",
    "category",
    "priority",
    "target_audience",
    "target_year",
    "target_department",
    "is_pinned",
    "is_active",
    "publish_date",
    "expiry_date",
)


def _form_fields(**fields: str | None) -> dict:
    """Drop fields the client left out or sent blank."""
    return {key: value for key, value in fields.items() if value is not None and value != ""}


def _get_announcement(db: Session, announcement_id: str) -> Announcement:
    announcement = db.get(Announcement, announcement_id)
    if announcement is None:
        raise ResourceNotFoundError("Announcement")
    return announcement


def _get_visible(db: Session, announcement_id: str, viewer: User | None) -> Announcement:
    announcement = _get_announcement(db, announcement_id)
    if not is_visible_to(announcement, viewer):
        raise ResourceNotFoundError("Announcement", "Announcement not available")
    return announcement


def _apply_fields(announcement: Announcement, fields: AnnouncementFields) -> None:
    for name in EDITABLE_FIELDS:
        value = getattr(fields, name)
        if name == "target_department" and value is not None:
            value = value.value
        setattr(announcement, name, value)
    if announcement.publish_date is None:
        announcement.publish_date = datetime.now(timezone.utc)


def _filtered(
    query,
    *,
    category: AnnouncementCategory | None,
    priority: AnnouncementPriority | None,
    is_pinned: bool | None,
):
    if category is not None:
        query = query.where(Announcement.category == category)
    if priority is not None:
        query = query.where(Announcement.priority == priority)
    if is_pinned is not None:
        query = query.where(Announcement.is_pinned.is_(is_pinned))
    return query


def _announcement_page(db: Session, query, params: ListQuery) -> dict:
    items, pagination = paginate(
        db,
        query,
        params,
        sortable=ANNOUNCEMENT_SORT_COLUMNS,
        default_sort="publishDate",
        pinned_first=Announcement.is_pinned,
    )
    return success(
        {"announcements": [AnnouncementOut.model_validate(item) for item in items], "pagination": pagination}
    )


@router.post("", status_code=status.HTTP_201_CREATED)
def create_announcement(
    title: str = Form(...),
    content: str = Form(...),
    category: str | None = Form(default=None),
    priority: str | None = Form(default=None),
    target_audience: str | None = Form(default=None, alias="targetAudience"),
    target_year: str | None = Form(default=None, alias="targetYear"),
    target_department: str | None = Form(default=None, alias="targetDepartment"),
    is_pinned: str | None = Form(default=None, alias="isPinned"),
    is_active: str | None = Form(default=None, alias="isActive"),
    publish_date: str | None = Form(default=None, alias="publishDate"),
    expiry_date: str | None = Form(default=None, alias="expiryDate"),
    attachments: list[UploadFile] | None = File(default=None),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    payload = validate_payload(
        AnnouncementCreate,
        _form_fields(
            title=title,
            content=content,
            category=category,
            priority=priority,
            target_audience=target_audience,
            target_year=target_year,
            target_department=target_department,
            is_pinned=is_pinned,
            is_active=is_active,
            publish_date=publish_date,
            expiry_date=expiry_date,
        ),
    )
    pending = read_uploads(attachments)
    stored = store_files(pending, folder=ANNOUNCEMENT_FOLDER)

    announcement = Announcement(
        created_by_id=current_user.id,
        created_by_name=current_user.name,
        attachments=stored,
        views=0,
    )
    _apply_fields(announcement, payload)
    try:
        db.add(announcement)
        db.flush()
        log_activity(
            db,
            user=current_user,
            action="announcement.create",
            entity_type="announcement",
            entity_id=announcement.id,
            details={"targetAudience": announcement.target_audience.value},
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        remove_files(stored)
        raise
    db.refresh(announcement)
    return success({"announcement": AnnouncementOut.model_validate(announcement)}, "Announcement created successfully")


@router.get("")
def list_announcements(
    category: AnnouncementCategory | None = None,
    priority: AnnouncementPriority | None = None,
    is_pinned: bool | None = Query(default=None, alias="isPinned"),
    params: ListQuery = Depends(list_query),
    current_user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
) -> dict:
    query = select(Announcement).where(current_clause(), audience_clause(current_user))
    query = _filtered(query, category=category, priority=priority, is_pinned=is_pinned)
    return _announcement_page(db, query, params)


@router.get("/all")
def list_all_announcements(
    category: AnnouncementCategory | None = None,
    priority: AnnouncementPriority | None = None,
    is_pinned: bool | None = Query(default=None, alias="isPinned"),
    is_active: bool | None = Query(default=None, alias="isActive"),
    target_audience: TargetAudience | None = Query(default=None, alias="targetAudience"),
    params: ListQuery = Depends(list_query),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    query = _filtered(select(Announcement), category=category, priority=priority, is_pinned=is_pinned)
    if is_active is not None:
        query = query.where(Announcement.is_active.is_(is_active))
    if target_audience is not None:
        query = query.where(Announcement.target_audience == target_audience)
    return _announcement_page(db, query, params)


@router.get("/stats/summary")
def announcement_stats(
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    return success(announcement_summary(db))


@router.get("/{announcement_id}")
def get_announcement(
    announcement_id: str,
    current_user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
) -> dict:
    announcement = _get_visible(db, announcement_id, current_user)
    if current_user is not None:
        recorded = insert_ignoring_duplicates(
            db,
            AnnouncementView.__table__,
            {"id": str(uuid.uuid4()), "announcement_id": announcement.id, "user_id": current_user.id},
        )
        if recorded:
            db.execute(
                update(Announcement)
                .where(Announcement.id == announcement.id)
                .values(views=Announcement.views + 1)
            )
        db.commit()
        db.refresh(announcement)
    return success({"announcement": AnnouncementOut.model_validate(announcement)})


@router.put("/{announcement_id}")
def update_announcement(
    announcement_id: str,
    title: str | None = Form(default=None),
    content: str | None = Form(default=None),
    category: str | None = Form(default=None),
    priority: str | None = Form(default=None),
    target_audience: str | None = Form(default=None, alias="targetAudience"),
    target_year: str | None = Form(default=None, alias="targetYear"),
    target_department: str | None = Form(default=None, alias="targetDepartment"),
    is_pinned: str | None = Form(default=None, alias="isPinned"),
    is_active: str | None = Form(default=None, alias="isActive"),
    publish_date: str | None = Form(default=None, alias="publishDate"),
    expiry_date: str | None = Form(default=None, alias="expiryDate"),
    attachments: list[UploadFile] | None = File(default=None),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    announcement = _get_announcement(db, announcement_id)
    changes = validate_payload(
        AnnouncementUpdate,
        _form_fields(
            title=title,
            content=content,
            category=category,
            priority=priority,
            target_audience=target_audience,
            target_year=target_year,
            target_department=target_department,
            is_pinned=is_pinned,
            is_active=is_active,
            publish_date=publish_date,
            expiry_date=expiry_date,
        ),
    )
    # Re-run the full rules on the merged record so targeting and expiry stay consistent.
    merged = {name: getattr(announcement, name) for name in EDITABLE_FIELDS}
    merged.update(changes.model_dump(exclude_unset=True))
    fields = validate_payload(AnnouncementFields, merged)
    pending = read_uploads(attachments)

    replaced: list[dict] = []
    stored: list[dict] = []
    if pending:
        stored = store_files(pending, folder=ANNOUNCEMENT_FOLDER)
        replaced = list(announcement.attachments or [])
        announcement.attachments = stored
    _apply_fields(announcement, fields)
    try:
        log_activity(
            db,
            user=current_user,
            action="announcement.update",
            entity_type="announcement",
            entity_id=announcement.id,
            details={"fields": sorted(changes.model_dump(exclude_unset=True)), "attachmentsReplaced": bool(stored)},
        )
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        remove_files(stored)
        raise
    remove_files(replaced)
    db.refresh(announcement)
    return success({"announcement": AnnouncementOut.model_validate(announcement)}, "Announcement updated successfully")


@router.delete("/{announcement_id}")
def delete_announcement(
    announcement_id: str,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    announcement = _get_announcement(db, announcement_id)
    attachments = list(announcement.attachments or [])
    log_activity(
        db,
        user=current_user,
        action="announcement.delete",
        entity_type="announcement",
        entity_id=announcement.id,
        details={"title": announcement.title},
    )
    db.delete(announcement)
    db.commit()
    remove_files(attachments)
    return success(message="Announcement deleted successfully")


@router.patch("/{announcement_id}/toggle-pin")
def toggle_pin(
    announcement_id: str,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    announcement = _get_announcement(db, announcement_id)
    announcement.is_pinned = not announcement.is_pinned
    log_activity(
        db,
        user=current_user,
        action="announcement.pin" if announcement.is_pinned else "announcement.unpin",
        entity_type="announcement",
        entity_id=announcement.id,
    )
    db.commit()
    db.refresh(announcement)
    message = "Announcement pinned successfully" if announcement.is_pinned else "Announcement unpinned successfully"
    return success({"announcement": AnnouncementOut.model_validate(announcement)}, message)


@router.get("/{announcement_id}/attachments/{filename}")
def download_announcement_attachment(
    announcement_id: str,
    filename: str,
    current_user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
) -> FileResponse:
    announcement = _get_visible(db, announcement_id, current_user)
    path, meta = resolve_attachment(announcement.attachments, filename)
    return FileResponse(path, media_type=meta.get("mimeType"), filename=meta.get("originalName") or filename)
