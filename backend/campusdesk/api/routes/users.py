from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Literal

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from campusdesk.api.deps import get_db, list_query, require_admin
from campusdesk.api.responses import paginate, success
from campusdesk.core.exceptions import ConflictError, ResourceNotFoundError
from campusdesk.core.security import get_password_hash
from campusdesk.models.user import ApprovalStatus, User, UserRole
from campusdesk.schemas.common import ListQuery
from campusdesk.schemas.user import AdminCreateUserRequest, UserOut, UserRejection, UserStatusUpdate
from campusdesk.services.audit import log_activity
from campusdesk.services.lifecycle import approve_account, reject_account
from campusdesk.services.registration import release_rejected_identities

router = APIRouter()
logger = logging.getLogger(__name__)

USER_SORT_COLUMNS = {
    "createdAt": User.created_at,
    "name": User.name,
    "email": User.email,
    "rollNumber": User.roll_number,
    "role": User.role,
    "lastLogin": User.last_login,
}


def _get_user(db: Session, user_id: str) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise ResourceNotFoundError("User")
    return user


@router.get("")
def list_users(
    role: UserRole | None = Query(default=None),
    status_filter: Literal["active", "inactive"] | None = Query(default=None, alias="status"),
    approval: ApprovalStatus | None = Query(default=None),
    search: str | None = Query(default=None, max_length=100),
    params: ListQuery = Depends(list_query),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    query = select(User)
    if role is not None:
        query = query.where(User.role == role)
    if status_filter is not None:
        query = query.where(User.is_active.is_(status_filter == "active"))
    if approval is not None:
        query = query.where(User.approval_status == approval)
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.where(
            or_(User.name.ilike(pattern), User.email.ilike(pattern), User.roll_number.ilike(pattern))
        )
    users, pagination = paginate(db, query, params, sortable=USER_SORT_COLUMNS, default_sort="createdAt")
    return success({"users": [UserOut.model_validate(item) for item in users], "pagination": pagination})


@router.post("", status_code=status.HTTP_201_CREATED)
def create_user(
    payload: AdminCreateUserRequest,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    release_rejected_identities(db, email=payload.email, roll_number=payload.roll_number, conflict_suffix="registered")
    user = User(
        roll_number=payload.roll_number,
        name=payload.name,
        email=payload.email,
        hashed_password=get_password_hash(payload.password),
        role=payload.role,
        department=payload.department,
        year=payload.year,
        phone=payload.phone,
        class_name=payload.class_name,
        is_active=True,
        approval_status=ApprovalStatus.approved,
        approved_by_id=current_user.id,
        approved_at=datetime.now(timezone.utc),
    )
    db.add(user)
    db.flush()
    log_activity(db, user=current_user, action="user.create", entity_type="user", entity_id=user.id, details={"role": user.role.value})
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Email or roll number already registered") from exc
    db.refresh(user)
    return success({"user": UserOut.model_validate(user)}, "User created successfully")


@router.get("/pending-approval")
def list_pending_users(
    params: ListQuery = Depends(list_query),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    query = select(User).where(
        User.role.in_((UserRole.student, UserRole.class_representative)),
        User.approval_status == ApprovalStatus.pending,
        User.is_active.is_(True),
    )
    users, pagination = paginate(db, query, params, sortable=USER_SORT_COLUMNS, default_sort="createdAt")
    return success({"users": [UserOut.model_validate(item) for item in users], "pagination": pagination})


@router.get("/{user_id}")
def get_user(user_id: str, current_user: User = Depends(require_admin), db: Session = Depends(get_db)) -> dict:
    return success({"user": UserOut.model_validate(_get_user(db, user_id))})


@router.patch("/{user_id}/approve")
def approve_user(user_id: str, current_user: User = Depends(require_admin), db: Session = Depends(get_db)) -> dict:
    user = approve_account(_get_user(db, user_id), admin=current_user)
    log_activity(db, user=current_user, action="user.approve", entity_type="user", entity_id=user.id)
    db.commit()
    db.refresh(user)
    return success({"user": UserOut.model_validate(user)}, "User approved successfully")


@router.patch("/{user_id}/reject")
def reject_user(
    user_id: str,
    payload: UserRejection | None = Body(default=None),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    user = reject_account(_get_user(db, user_id), admin=current_user)
    log_activity(
        db,
        user=current_user,
        action="user.reject",
        entity_type="user",
        entity_id=user.id,
        details={"reason": payload.reason if payload else None},
    )
    db.commit()
    db.refresh(user)
    return success({"user": UserOut.model_validate(user)}, "User registration rejected")


@router.patch("/{user_id}/status")
def update_user_status(
    user_id: str,
    payload: UserStatusUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    user = _get_user(db, user_id)
    user.is_active = payload.status == "active"
    log_activity(db, user=current_user, action=f"user.{payload.status}", entity_type="user", entity_id=user.id)
    db.commit()
    db.refresh(user)
    verb = "activated" if user.is_active else "deactivated"
    return success({"user": UserOut.model_validate(user)}, f"User {verb} successfully")


@router.delete("/{user_id}")
def delete_user(user_id: str, current_user: User = Depends(require_admin), db: Session = Depends(get_db)) -> dict:
    user = _get_user(db, user_id)
    if user.id == current_user.id:
        raise ConflictError("You cannot delete your own account")
    log_activity(
        db,
        user=current_user,
        action="user.delete",
        entity_type="user",
        entity_id=user.id,
        details={"rollNumber": user.roll_number},
    )
    db.delete(user)
    db.commit()
    return success(message="User deleted successfully")
