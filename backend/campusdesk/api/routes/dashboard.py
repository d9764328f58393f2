from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from campusdesk.api.deps import get_current_user, get_db, require_admin, require_student_or_representative
from campusdesk.api.responses import success
from campusdesk.core.exceptions import ResourceNotFoundError, ValidationFailedError
from campusdesk.models.user import User, UserRole
from campusdesk.services.access import ensure_can_access
from campusdesk.services.statistics import admin_dashboard, analytics, student_dashboard

router = APIRouter()


@router.get("/admin")
def get_admin_dashboard(
    days: int = Query(default=30, ge=1, le=365),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    return success(admin_dashboard(db, days=days))


@router.get("/student")
def get_student_dashboard(
    days: int = Query(default=30, ge=1, le=365),
    current_user: User = Depends(require_student_or_representative),
    db: Session = Depends(get_db),
) -> dict:
    return success(student_dashboard(db, student=current_user, days=days))


@router.get("/student/{student_id}")
def get_student_dashboard_by_id(
    student_id: str,
    days: int = Query(default=30, ge=1, le=365),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    ensure_can_access(current_user, student_id)
    student = db.get(User, student_id)
    if student is None or student.role == UserRole.admin:
        raise ResourceNotFoundError("Student")
    return success(student_dashboard(db, student=student, days=days))


@router.get("/analytics")
def get_analytics(
    start_date: date | None = Query(default=None, alias="startDate"),
    end_date: date | None = Query(default=None, alias="endDate"),
    group_by: Literal["day", "week", "month"] = Query(default="day", alias="groupBy"),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    if start_date and end_date and start_date > end_date:
        raise ValidationFailedError.for_field("startDate", "Start date must be on or before end date")
    return success(analytics(db, start_date=start_date, end_date=end_date, group_by=group_by))
