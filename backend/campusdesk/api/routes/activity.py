from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from campusdesk.api.deps import get_db, require_admin
from campusdesk.api.responses import success
from campusdesk.models.activity_log import ActivityLog
from campusdesk.models.user import User
from campusdesk.schemas.activity import ActivityLogOut

router = APIRouter()


@router.get("/activity/logs")
def list_activity_logs(
    entity_type: str | None = Query(default=None, alias="entityType", max_length=50),
    user_id: str | None = Query(default=None, alias="userId", max_length=36),
    limit: int = Query(default=500, ge=1, le=500),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    query = select(ActivityLog).order_by(ActivityLog.created_at.desc())
    if entity_type:
        query = query.where(ActivityLog.entity_type == entity_type)
    if user_id:
        query = query.where(ActivityLog.user_id == user_id)
    logs = db.execute(query.limit(limit)).scalars()
    return success({"logs": [ActivityLogOut.model_validate(item) for item in logs]})
