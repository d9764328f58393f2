from datetime import datetime

from campusdesk.schemas.common import CamelModel


class ActivityLogOut(CamelModel):
    id: str
    user_id: str | None
    action: str
    entity_type: str | None
    entity_id: str | None
    details: dict
    created_at: datetime
