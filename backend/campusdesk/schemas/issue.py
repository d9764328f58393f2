from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from campusdesk.models.issue import IssueCategory, IssuePriority, IssueStatus
from campusdesk.schemas.common import AttachmentOut, CamelModel


class AffectedComponent(CamelModel):
    id: str = Field(min_length=1, max_length=50)
    name: str | None = Field(default=None, max_length=100)
    category: str | None = Field(default=None, max_length=50)


class IssueCreate(CamelModel):
    title: str = Field(min_length=5, max_length=100)
    description: str = Field(min_length=10, max_length=1000)
    category: IssueCategory = IssueCategory.other
    priority: IssuePriority = IssuePriority.medium
    room_code: str = Field(min_length=1, max_length=20)
    room_name: str | None = Field(default=None, max_length=100)
    affected_components: list[AffectedComponent] = Field(min_length=1)

    @field_validator("title", "description")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return value.strip()

    @field_validator("room_code")
    @classmethod
    def normalize_room_code(cls, value: str) -> str:
        code = value.strip().upper()
        if not code:
            raise ValueError("Room ID is required")
        return code


class IssueStatusUpdate(CamelModel):
    status: IssueStatus
    admin_notes: str | None = Field(default=None, max_length=500)
    assigned_to: str | None = Field(default=None, max_length=36)

    @field_validator("admin_notes", "assigned_to")
    @classmethod
    def blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class IssueNotes(CamelModel):
    admin_notes: str | None = Field(default=None, max_length=500)
    assigned_to: str | None = Field(default=None, max_length=36)


class IssueOut(CamelModel):
    id: str
    title: str
    description: str
    category: IssueCategory
    priority: IssuePriority
    status: IssueStatus
    student_id: str
    student_roll_number: str
    student_name: str
    room_code: str | None = None
    room_name: str | None = None
    affected_components: list[AffectedComponent] = Field(default_factory=list)
    attachments: list[AttachmentOut] = Field(default_factory=list)
    admin_notes: str | None = None
    assigned_to_id: str | None = None
    resolved_by_id: str | None = None
    resolved_at: datetime | None = None
    processed_by_id: str | None = None
    processed_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
