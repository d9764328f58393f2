from __future__ import annotations

from datetime import datetime, timezone

from pydantic import Field, field_validator, model_validator

from campusdesk.models.announcement import AnnouncementCategory, AnnouncementPriority, TargetAudience
from campusdesk.models.user import AcademicYear, Department
from campusdesk.schemas.common import AttachmentOut, CamelModel


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class AnnouncementFields(CamelModel):
    title: str = Field(min_length=5, max_length=150)
    content: str = Field(min_length=10, max_length=2000)
    category: AnnouncementCategory = AnnouncementCategory.general
    priority: AnnouncementPriority = AnnouncementPriority.medium
    target_audience: TargetAudience = TargetAudience.all
    target_year: AcademicYear | None = None
    target_department: Department | None = None
    is_pinned: bool = False
    is_active: bool = True
    publish_date: datetime | None = None
    expiry_date: datetime | None = None

    @field_validator("title", "content")
    @classmethod
    def strip_text(cls, value: str) -> str:
        return value.strip()

    @field_validator("publish_date", "expiry_date")
    @classmethod
    def normalize_dates(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)

    @model_validator(mode="after")
    def validate_targeting(self) -> "AnnouncementFields":
        if self.target_audience == TargetAudience.specific_year and self.target_year is None:
            raise ValueError("Target year is required for specific-year announcements")
        if self.target_audience == TargetAudience.specific_department and self.target_department is None:
            raise ValueError("Target department is required for specific-department announcements")
        if self.target_audience != TargetAudience.specific_year:
            self.target_year = None
        if self.target_audience != TargetAudience.specific_department:
            self.target_department = None
        publish = self.publish_date or datetime.now(timezone.utc)
        if self.expiry_date is not None and self.expiry_date <= publish:
            raise ValueError("Expiry date must be after publish date")
        return self


class AnnouncementCreate(AnnouncementFields):
    pass


class AnnouncementUpdate(CamelModel):
    """Partial update; only fields present in the request are applied."""

    title: str | None = Field(default=None, min_length=5, max_length=150)
    content: str | None = Field(default=None, min_length=10, max_length=2000)
    category: AnnouncementCategory | None = None
    priority: AnnouncementPriority | None = None
    target_audience: TargetAudience | None = None
    target_year: AcademicYear | None = None
    target_department: Department | None = None
    is_pinned: bool | None = None
    is_active: bool | None = None
    publish_date: datetime | None = None
    expiry_date: datetime | None = None

    @field_validator("publish_date", "expiry_date")
    @classmethod
    def normalize_dates(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)


class AnnouncementOut(CamelModel):
    id: str
    title: str
    content: str
    category: AnnouncementCategory
    priority: AnnouncementPriority
    target_audience: TargetAudience
    target_year: AcademicYear | None = None
    target_department: str | None = None
    is_pinned: bool
    is_active: bool
    publish_date: datetime
    expiry_date: datetime | None = None
    created_by_id: str
    created_by_name: str | None = None
    attachments: list[AttachmentOut] = Field(default_factory=list)
    views: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
