import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, Boolean, DateTime, Enum as SAEnum, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from campusdesk.db.base import Base, enum_values
from campusdesk.models.user import AcademicYear


class AnnouncementCategory(str, Enum):
    general = "general"
    academic = "academic"
    events = "events"
    exam = "exam"
    holiday = "holiday"
    important = "important"


class AnnouncementPriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"


class TargetAudience(str, Enum):
    all = "all"
    students = "students"
    specific_year = "specific-year"
    specific_department = "specific-department"


class Announcement(Base):
    __tablename__ = "announcements"
    __table_args__ = (
        Index("ix_announcements_active_publish", "is_active", "publish_date"),
        Index("ix_announcements_targeting", "target_audience", "target_year", "target_department"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title: Mapped[str] = mapped_column(String(150), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[AnnouncementCategory] = mapped_column(
        SAEnum(AnnouncementCategory, name="announcement_category", values_callable=enum_values),
        nullable=False,
        default=AnnouncementCategory.general,
    )
    priority: Mapped[AnnouncementPriority] = mapped_column(
        SAEnum(AnnouncementPriority, name="announcement_priority", values_callable=enum_values),
        nullable=False,
        default=AnnouncementPriority.medium,
    )
    target_audience: Mapped[TargetAudience] = mapped_column(
        SAEnum(TargetAudience, name="target_audience", values_callable=enum_values),
        nullable=False,
        default=TargetAudience.all,
    )
    target_year: Mapped[AcademicYear | None] = mapped_column(
        SAEnum(AcademicYear, name="announcement_target_year", values_callable=enum_values),
        nullable=True,
    )
    target_department: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_pinned: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    publish_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expiry_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_by_id: Mapped[str] = mapped_column(String(36), nullable=False)
    created_by_name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    attachments: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)
    views: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())


class AnnouncementView(Base):
    __tablename__ = "announcement_views"
    __table_args__ = (
        UniqueConstraint("announcement_id", "user_id", name="uq_announcement_views_announcement_user"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    announcement_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("announcements.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    viewed_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
