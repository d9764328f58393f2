import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import JSON, DateTime, Enum as SAEnum, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from campusdesk.db.base import Base, enum_values


class IssueCategory(str, Enum):
    academic = "academic"
    infrastructure = "infrastructure"
    hostel = "hostel"
    canteen = "canteen"
    transport = "transport"
    other = "other"


class IssuePriority(str, Enum):
    low = "low"
    medium = "medium"
    high = "high"
    urgent = "urgent"


class IssueStatus(str, Enum):
    pending = "pending"
    open = "open"
    in_progress = "in-progress"
    resolved = "resolved"
    closed = "closed"
    rejected = "rejected"


TERMINAL_ISSUE_STATUSES = (IssueStatus.resolved, IssueStatus.rejected)
OPEN_ISSUE_STATUSES = (IssueStatus.pending, IssueStatus.open, IssueStatus.in_progress)


class Issue(Base):
    __tablename__ = "issues"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[IssueCategory] = mapped_column(
        SAEnum(IssueCategory, name="issue_category", values_callable=enum_values),
        nullable=False,
        default=IssueCategory.other,
        index=True,
    )
    priority: Mapped[IssuePriority] = mapped_column(
        SAEnum(IssuePriority, name="issue_priority", values_callable=enum_values),
        nullable=False,
        default=IssuePriority.medium,
    )
    status: Mapped[IssueStatus] = mapped_column(
        SAEnum(IssueStatus, name="issue_status", values_callable=enum_values),
        nullable=False,
        default=IssueStatus.pending,
        index=True,
    )
    student_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    student_roll_number: Mapped[str] = mapped_column(String(20), nullable=False)
    student_name: Mapped[str] = mapped_column(String(50), nullable=False)
    room_code: Mapped[str | None] = mapped_column(String(20), nullable=True)
    room_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    affected_components: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)
    attachments: Mapped[list[dict]] = mapped_column(JSON, nullable=False, default=list)
    admin_notes: Mapped[str | None] = mapped_column(String(500), nullable=True)
    assigned_to_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    resolved_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    processed_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
