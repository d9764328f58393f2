import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from campusdesk.db.base import Base, enum_values


class UserRole(str, Enum):
    student = "student"
    class_representative = "class-representative"
    admin = "admin"


class Department(str, Enum):
    computer_science = "Computer Science"
    mechanical_engineering = "Mechanical Engineering"
    information_technology = "Information Technology"
    civil_engineering = "Civil Engineering"
    administration = "Administration"


class AcademicYear(str, Enum):
    first = "1st"
    second = "2nd"
    third = "3rd"
    fourth = "4th"
    fifth = "5th"


class ApprovalStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


CLASS_SECTIONS: dict[Department, tuple[str, ...]] = {
    Department.computer_science: ("G1", "G2", "AIML"),
}
DEFAULT_CLASS_SECTIONS: tuple[str, ...] = ("G1", "G2")


def class_sections_for(department: Department) -> tuple[str, ...]:
    return CLASS_SECTIONS.get(department, DEFAULT_CLASS_SECTIONS)


def initial_approval_status(role: UserRole) -> ApprovalStatus:
    if role == UserRole.class_representative:
        return ApprovalStatus.pending
    return ApprovalStatus.approved


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    roll_number: Mapped[str] = mapped_column(String(20), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        SAEnum(UserRole, name="user_role", values_callable=enum_values),
        nullable=False,
        default=UserRole.student,
        index=True,
    )
    department: Mapped[Department] = mapped_column(
        SAEnum(Department, name="department", values_callable=enum_values),
        nullable=False,
        default=Department.computer_science,
    )
    year: Mapped[AcademicYear] = mapped_column(
        SAEnum(AcademicYear, name="academic_year", values_callable=enum_values),
        nullable=False,
        default=AcademicYear.first,
    )
    class_name: Mapped[str | None] = mapped_column(String(10), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(10), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    approval_status: Mapped[ApprovalStatus] = mapped_column(
        SAEnum(ApprovalStatus, name="approval_status", values_callable=enum_values),
        nullable=False,
        default=ApprovalStatus.approved,
    )
    approved_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.admin

    @property
    def is_approved(self) -> bool:
        return self.approval_status == ApprovalStatus.approved
