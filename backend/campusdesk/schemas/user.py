from __future__ import annotations

from datetime import datetime
import re
from typing import Literal

from pydantic import EmailStr, Field, computed_field, field_validator, model_validator

from campusdesk.core.config import get_settings
from campusdesk.models.user import (
    AcademicYear,
    ApprovalStatus,
    Department,
    UserRole,
    class_sections_for,
)
from campusdesk.schemas.common import CamelModel

ROLL_NUMBER_PATTERN = re.compile(r"^[A-Z0-9]{3,20}$")
PHONE_PATTERN = re.compile(r"^\d{10}$")


def _normalize_institution_email(value: str) -> str:
    email = value.strip().lower()
    domain = get_settings().institution_email_domain
    if not email.endswith(f"@{domain}"):
        raise ValueError(f"Email must be from @{domain} domain")
    return email


class IdentityFields(CamelModel):
    roll_number: str = Field(min_length=3, max_length=20)
    name: str = Field(min_length=2, max_length=50)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)
    department: Department = Department.computer_science
    year: AcademicYear = AcademicYear.first
    phone: str | None = None
    class_name: str | None = None

    @field_validator("roll_number")
    @classmethod
    def normalize_roll_number(cls, value: str) -> str:
        roll = value.strip().upper()
        if not ROLL_NUMBER_PATTERN.match(roll):
            raise ValueError("Roll number must be 3-20 letters or digits")
        return roll

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str) -> str:
        trimmed = value.strip()
        if len(trimmed) < 2:
            raise ValueError("Name must be between 2 and 50 characters")
        return trimmed

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        phone = value.strip()
        if not PHONE_PATTERN.match(phone):
            raise ValueError("Phone number must be 10 digits")
        return phone

    @field_validator("class_name")
    @classmethod
    def normalize_class_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip().upper() or None

    def _check_class_section(self, role: UserRole) -> None:
        if role == UserRole.admin:
            self.class_name = None
            return
        if not self.class_name:
            raise ValueError("Class name is required")
        if self.class_name not in class_sections_for(self.department):
            raise ValueError("Invalid class name for the selected department")


class RegisterRequest(IdentityFields):
    role: UserRole = UserRole.student

    @field_validator("role")
    @classmethod
    def validate_self_service_role(cls, value: UserRole) -> UserRole:
        if value == UserRole.admin:
            raise ValueError("Role must be either student or class-representative")
        return value

    @field_validator("email")
    @classmethod
    def validate_email_domain(cls, value: str) -> str:
        return _normalize_institution_email(value)

    @model_validator(mode="after")
    def validate_class_section(self) -> "RegisterRequest":
        self._check_class_section(self.role)
        return self


class AdminCreateUserRequest(IdentityFields):
    role: UserRole = UserRole.student

    @field_validator("email")
    @classmethod
    def validate_email_domain(cls, value: str) -> str:
        return _normalize_institution_email(value)

    @model_validator(mode="after")
    def validate_class_section(self) -> "AdminCreateUserRequest":
        self._check_class_section(self.role)
        return self


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)

    @field_validator("email")
    @classmethod
    def validate_email_domain(cls, value: str) -> str:
        return _normalize_institution_email(value)


class ProfileUpdate(CamelModel):
    name: str | None = Field(default=None, min_length=2, max_length=50)
    phone: str | None = None
    department: Department | None = None
    year: AcademicYear | None = None
    class_name: str | None = None

    @field_validator("name")
    @classmethod
    def normalize_name(cls, value: str | None) -> str | None:
        return value.strip() if value is not None else None

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        if not PHONE_PATTERN.match(value.strip()):
            raise ValueError("Phone number must be 10 digits")
        return value.strip()

    @field_validator("class_name")
    @classmethod
    def normalize_class_name(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip().upper() or None


class PasswordChangeRequest(CamelModel):
    current_password: str = Field(min_length=1, max_length=128)
    new_password: str = Field(min_length=6, max_length=128)


class UserStatusUpdate(CamelModel):
    status: Literal["active", "inactive"]


class UserOut(CamelModel):
    id: str
    roll_number: str
    name: str
    email: str
    role: UserRole
    department: Department
    year: AcademicYear
    class_name: str | None = None
    phone: str | None = None
    is_active: bool
    approval_status: ApprovalStatus
    approved_by_id: str | None = None
    approved_at: datetime | None = None
    last_login: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @computed_field(alias="isApproved")
    @property
    def is_approved(self) -> bool:
        return self.approval_status == ApprovalStatus.approved


class UserRejection(CamelModel):
    reason: str | None = Field(default=None, max_length=200)
