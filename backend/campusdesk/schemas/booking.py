from __future__ import annotations

import datetime as dt

from pydantic import Field, field_validator, model_validator

from campusdesk.models.booking import BookingStatus
from campusdesk.schemas.common import CamelModel, normalize_time


class BookingSlot(CamelModel):
    room: str = Field(min_length=1, max_length=50)
    date: dt.date
    start_time: str
    end_time: str

    @field_validator("room")
    @classmethod
    def normalize_room(cls, value: str) -> str:
        room = value.strip().upper()
        if not room:
            raise ValueError("Room name is required and must be less than 50 characters")
        return room

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return normalize_time(value)

    @model_validator(mode="after")
    def validate_time_order(self) -> "BookingSlot":
        if self.end_time <= self.start_time:
            raise ValueError("End time must be after start time")
        return self


class BookingCreate(BookingSlot):
    purpose: str = Field(min_length=10, max_length=500)

    @field_validator("purpose")
    @classmethod
    def normalize_purpose(cls, value: str) -> str:
        purpose = value.strip()
        if len(purpose) < 10:
            raise ValueError("Purpose must be between 10 and 500 characters")
        return purpose

    @field_validator("date")
    @classmethod
    def validate_not_past(cls, value: dt.date) -> dt.date:
        if value < dt.date.today():
            raise ValueError("Booking date cannot be in the past")
        return value


class BookingDecision(CamelModel):
    admin_notes: str | None = Field(default=None, max_length=200)

    @field_validator("admin_notes")
    @classmethod
    def normalize_notes(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class BookingStatusUpdate(BookingDecision):
    status: BookingStatus

    @field_validator("status")
    @classmethod
    def validate_decision(cls, value: BookingStatus) -> BookingStatus:
        if value == BookingStatus.pending:
            raise ValueError("Status must be either approved or rejected")
        return value


class BookingOut(CamelModel):
    id: str
    student_id: str
    student_roll_number: str
    student_name: str
    room: str
    date: dt.date
    start_time: str
    end_time: str
    purpose: str
    status: BookingStatus
    admin_notes: str | None = None
    processed_by_id: str | None = None
    processed_at: dt.datetime | None = None
    created_at: dt.datetime | None = None
    updated_at: dt.datetime | None = None


class AvailabilityOut(CamelModel):
    available: bool
    existing_bookings: list[BookingOut]
    conflicting_booking: BookingOut | None = None
