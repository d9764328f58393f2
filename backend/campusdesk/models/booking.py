import uuid
import datetime as dt
from enum import Enum

from sqlalchemy import Date, DateTime, Enum as SAEnum, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from campusdesk.db.base import Base, enum_values


class BookingStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


ACTIVE_BOOKING_STATUSES = (BookingStatus.pending, BookingStatus.approved)


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_room_date", "room", "date"),
        Index("ix_bookings_student_date", "student_id", "date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    student_id: Mapped[str] = mapped_column(String(36), nullable=False)
    student_roll_number: Mapped[str] = mapped_column(String(20), nullable=False)
    student_name: Mapped[str] = mapped_column(String(50), nullable=False)
    room: Mapped[str] = mapped_column(String(50), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    purpose: Mapped[str] = mapped_column(Text, nullable=False)
    status: Mapped[BookingStatus] = mapped_column(
        SAEnum(BookingStatus, name="booking_status", values_callable=enum_values),
        nullable=False,
        default=BookingStatus.pending,
        index=True,
    )
    admin_notes: Mapped[str | None] = mapped_column(String(200), nullable=True)
    processed_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    processed_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())


class BookingRoomLock(Base):
    """One row per room and day, locked while a booking is checked and inserted."""

    __tablename__ = "booking_room_locks"
    __table_args__ = (UniqueConstraint("room", "date", name="uq_booking_room_locks_room_date"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    room: Mapped[str] = mapped_column(String(50), nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
