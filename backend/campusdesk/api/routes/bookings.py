from __future__ import annotations

from datetime import date
import logging

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from campusdesk.api.deps import (
    get_current_user,
    get_db,
    list_query,
    require_admin,
    require_student_or_representative,
)
from campusdesk.api.responses import paginate, success, validate_payload
from campusdesk.core.exceptions import ConflictError, ResourceNotFoundError
from campusdesk.models.booking import Booking, BookingStatus
from campusdesk.models.user import User
from campusdesk.schemas.booking import (
    AvailabilityOut,
    BookingCreate,
    BookingDecision,
    BookingOut,
    BookingSlot,
    BookingStatusUpdate,
)
from campusdesk.schemas.common import ListQuery
from campusdesk.services.access import ensure_can_access, is_admin
from campusdesk.services.audit import log_activity
from campusdesk.services.booking_conflicts import find_conflicts, lock_room_day
from campusdesk.services.lifecycle import can_withdraw_booking, decide_booking

router = APIRouter()
logger = logging.getLogger(__name__)

BOOKING_SORT_COLUMNS = {
    "date": Booking.date,
    "createdAt": Booking.created_at,
    "startTime": Booking.start_time,
    "room": Booking.room,
    "status": Booking.status,
}


def _get_booking(db: Session, booking_id: str) -> Booking:
    booking = db.get(Booking, booking_id)
    if booking is None:
        raise ResourceNotFoundError("Booking")
    return booking


def _owner_bookings(db: Session, *, owner_id: str, status_filter: BookingStatus | None, params: ListQuery) -> dict:
    query = select(Booking).where(Booking.student_id == owner_id)
    if status_filter is not None:
        query = query.where(Booking.status == status_filter)
    bookings, pagination = paginate(db, query, params, sortable=BOOKING_SORT_COLUMNS, default_sort="date")
    return success({"bookings": [BookingOut.model_validate(item) for item in bookings], "pagination": pagination})


@router.get("/check-availability")
def check_availability(
    room: str = Query(min_length=1, max_length=50),
    on_date: date = Query(alias="date"),
    start_time: str = Query(alias="startTime"),
    end_time: str = Query(alias="endTime"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    slot = validate_payload(
        BookingSlot, {"room": room, "date": on_date, "start_time": start_time, "end_time": end_time}
    )
    result = find_conflicts(db, room=slot.room, on_date=slot.date, start_time=slot.start_time, end_time=slot.end_time)
    availability = AvailabilityOut(
        available=result.available,
        existing_bookings=[BookingOut.model_validate(item) for item in result.same_day],
        conflicting_booking=BookingOut.model_validate(result.conflicting) if result.conflicting else None,
    )
    return success(availability)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_booking(
    payload: BookingCreate,
    current_user: User = Depends(require_student_or_representative),
    db: Session = Depends(get_db),
) -> dict:
    # Lock, re-check and insert inside one transaction so two writers cannot
    # both pass the overlap check for the same room and day.
    lock_room_day(db, room=payload.room, on_date=payload.date)
    result = find_conflicts(
        db, room=payload.room, on_date=payload.date, start_time=payload.start_time, end_time=payload.end_time
    )
    if result.conflicting is not None:
        db.rollback()
        clash = result.conflicting
        raise ConflictError(
            "This room is already booked for the selected time slot",
            extra={
                "conflictingBooking": {
                    "id": clash.id,
                    "startTime": clash.start_time,
                    "endTime": clash.end_time,
                    "student": clash.student_name,
                }
            },
        )

    booking = Booking(
        student_id=current_user.id,
        student_roll_number=current_user.roll_number,
        student_name=current_user.name,
        room=payload.room,
        date=payload.date,
        start_time=payload.start_time,
        end_time=payload.end_time,
        purpose=payload.purpose,
        status=BookingStatus.pending,
    )
    db.add(booking)
    db.flush()
    log_activity(
        db,
        user=current_user,
        action="booking.create",
        entity_type="booking",
        entity_id=booking.id,
        details={"room": booking.room, "date": booking.date.isoformat()},
    )
    db.commit()
    db.refresh(booking)
    return success({"booking": BookingOut.model_validate(booking)}, "Booking created successfully")


@router.get("/my-bookings")
def my_bookings(
    status_filter: BookingStatus | None = Query(default=None, alias="status"),
    params: ListQuery = Depends(list_query),
    current_user: User = Depends(require_student_or_representative),
    db: Session = Depends(get_db),
) -> dict:
    return _owner_bookings(db, owner_id=current_user.id, status_filter=status_filter, params=params)


@router.get("/student/{student_id}")
def student_bookings(
    student_id: str,
    status_filter: BookingStatus | None = Query(default=None, alias="status"),
    params: ListQuery = Depends(list_query),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    ensure_can_access(current_user, student_id)
    return _owner_bookings(db, owner_id=student_id, status_filter=status_filter, params=params)


@router.get("")
@router.get("/all")
def list_bookings(
    status_filter: BookingStatus | None = Query(default=None, alias="status"),
    room: str | None = Query(default=None, max_length=50),
    on_date: date | None = Query(default=None, alias="date"),
    student_roll_number: str | None = Query(default=None, alias="studentRollNumber", max_length=20),
    params: ListQuery = Depends(list_query),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    query = select(Booking)
    if status_filter is not None:
        query = query.where(Booking.status == status_filter)
    if room:
        query = query.where(Booking.room == room.strip().upper())
    if on_date is not None:
        query = query.where(Booking.date == on_date)
    if student_roll_number:
        query = query.where(Booking.student_roll_number == student_roll_number.strip().upper())
    bookings, pagination = paginate(db, query, params, sortable=BOOKING_SORT_COLUMNS, default_sort="date")
    return success({"bookings": [BookingOut.model_validate(item) for item in bookings], "pagination": pagination})


def _decide(db: Session, booking_id: str, decision: BookingStatus, admin: User, admin_notes: str | None) -> dict:
    booking = decide_booking(_get_booking(db, booking_id), decision=decision, admin=admin, admin_notes=admin_notes)
    log_activity(
        db,
        user=admin,
        action=f"booking.{decision.value}",
        entity_type="booking",
        entity_id=booking.id,
        details={"room": booking.room, "date": booking.date.isoformat()},
    )
    db.commit()
    db.refresh(booking)
    return success({"booking": BookingOut.model_validate(booking)}, f"Booking {decision.value} successfully")


@router.patch("/{booking_id}/status")
def update_booking_status(
    booking_id: str,
    payload: BookingStatusUpdate,
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    return _decide(db, booking_id, payload.status, current_user, payload.admin_notes)


@router.patch("/{booking_id}/approve")
def approve_booking(
    booking_id: str,
    payload: BookingDecision | None = Body(default=None),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    return _decide(db, booking_id, BookingStatus.approved, current_user, payload.admin_notes if payload else None)


@router.patch("/{booking_id}/reject")
def reject_booking(
    booking_id: str,
    payload: BookingDecision | None = Body(default=None),
    current_user: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> dict:
    return _decide(db, booking_id, BookingStatus.rejected, current_user, payload.admin_notes if payload else None)


@router.delete("/{booking_id}")
def delete_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    booking = _get_booking(db, booking_id)
    ensure_can_access(current_user, booking.student_id)
    if not can_withdraw_booking(booking, is_admin=is_admin(current_user)):
        raise ConflictError("Cannot delete approved or rejected bookings")
    log_activity(
        db,
        user=current_user,
        action="booking.delete",
        entity_type="booking",
        entity_id=booking.id,
        details={"room": booking.room, "status": booking.status.value},
    )
    db.delete(booking)
    db.commit()
    return success(message="Booking deleted successfully")


@router.get("/{booking_id}")
def get_booking(
    booking_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> dict:
    booking = _get_booking(db, booking_id)
    ensure_can_access(current_user, booking.student_id)
    return success({"booking": BookingOut.model_validate(booking)})
