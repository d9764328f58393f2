from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
import logging
import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from campusdesk.db.helpers import insert_ignoring_duplicates
from campusdesk.models.booking import ACTIVE_BOOKING_STATUSES, Booking, BookingRoomLock
from campusdesk.schemas.common import normalize_time

logger = logging.getLogger(__name__)


@dataclass
class AvailabilityResult:
    conflicting: Booking | None
    same_day: list[Booking] = field(default_factory=list)

    @property
    def available(self) -> bool:
        return self.conflicting is None


def intervals_overlap(start_a: str, end_a: str, start_b: str, end_b: str) -> bool:
    """Half-open ``[start, end)`` overlap on zero-padded ``HH:MM`` strings."""
    return start_a < end_b and end_a > start_b


def find_conflicts(
    db: Session,
    *,
    room: str,
    on_date: date,
    start_time: str,
    end_time: str,
    exclude_id: str | None = None,
) -> AvailabilityResult:
    start = normalize_time(start_time)
    end = normalize_time(end_time)
    query = (
        select(Booking)
        .where(
            Booking.room == room.strip().upper(),
            Booking.date == on_date,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES),
        )
        .order_by(Booking.start_time.asc(), Booking.created_at.asc())
    )
    if exclude_id:
        query = query.where(Booking.id != exclude_id)
    same_day = list(db.execute(query).scalars())
    conflicting = next(
        (item for item in same_day if intervals_overlap(start, end, item.start_time, item.end_time)),
        None,
    )
    return AvailabilityResult(conflicting=conflicting, same_day=same_day)


def lock_room_day(db: Session, *, room: str, on_date: date) -> BookingRoomLock:
    """Serialize booking writers for one room and day until the transaction ends.

    The lock row is created on first use; every writer then takes a row lock on
    it, so the conflict check and the insert that follows cannot interleave
    with another writer's. SQLite ignores ``FOR UPDATE`` and serializes writes
    on its own.
    """
    room_code = room.strip().upper()
    if insert_ignoring_duplicates(db, BookingRoomLock.__table__, {"id": str(uuid.uuid4()), "room": room_code, "date": on_date}):
        logger.debug("Created booking lock row for %s on %s", room_code, on_date.isoformat())
    return db.execute(
        select(BookingRoomLock)
        .where(BookingRoomLock.room == room_code, BookingRoomLock.date == on_date)
        .with_for_update()
    ).scalar_one()
