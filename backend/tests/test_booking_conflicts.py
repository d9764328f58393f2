from datetime import date

import pytest

from campusdesk.models.booking import Booking, BookingRoomLock, BookingStatus
from campusdesk.services.booking_conflicts import find_conflicts, intervals_overlap, lock_room_day

DAY = date(2030, 3, 14)


@pytest.mark.parametrize(
    ("first", "second", "expected"),
    [
        (("09:00", "10:00"), ("09:30", "10:30"), True),
        (("09:00", "10:00"), ("10:00", "11:00"), False),
        (("09:00", "12:00"), ("10:00", "11:00"), True),
        (("13:00", "14:00"), ("09:00", "10:00"), False),
    ],
)
def test_intervals_overlap(first, second, expected):
    assert intervals_overlap(*first, *second) is expected
    assert intervals_overlap(*second, *first) is expected


def _add_booking(db, *, start, end, status=BookingStatus.pending, room="B201"):
    booking = Booking(
        student_id="student-1",
        student_roll_number="22CS101",
        student_name="Asha",
        room=room,
        date=DAY,
        start_time=start,
        end_time=end,
        purpose="Weekly club meeting in the room",
        status=status,
    )
    db.add(booking)
    db.commit()
    return booking


def test_find_conflicts_ignores_rejected_and_other_rooms(db_session):
    _add_booking(db_session, start="09:00", end="10:00", status=BookingStatus.rejected)
    _add_booking(db_session, start="09:00", end="10:00", room="B202")
    approved = _add_booking(db_session, start="11:00", end="12:00", status=BookingStatus.approved)

    free = find_conflicts(db_session, room="b201", on_date=DAY, start_time="9:15", end_time="9:45")
    assert free.available
    assert [item.id for item in free.same_day] == [approved.id]

    busy = find_conflicts(db_session, room="B201", on_date=DAY, start_time="11:30", end_time="13:00")
    assert busy.conflicting.id == approved.id


def test_find_conflicts_can_exclude_a_booking(db_session):
    existing = _add_booking(db_session, start="09:00", end="10:00")
    result = find_conflicts(
        db_session, room="B201", on_date=DAY, start_time="09:00", end_time="10:00", exclude_id=existing.id
    )
    assert result.available


def test_lock_row_created_once_per_room_day(db_session):
    first = lock_room_day(db_session, room="b201", on_date=DAY)
    db_session.commit()
    second = lock_room_day(db_session, room="B201", on_date=DAY)
    db_session.commit()
    assert first.id == second.id
    assert db_session.query(BookingRoomLock).count() == 1
