from datetime import date, timedelta

from conftest import auth_headers

from campusdesk.models.user import UserRole

BOOKING_DAY = (date.today() + timedelta(days=3)).isoformat()


def _booking(**overrides):
    payload = {
        "room": "b201",
        "date": BOOKING_DAY,
        "startTime": "9:00",
        "endTime": "10:30",
        "purpose": "Project review meeting for final year team",
    }
    payload.update(overrides)
    return payload


def test_create_booking_normalizes_input(client, student_headers, student_user):
    response = client.post("/api/bookings", json=_booking(), headers=student_headers)
    assert response.status_code == 201
    booking = response.json()["data"]["booking"]
    assert booking["room"] == "B201"
    assert booking["startTime"] == "09:00"
    assert booking["status"] == "pending"
    assert booking["studentRollNumber"] == student_user.roll_number


def test_booking_validation_errors(client, student_headers):
    past = client.post(
        "/api/bookings",
        json=_booking(date=(date.today() - timedelta(days=1)).isoformat()),
        headers=student_headers,
    )
    assert past.status_code == 400
    assert any(error["message"] == "Booking date cannot be in the past" for error in past.json()["errors"])

    reversed_times = client.post(
        "/api/bookings",
        json=_booking(startTime="11:00", endTime="10:00"),
        headers=student_headers,
    )
    assert reversed_times.status_code == 400

    bad_time = client.post("/api/bookings", json=_booking(startTime="9am"), headers=student_headers)
    assert bad_time.status_code == 400


def test_admin_cannot_create_booking(client, admin_headers):
    response = client.post("/api/bookings", json=_booking(), headers=admin_headers)
    assert response.status_code == 403


def test_overlapping_booking_rejected_with_conflict_details(client, student_headers, other_headers, student_user):
    first = client.post("/api/bookings", json=_booking(), headers=student_headers)
    assert first.status_code == 201

    clash = client.post("/api/bookings", json=_booking(startTime="10:00", endTime="11:00"), headers=other_headers)
    assert clash.status_code == 400
    body = clash.json()
    assert body["message"] == "This room is already booked for the selected time slot"
    assert body["conflictingBooking"]["startTime"] == "09:00"
    assert body["conflictingBooking"]["student"] == student_user.name

    touching = client.post("/api/bookings", json=_booking(startTime="10:30", endTime="11:30"), headers=other_headers)
    assert touching.status_code == 201

    other_room = client.post("/api/bookings", json=_booking(room="B202"), headers=other_headers)
    assert other_room.status_code == 201


def test_rejected_booking_frees_the_slot(client, student_headers, other_headers, admin_headers):
    first = client.post("/api/bookings", json=_booking(), headers=student_headers).json()["data"]["booking"]
    rejected = client.patch(
        f"/api/bookings/{first['id']}/reject",
        json={"adminNotes": "Room under maintenance"},
        headers=admin_headers,
    )
    assert rejected.status_code == 200
    assert rejected.json()["data"]["booking"]["adminNotes"] == "Room under maintenance"

    retry = client.post("/api/bookings", json=_booking(), headers=other_headers)
    assert retry.status_code == 201


def test_check_availability(client, student_headers):
    client.post("/api/bookings", json=_booking(), headers=student_headers)

    busy = client.get(
        "/api/bookings/check-availability",
        params={"room": "B201", "date": BOOKING_DAY, "startTime": "10:00", "endTime": "11:00"},
        headers=student_headers,
    )
    assert busy.status_code == 200
    data = busy.json()["data"]
    assert data["available"] is False
    assert data["conflictingBooking"]["startTime"] == "09:00"
    assert len(data["existingBookings"]) == 1

    free = client.get(
        "/api/bookings/check-availability",
        params={"room": "B201", "date": BOOKING_DAY, "startTime": "14:00", "endTime": "15:00"},
        headers=student_headers,
    )
    assert free.json()["data"]["available"] is True

    invalid = client.get(
        "/api/bookings/check-availability",
        params={"room": "B201", "date": BOOKING_DAY, "startTime": "15:00", "endTime": "14:00"},
        headers=student_headers,
    )
    assert invalid.status_code == 400


def test_decision_only_once(client, student_headers, admin_headers, admin_user):
    booking = client.post("/api/bookings", json=_booking(), headers=student_headers).json()["data"]["booking"]
    url = f"/api/bookings/{booking['id']}"

    approved = client.patch(f"{url}/approve", json={"adminNotes": "Room confirmed"}, headers=admin_headers)
    assert approved.status_code == 200
    first = approved.json()["data"]["booking"]
    assert first["status"] == "approved"
    assert first["processedAt"] is not None
    assert first["processedById"] == admin_user.id

    again = client.patch(
        f"{url}/status",
        json={"status": "rejected", "adminNotes": "Changed my mind"},
        headers=admin_headers,
    )
    assert again.status_code == 400
    assert again.json()["message"] == "Booking status has already been updated"

    rejected = client.patch(f"{url}/reject", json={"adminNotes": "Changed my mind"}, headers=admin_headers)
    assert rejected.status_code == 400

    back_to_pending = client.patch(f"{url}/status", json={"status": "pending"}, headers=admin_headers)
    assert back_to_pending.status_code == 400

    stored = client.get(url, headers=admin_headers).json()["data"]["booking"]
    assert stored["status"] == "approved"
    assert stored["adminNotes"] == "Room confirmed"
    assert stored["processedAt"] == first["processedAt"]
    assert stored["processedById"] == first["processedById"]
    assert stored["updatedAt"] == first["updatedAt"]


def test_owner_scoping(client, student_headers, other_headers, admin_headers, student_user):
    booking = client.post("/api/bookings", json=_booking(), headers=student_headers).json()["data"]["booking"]

    assert client.get(f"/api/bookings/{booking['id']}", headers=other_headers).status_code == 403
    assert client.get(f"/api/bookings/{booking['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/bookings/student/{student_user.id}", headers=other_headers).status_code == 403

    mine = client.get("/api/bookings/my-bookings", headers=student_headers)
    assert mine.json()["data"]["pagination"]["total"] == 1

    assert client.get("/api/bookings", headers=student_headers).status_code == 403
    listing = client.get("/api/bookings/all", params={"room": "b201"}, headers=admin_headers)
    assert listing.json()["data"]["pagination"]["total"] == 1


def test_withdraw_rules(client, student_headers, admin_headers, make_user):
    pending = client.post("/api/bookings", json=_booking(), headers=student_headers).json()["data"]["booking"]
    assert client.delete(f"/api/bookings/{pending['id']}", headers=student_headers).status_code == 200

    decided = client.post("/api/bookings", json=_booking(), headers=student_headers).json()["data"]["booking"]
    client.patch(f"/api/bookings/{decided['id']}/approve", headers=admin_headers)
    blocked = client.delete(f"/api/bookings/{decided['id']}", headers=student_headers)
    assert blocked.status_code == 400
    assert blocked.json()["message"] == "Cannot delete approved or rejected bookings"

    assert client.delete(f"/api/bookings/{decided['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/bookings/{decided['id']}", headers=admin_headers).status_code == 404


def test_representative_can_book(client, make_user):
    rep = make_user(role=UserRole.class_representative)
    response = client.post("/api/bookings", json=_booking(room="A101"), headers=auth_headers(rep))
    assert response.status_code == 201


def test_overlapping_b201_slots(client, student_headers, other_headers):
    first = client.post(
        "/api/bookings",
        json=_booking(room="B201", startTime="10:00", endTime="12:00"),
        headers=student_headers,
    )
    assert first.status_code == 201

    check = client.get(
        "/api/bookings/check-availability",
        params={"room": "B201", "date": BOOKING_DAY, "startTime": "11:00", "endTime": "13:00"},
        headers=other_headers,
    )
    assert check.json()["data"]["available"] is False

    second = client.post(
        "/api/bookings",
        json=_booking(room="B201", startTime="11:00", endTime="13:00"),
        headers=other_headers,
    )
    assert second.status_code == 400
