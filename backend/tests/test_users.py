from conftest import DEFAULT_PASSWORD

from campusdesk.models.activity_log import ActivityLog
from campusdesk.models.user import ApprovalStatus, User, UserRole


def test_user_routes_are_admin_only(client, student_headers):
    response = client.get("/api/users", headers=student_headers)
    assert response.status_code == 403
    assert response.json()["message"] == "Access denied - insufficient permissions"


def test_admin_creates_approved_user(client, admin_user, admin_headers):
    response = client.post(
        "/api/users",
        json={
            "rollNumber": "22ME050",
            "name": "Karthik",
            "email": "Karthik@psgtech.ac.in",
            "password": "secret123",
            "role": "class-representative",
            "department": "Mechanical Engineering",
            "year": "4th",
            "className": "G1",
        },
        headers=admin_headers,
    )
    assert response.status_code == 201
    user = response.json()["data"]["user"]
    assert user["approvalStatus"] == "approved"
    assert user["approvedById"] == admin_user.id
    assert user["email"] == "karthik@psgtech.ac.in"

    login = client.post("/api/auth/login", json={"email": "karthik@psgtech.ac.in", "password": "secret123"})
    assert login.status_code == 200

    duplicate = client.post(
        "/api/users",
        json={
            "rollNumber": "22ME050",
            "name": "Someone Else",
            "email": "other@psgtech.ac.in",
            "password": "secret123",
            "className": "G1",
        },
        headers=admin_headers,
    )
    assert duplicate.status_code == 400
    assert duplicate.json()["message"] == "Roll number already registered"


def test_list_users_filters_and_paginates(client, admin_headers, make_user):
    for _ in range(3):
        make_user()
    make_user(role=UserRole.class_representative, approval_status=ApprovalStatus.pending)

    page = client.get("/api/users", params={"role": "student", "limit": 2, "page": 1}, headers=admin_headers)
    assert page.status_code == 200
    data = page.json()["data"]
    assert len(data["users"]) == 2
    assert data["pagination"] == {"current": 1, "pages": 2, "total": 3}

    pending = client.get("/api/users/pending-approval", headers=admin_headers)
    assert pending.json()["data"]["pagination"]["total"] == 1


def test_approve_and_reject_lifecycle(client, admin_headers, make_user, db_session):
    rep = make_user(role=UserRole.class_representative, approval_status=ApprovalStatus.pending)

    approved = client.patch(f"/api/users/{rep.id}/approve", headers=admin_headers)
    assert approved.status_code == 200
    assert approved.json()["data"]["user"]["isApproved"] is True

    again = client.patch(f"/api/users/{rep.id}/approve", headers=admin_headers)
    assert again.status_code == 400
    assert again.json()["message"] == "User is already approved"

    other = make_user(role=UserRole.class_representative, approval_status=ApprovalStatus.pending)
    rejected = client.patch(
        f"/api/users/{other.id}/reject",
        json={"reason": "Not a class representative"},
        headers=admin_headers,
    )
    assert rejected.status_code == 200
    assert rejected.json()["data"]["user"]["approvalStatus"] == "rejected"
    assert rejected.json()["data"]["user"]["isActive"] is False

    actions = {row.action for row in db_session.query(ActivityLog).all()}
    assert {"user.approve", "user.reject"} <= actions


def test_admin_accounts_cannot_be_approved(client, admin_user, admin_headers):
    response = client.patch(f"/api/users/{admin_user.id}/approve", headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["message"] == "Admin accounts cannot be approved through this endpoint"


def test_status_toggle_blocks_login(client, admin_headers, student_user):
    response = client.patch(f"/api/users/{student_user.id}/status", json={"status": "inactive"}, headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["message"] == "User deactivated successfully"

    login = client.post("/api/auth/login", json={"email": student_user.email, "password": DEFAULT_PASSWORD})
    assert login.status_code == 401

    invalid = client.patch(f"/api/users/{student_user.id}/status", json={"status": "paused"}, headers=admin_headers)
    assert invalid.status_code == 400


def test_delete_user_but_not_self(client, admin_user, admin_headers, student_user):
    self_delete = client.delete(f"/api/users/{admin_user.id}", headers=admin_headers)
    assert self_delete.status_code == 400
    assert self_delete.json()["message"] == "You cannot delete your own account"

    deleted = client.delete(f"/api/users/{student_user.id}", headers=admin_headers)
    assert deleted.status_code == 200
    missing = client.get(f"/api/users/{student_user.id}", headers=admin_headers)
    assert missing.status_code == 404
    assert missing.json()["message"] == "User not found"


def test_admin_created_user_needs_institution_email(client, admin_headers, db_session):
    response = client.post(
        "/api/users",
        json={
            "rollNumber": "22ME051",
            "name": "Outside Guest",
            "email": "someone@gmail.com",
            "password": "secret123",
            "className": "G1",
        },
        headers=admin_headers,
    )
    assert response.status_code == 400
    assert any(error["field"] == "email" for error in response.json()["errors"])
    assert db_session.query(User).filter(User.roll_number == "22ME051").count() == 0
