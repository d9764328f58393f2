import json
from pathlib import Path

from campusdesk.models.issue import Issue


def _issue_form(**overrides):
    form = {
        "title": "Projector not working",
        "description": "The projector in the lab flickers and switches off after a few minutes.",
        "category": "infrastructure",
        "priority": "high",
        "roomCode": "b201",
        "affectedComponents": json.dumps(["projector", "mystery_box"]),
    }
    form.update(overrides)
    return form


def _create_issue(client, headers, files=None, **overrides):
    return client.post("/api/issues", data=_issue_form(**overrides), files=files, headers=headers)


def test_create_issue_resolves_components(client, student_headers, student_user):
    response = _create_issue(client, student_headers)
    assert response.status_code == 201
    issue = response.json()["data"]["issue"]
    assert issue["status"] == "pending"
    assert issue["roomCode"] == "B201"
    assert issue["roomName"] == "AIR Lab"
    assert issue["studentRollNumber"] == student_user.roll_number
    assert issue["affectedComponents"] == [
        {"id": "projector", "name": "4K Projector", "category": "AV Equipment"},
        {"id": "mystery_box", "name": "mystery_box", "category": "Other"},
    ]
    assert issue["attachments"] == []


def test_create_issue_validation(client, student_headers):
    short = _create_issue(client, student_headers, title="Hey")
    assert short.status_code == 400
    assert any(error["field"] == "title" for error in short.json()["errors"])

    no_components = _create_issue(client, student_headers, affectedComponents="[]")
    assert no_components.status_code == 400

    not_json = _create_issue(client, student_headers, affectedComponents="projector,fan")
    assert not_json.status_code == 400
    assert not_json.json()["errors"][0]["field"] == "affectedComponents"

    bad_category = _create_issue(client, student_headers, category="plumbing")
    assert bad_category.status_code == 400


def test_create_issue_with_attachments(client, student_headers, upload_dir):
    files = [
        ("attachments", ("photo.png", b"\x89PNG fake image", "image/png")),
        ("attachments", ("notes.txt", b"flickers at 10am", "text/plain")),
    ]
    response = _create_issue(client, student_headers, files=files)
    assert response.status_code == 201
    attachments = response.json()["data"]["issue"]["attachments"]
    assert [item["originalName"] for item in attachments] == ["photo.png", "notes.txt"]
    assert all(item["path"].startswith("issues/") for item in attachments)
    for item in attachments:
        assert (upload_dir / item["path"]).is_file()

    issue_id = response.json()["data"]["issue"]["id"]
    download = client.get(
        f"/api/issues/{issue_id}/attachments/{attachments[1]['filename']}",
        headers=student_headers,
    )
    assert download.status_code == 200
    assert download.content == b"flickers at 10am"


def test_bad_attachment_rejects_whole_request(client, student_headers, upload_dir, db_session):
    files = [
        ("attachments", ("photo.png", b"fine", "image/png")),
        ("attachments", ("script.sh", b"rm -rf /", "application/x-sh")),
    ]
    response = _create_issue(client, student_headers, files=files)
    assert response.status_code == 400
    assert response.json()["message"] == "File upload failed"
    assert db_session.query(Issue).count() == 0
    stored = list((upload_dir / "issues").glob("*")) if (upload_dir / "issues").exists() else []
    assert stored == []


def test_issue_status_transitions(client, student_headers, admin_headers, admin_user):
    issue = _create_issue(client, student_headers).json()["data"]["issue"]

    opened = client.patch(f"/api/issues/{issue['id']}/approve", headers=admin_headers)
    assert opened.status_code == 200
    assert opened.json()["data"]["issue"]["status"] == "open"
    assert opened.json()["data"]["issue"]["processedById"] == admin_user.id

    unknown = client.patch(
        f"/api/issues/{issue['id']}/status",
        json={"status": "in-progress", "assignedTo": "tech-7"},
        headers=admin_headers,
    )
    assert unknown.status_code == 400
    assert unknown.json()["errors"] == [{"field": "assignedTo", "message": "Assigned user not found"}]
    unchanged = client.get(f"/api/issues/{issue['id']}", headers=admin_headers).json()["data"]["issue"]
    assert unchanged["status"] == "open"
    assert unchanged["assignedToId"] is None

    progress = client.patch(
        f"/api/issues/{issue['id']}/status",
        json={"status": "in-progress", "assignedTo": admin_user.id, "adminNotes": "Technician assigned"},
        headers=admin_headers,
    )
    assert progress.status_code == 200
    body = progress.json()["data"]["issue"]
    assert body["assignedToId"] == admin_user.id
    assert body["adminNotes"] == "Technician assigned"

    resolved = client.patch(f"/api/issues/{issue['id']}/resolve", json={"adminNotes": "Bulb replaced"}, headers=admin_headers)
    assert resolved.status_code == 200
    first_resolved_at = resolved.json()["data"]["issue"]["resolvedAt"]
    assert first_resolved_at is not None

    repeat = client.patch(f"/api/issues/{issue['id']}/resolve", headers=admin_headers)
    assert repeat.json()["data"]["issue"]["resolvedAt"] == first_resolved_at

    invalid = client.patch(f"/api/issues/{issue['id']}/status", json={"status": "done"}, headers=admin_headers)
    assert invalid.status_code == 400


def test_students_cannot_change_status(client, student_headers):
    issue = _create_issue(client, student_headers).json()["data"]["issue"]
    response = client.patch(f"/api/issues/{issue['id']}/resolve", headers=student_headers)
    assert response.status_code == 403


def test_issue_listing_and_scoping(client, student_headers, other_headers, admin_headers, student_user):
    _create_issue(client, student_headers)
    _create_issue(client, student_headers, category="hostel", priority="low")
    _create_issue(client, other_headers)

    mine = client.get("/api/issues/my-issues", headers=student_headers)
    assert mine.json()["data"]["pagination"]["total"] == 2

    assert client.get(f"/api/issues/student/{student_user.id}", headers=other_headers).status_code == 403

    filtered = client.get(
        "/api/issues/all",
        params={"category": "hostel", "studentRollNumber": student_user.roll_number.lower()},
        headers=admin_headers,
    )
    assert filtered.json()["data"]["pagination"]["total"] == 1
    assert client.get("/api/issues", headers=student_headers).status_code == 403


def test_issue_delete_rules_remove_files(client, student_headers, admin_headers, upload_dir):
    files = [("attachments", ("photo.png", b"img", "image/png"))]
    issue = _create_issue(client, student_headers, files=files).json()["data"]["issue"]
    stored_path = upload_dir / issue["attachments"][0]["path"]
    assert stored_path.is_file()

    client.patch(f"/api/issues/{issue['id']}/approve", headers=admin_headers)
    blocked = client.delete(f"/api/issues/{issue['id']}", headers=student_headers)
    assert blocked.status_code == 400

    deleted = client.delete(f"/api/issues/{issue['id']}", headers=admin_headers)
    assert deleted.status_code == 200
    assert not stored_path.exists()


def test_issue_summary(client, student_headers, admin_headers):
    first = _create_issue(client, student_headers).json()["data"]["issue"]
    _create_issue(client, student_headers, category="canteen")
    client.patch(f"/api/issues/{first['id']}/resolve", headers=admin_headers)

    summary = client.get("/api/issues/stats/summary", headers=admin_headers)
    assert summary.status_code == 200
    data = summary.json()["data"]
    statuses = {item["label"]: item["value"] for item in data["statusStats"]}
    assert statuses == {"pending": 1, "resolved": 1}
    assert data["resolutionStats"]["avgResolutionDays"] is not None


def test_attachment_write_failure_returns_server_error(client, student_headers, db_session, monkeypatch):
    def disk_full(self, data):
        raise OSError("No space left on device")

    monkeypatch.setattr(Path, "write_bytes", disk_full)
    response = _create_issue(
        client,
        student_headers,
        files=[("attachments", ("photo.png", b"\x89PNG", "image/png"))],
    )
    assert response.status_code == 500
    body = response.json()
    assert body["status"] == "error"
    assert body["message"] == "File upload failed"
    assert "detail" not in body
    assert db_session.query(Issue).count() == 0
