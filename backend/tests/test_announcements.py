from datetime import datetime, timedelta, timezone

from conftest import auth_headers

from campusdesk.models.announcement import AnnouncementView
from campusdesk.models.user import AcademicYear, Department


def _announcement_form(**overrides):
    form = {
        "title": "Lab maintenance window",
        "content": "All labs in B block will be closed on Saturday for maintenance.",
        "category": "general",
        "priority": "medium",
        "targetAudience": "all",
    }
    form.update(overrides)
    return form


def _create(client, headers, files=None, **overrides):
    response = client.post("/api/announcements", data=_announcement_form(**overrides), files=files, headers=headers)
    assert response.status_code == 201, response.json()
    return response.json()["data"]["announcement"]


def test_only_admin_can_publish(client, student_headers):
    response = client.post("/api/announcements", data=_announcement_form(), headers=student_headers)
    assert response.status_code == 403


def test_targeting_validation(client, admin_headers):
    missing_year = client.post(
        "/api/announcements",
        data=_announcement_form(targetAudience="specific-year"),
        headers=admin_headers,
    )
    assert missing_year.status_code == 400
    assert "Target year is required" in missing_year.json()["errors"][0]["message"]

    bad_expiry = client.post(
        "/api/announcements",
        data=_announcement_form(
            publishDate="2030-01-10T10:00:00Z",
            expiryDate="2030-01-09T10:00:00Z",
        ),
        headers=admin_headers,
    )
    assert bad_expiry.status_code == 400

    cleared = _create(client, admin_headers, targetAudience="students", targetYear="2nd")
    assert cleared["targetYear"] is None


def test_public_listing_respects_audience(client, admin_headers, make_user):
    _create(client, admin_headers, title="For everyone here")
    _create(client, admin_headers, title="Students only notice", targetAudience="students")
    _create(client, admin_headers, title="Third years notice", targetAudience="specific-year", targetYear="3rd")
    _create(
        client,
        admin_headers,
        title="Civil department notice",
        targetAudience="specific-department",
        targetDepartment="Civil Engineering",
    )
    _create(client, admin_headers, title="Hidden draft notice", isActive="false")

    anonymous = client.get("/api/announcements")
    assert [item["title"] for item in anonymous.json()["data"]["announcements"]] == ["For everyone here"]

    third_year = make_user(year=AcademicYear.third, department=Department.computer_science)
    seen = client.get("/api/announcements", headers=auth_headers(third_year)).json()["data"]["announcements"]
    assert {item["title"] for item in seen} == {"For everyone here", "Students only notice", "Third years notice"}

    civil = make_user(year=AcademicYear.first, department=Department.civil_engineering, class_name="G1")
    seen = client.get("/api/announcements", headers=auth_headers(civil)).json()["data"]["announcements"]
    assert {item["title"] for item in seen} == {"For everyone here", "Students only notice", "Civil department notice"}

    management = client.get("/api/announcements/all", headers=admin_headers)
    assert management.json()["data"]["pagination"]["total"] == 5


def test_expired_announcements_hidden(client, admin_headers, student_headers):
    past = datetime.now(timezone.utc) - timedelta(days=10)
    expired = _create(
        client,
        admin_headers,
        publishDate=past.isoformat(),
        expiryDate=(past + timedelta(days=1)).isoformat(),
    )
    listing = client.get("/api/announcements", headers=student_headers)
    assert listing.json()["data"]["pagination"]["total"] == 0

    detail = client.get(f"/api/announcements/{expired['id']}", headers=student_headers)
    assert detail.status_code == 404
    assert detail.json()["message"] == "Announcement not available"

    assert client.get(f"/api/announcements/{expired['id']}", headers=admin_headers).status_code == 200


def test_pinned_first(client, admin_headers):
    _create(client, admin_headers, title="Older pinned notice", isPinned="true", publishDate="2020-01-01T00:00:00Z")
    _create(client, admin_headers, title="Newer regular notice")

    items = client.get("/api/announcements").json()["data"]["announcements"]
    assert [item["title"] for item in items] == ["Older pinned notice", "Newer regular notice"]


def test_views_counted_once_per_viewer(client, admin_headers, student_headers, other_headers, db_session):
    announcement = _create(client, admin_headers)
    url = f"/api/announcements/{announcement['id']}"

    assert client.get(url).json()["data"]["announcement"]["views"] == 0
    assert client.get(url, headers=student_headers).json()["data"]["announcement"]["views"] == 1
    assert client.get(url, headers=student_headers).json()["data"]["announcement"]["views"] == 1
    assert client.get(url, headers=other_headers).json()["data"]["announcement"]["views"] == 2
    assert db_session.query(AnnouncementView).count() == 2


def test_update_revalidates_and_replaces_attachments(client, admin_headers, upload_dir):
    files = [("attachments", ("schedule.pdf", b"%PDF-1.4 old", "application/pdf"))]
    announcement = _create(client, admin_headers, files=files)
    old_path = upload_dir / announcement["attachments"][0]["path"]
    assert old_path.is_file()

    needs_year = client.put(
        f"/api/announcements/{announcement['id']}",
        data={"targetAudience": "specific-year"},
        headers=admin_headers,
    )
    assert needs_year.status_code == 400

    updated = client.put(
        f"/api/announcements/{announcement['id']}",
        data={"title": "Updated maintenance window", "targetAudience": "specific-year", "targetYear": "2nd"},
        files=[("attachments", ("schedule-v2.pdf", b"%PDF-1.4 new", "application/pdf"))],
        headers=admin_headers,
    )
    assert updated.status_code == 200
    body = updated.json()["data"]["announcement"]
    assert body["title"] == "Updated maintenance window"
    assert body["targetYear"] == "2nd"
    assert body["content"] == announcement["content"]
    assert [item["originalName"] for item in body["attachments"]] == ["schedule-v2.pdf"]
    assert not old_path.exists()

    download = client.get(
        f"/api/announcements/{announcement['id']}/attachments/{body['attachments'][0]['filename']}",
        headers=admin_headers,
    )
    assert download.status_code == 200
    assert download.content == b"%PDF-1.4 new"


def test_toggle_pin_and_delete(client, admin_headers):
    announcement = _create(client, admin_headers)
    pinned = client.patch(f"/api/announcements/{announcement['id']}/toggle-pin", headers=admin_headers)
    assert pinned.json()["data"]["announcement"]["isPinned"] is True
    assert pinned.json()["message"] == "Announcement pinned successfully"
    unpinned = client.patch(f"/api/announcements/{announcement['id']}/toggle-pin", headers=admin_headers)
    assert unpinned.json()["data"]["announcement"]["isPinned"] is False

    assert client.delete(f"/api/announcements/{announcement['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/announcements/{announcement['id']}", headers=admin_headers).status_code == 404


def test_announcement_summary(client, admin_headers, student_headers):
    first = _create(client, admin_headers, category="exam")
    _create(client, admin_headers, category="exam", targetAudience="students")
    client.get(f"/api/announcements/{first['id']}", headers=student_headers)

    summary = client.get("/api/announcements/stats/summary", headers=admin_headers).json()["data"]
    assert {item["label"]: item["value"] for item in summary["categoryStats"]} == {"exam": 2}
    assert summary["totalViews"] == 1
