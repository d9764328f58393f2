from datetime import datetime, timedelta, timezone

import pytest

from campusdesk.models.announcement import Announcement, TargetAudience
from campusdesk.models.user import AcademicYear, Department, User, UserRole
from campusdesk.services.audience import is_expired, is_visible_to, targets

NOW = datetime(2030, 5, 1, 12, 0, tzinfo=timezone.utc)


def _viewer(role=UserRole.student, year=AcademicYear.second, department=Department.information_technology):
    return User(id="viewer", role=role, year=year, department=department)


def _announcement(**overrides):
    values = {
        "target_audience": TargetAudience.all,
        "is_active": True,
        "publish_date": NOW - timedelta(days=1),
        "expiry_date": None,
    }
    values.update(overrides)
    return Announcement(**values)


@pytest.mark.parametrize(
    ("announcement", "expected"),
    [
        (_announcement(), True),
        (_announcement(target_audience=TargetAudience.students), True),
        (_announcement(target_audience=TargetAudience.specific_year, target_year=AcademicYear.second), True),
        (_announcement(target_audience=TargetAudience.specific_year, target_year=AcademicYear.fourth), False),
        (
            _announcement(
                target_audience=TargetAudience.specific_department,
                target_department=Department.information_technology.value,
            ),
            True,
        ),
        (
            _announcement(
                target_audience=TargetAudience.specific_department,
                target_department=Department.civil_engineering.value,
            ),
            False,
        ),
    ],
)
def test_student_targeting(announcement, expected):
    assert targets(announcement, _viewer()) is expected


def test_anonymous_sees_only_all():
    assert targets(_announcement(), None)
    assert not targets(_announcement(target_audience=TargetAudience.students), None)


def test_representative_counts_as_student():
    rep = _viewer(role=UserRole.class_representative)
    assert targets(_announcement(target_audience=TargetAudience.students), rep)


def test_expiry_and_active_flags():
    expired = _announcement(expiry_date=NOW - timedelta(minutes=1))
    assert is_expired(expired, now=NOW)
    assert not is_visible_to(expired, _viewer(), now=NOW)
    assert not is_visible_to(_announcement(is_active=False), _viewer(), now=NOW)

    naive_future = _announcement(expiry_date=datetime(2030, 6, 1, 0, 0))
    assert not is_expired(naive_future, now=NOW)


def test_admin_sees_everything():
    admin = _viewer(role=UserRole.admin)
    hidden = _announcement(is_active=False, target_audience=TargetAudience.specific_year, target_year=AcademicYear.first)
    assert is_visible_to(hidden, admin, now=NOW)
