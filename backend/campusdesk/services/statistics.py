"""Dashboard and summary aggregates.

Counts are grouped in SQL. Only the day, week and month bucket labels and the
slot-length arithmetic on ``HH:MM`` strings are computed in Python, over rows
already restricted to the requested window.
"""

from __future__ import annotations

from collections import Counter
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Literal

from sqlalchemy import func, select
from sqlalchemy.orm import Session
from sqlalchemy.sql.elements import ColumnElement

from campusdesk.models.announcement import Announcement
from campusdesk.models.booking import Booking, BookingStatus
from campusdesk.models.issue import Issue, IssueStatus
from campusdesk.models.user import User, UserRole
from campusdesk.schemas.announcement import AnnouncementOut
from campusdesk.schemas.booking import BookingOut
from campusdesk.schemas.common import parse_time_to_minutes
from campusdesk.schemas.dashboard import (
    AdminDashboardOut,
    AdminSummary,
    AdminTrends,
    AnalyticsOut,
    AnnouncementSummaryOut,
    BucketCategoryCount,
    BucketStatusCount,
    DailyCountPoint,
    DateRange,
    IssueSummaryOut,
    LabeledCount,
    RecentActivity,
    ResolutionStats,
    RoomUsage,
    StudentDashboardOut,
    StudentSummary,
    StudentTrends,
)
from campusdesk.schemas.issue import IssueOut
from campusdesk.services.audience import audience_clause, current_clause

GroupBy = Literal["day", "week", "month"]
RECENT_LIMIT = 5
TREND_DAYS = 7
SECONDS_PER_DAY = 24 * 60 * 60


def _label(value: object) -> str:
    if hasattr(value, "value"):
        return str(getattr(value, "value"))
    return str(value)


def _to_labeled_counts(counter: Counter) -> list[LabeledCount]:
    ordered = sorted(counter.items(), key=lambda item: (-item[1], _label(item[0])))
    return [LabeledCount(label=_label(label), value=count) for label, count in ordered]


def _to_utc(dt: datetime | None) -> datetime | None:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _percent(part: int, whole: int) -> int:
    return round(part / whole * 100) if whole else 0


def _count_by(db: Session, column, id_column, *criteria: ColumnElement[bool]) -> Counter:
    counts: Counter = Counter()
    for key, count in db.execute(select(column, func.count(id_column)).where(*criteria).group_by(column)).all():
        counts[key] = int(count)
    return counts


def _count(db: Session, id_column, *criteria: ColumnElement[bool]) -> int:
    return int(db.execute(select(func.count(id_column)).where(*criteria)).scalar_one() or 0)


def _daily_points(stamps: Iterable[datetime | None]) -> list[DailyCountPoint]:
    counter = Counter(stamp.date().isoformat() for stamp in map(_to_utc, stamps) if stamp is not None)
    return [DailyCountPoint(date=day, value=count) for day, count in sorted(counter.items())]


def bucket_key(moment: datetime, group_by: GroupBy) -> str:
    if group_by == "month":
        return moment.strftime("%Y-%m")
    if group_by == "week":
        iso = moment.isocalendar()
        return f"{iso[0]}-W{iso[1]:02d}"
    return moment.strftime("%Y-%m-%d")


def _resolution_days(db: Session) -> list[float]:
    rows = db.execute(
        select(Issue.created_at, Issue.resolved_at).where(
            Issue.status == IssueStatus.resolved, Issue.resolved_at.is_not(None)
        )
    ).all()
    days: list[float] = []
    for created_at, resolved_at in rows:
        created, resolved = _to_utc(created_at), _to_utc(resolved_at)
        if created is None or resolved is None:
            continue
        days.append((resolved - created).total_seconds() / SECONDS_PER_DAY)
    return days


def issue_summary(db: Session) -> IssueSummaryOut:
    resolved = _resolution_days(db)
    resolution = ResolutionStats()
    if resolved:
        resolution = ResolutionStats(
            avg_resolution_days=round(sum(resolved) / len(resolved), 2),
            min_resolution_days=round(min(resolved), 2),
            max_resolution_days=round(max(resolved), 2),
        )
    return IssueSummaryOut(
        status_stats=_to_labeled_counts(_count_by(db, Issue.status, Issue.id)),
        category_stats=_to_labeled_counts(_count_by(db, Issue.category, Issue.id)),
        priority_stats=_to_labeled_counts(_count_by(db, Issue.priority, Issue.id)),
        resolution_stats=resolution,
    )


def announcement_summary(db: Session) -> AnnouncementSummaryOut:
    total_views = db.execute(select(func.coalesce(func.sum(Announcement.views), 0))).scalar_one()
    return AnnouncementSummaryOut(
        category_stats=_to_labeled_counts(_count_by(db, Announcement.category, Announcement.id)),
        priority_stats=_to_labeled_counts(_count_by(db, Announcement.priority, Announcement.id)),
        audience_stats=_to_labeled_counts(_count_by(db, Announcement.target_audience, Announcement.id)),
        total_views=int(total_views or 0),
    )


def admin_dashboard(db: Session, *, days: int = 30, now: datetime | None = None) -> AdminDashboardOut:
    moment = now or datetime.now(timezone.utc)
    window_start = moment - timedelta(days=days)
    trend_start = moment - timedelta(days=TREND_DAYS)

    users_by_role: Counter = Counter({role: 0 for role in UserRole})
    users_by_role.update(_count_by(db, User.role, User.id))

    booking_stats = _count_by(db, Booking.status, Booking.id, Booking.created_at >= window_start)
    issue_stats = _count_by(db, Issue.status, Issue.id, Issue.created_at >= window_start)
    announcement_stats = _count_by(
        db, Announcement.category, Announcement.id, Announcement.publish_date >= window_start
    )

    approved = booking_stats[BookingStatus.approved]
    processed = approved + booking_stats[BookingStatus.rejected]
    resolved = _resolution_days(db)

    recent = RecentActivity(
        bookings=[
            BookingOut.model_validate(item)
            for item in db.execute(select(Booking).order_by(Booking.created_at.desc()).limit(RECENT_LIMIT)).scalars()
        ],
        issues=[
            IssueOut.model_validate(item)
            for item in db.execute(select(Issue).order_by(Issue.created_at.desc()).limit(RECENT_LIMIT)).scalars()
        ],
        announcements=[
            AnnouncementOut.model_validate(item)
            for item in db.execute(
                select(Announcement).order_by(Announcement.publish_date.desc()).limit(RECENT_LIMIT)
            ).scalars()
        ],
    )

    summary = AdminSummary(
        total_users=sum(users_by_role.values()),
        total_students=users_by_role[UserRole.student],
        total_representatives=users_by_role[UserRole.class_representative],
        total_admins=users_by_role[UserRole.admin],
        total_bookings=sum(booking_stats.values()),
        total_issues=sum(issue_stats.values()),
        total_announcements=sum(announcement_stats.values()),
        pending_bookings=_count(db, Booking.id, Booking.status == BookingStatus.pending),
        open_issues=_count(db, Issue.id, Issue.status == IssueStatus.open),
        approval_rate=_percent(approved, processed),
        avg_resolution_time=round(sum(resolved) / len(resolved)) if resolved else 0,
    )
    return AdminDashboardOut(
        summary=summary,
        user_stats=_to_labeled_counts(users_by_role),
        booking_stats=_to_labeled_counts(booking_stats),
        issue_stats=_to_labeled_counts(issue_stats),
        announcement_stats=_to_labeled_counts(announcement_stats),
        recent_activity=recent,
        trends=AdminTrends(
            bookings=_daily_points(
                db.execute(select(Booking.created_at).where(Booking.created_at >= trend_start)).scalars()
            ),
            issues=_daily_points(
                db.execute(select(Issue.created_at).where(Issue.created_at >= trend_start)).scalars()
            ),
        ),
    )


def student_dashboard(
    db: Session,
    *,
    student: User,
    days: int = 30,
    now: datetime | None = None,
) -> StudentDashboardOut:
    moment = now or datetime.now(timezone.utc)
    window_start = moment - timedelta(days=days)
    trend_start = moment - timedelta(days=TREND_DAYS)
    owns_booking = Booking.student_id == student.id
    owns_issue = Issue.student_id == student.id

    booking_stats = _count_by(db, Booking.status, Booking.id, owns_booking, Booking.created_at >= window_start)
    issue_stats = _count_by(db, Issue.status, Issue.id, owns_issue, Issue.created_at >= window_start)

    today = moment.date()
    upcoming_criteria = (
        owns_booking,
        Booking.status == BookingStatus.approved,
        Booking.date >= today,
        Booking.date <= today + timedelta(days=TREND_DAYS),
    )
    upcoming = list(
        db.execute(
            select(Booking)
            .where(*upcoming_criteria)
            .order_by(Booking.date, Booking.start_time)
            .limit(RECENT_LIMIT)
        ).scalars()
    )
    recent_bookings = db.execute(
        select(Booking).where(owns_booking).order_by(Booking.created_at.desc()).limit(RECENT_LIMIT)
    ).scalars()
    recent_issues = db.execute(
        select(Issue).where(owns_issue).order_by(Issue.created_at.desc()).limit(RECENT_LIMIT)
    ).scalars()
    announcements = db.execute(
        select(Announcement)
        .where(current_clause(now=moment), audience_clause(student))
        .order_by(Announcement.is_pinned.desc(), Announcement.publish_date.desc())
        .limit(RECENT_LIMIT)
    ).scalars()

    total_bookings = sum(booking_stats.values())
    total_issues = sum(issue_stats.values())
    summary = StudentSummary(
        total_bookings=total_bookings,
        total_issues=total_issues,
        pending_bookings=_count(db, Booking.id, owns_booking, Booking.status == BookingStatus.pending),
        open_issues=_count(db, Issue.id, owns_issue, Issue.status == IssueStatus.open),
        upcoming_bookings=_count(db, Booking.id, *upcoming_criteria),
        booking_success_rate=_percent(booking_stats[BookingStatus.approved], total_bookings),
        issue_resolution_rate=_percent(issue_stats[IssueStatus.resolved], total_issues),
    )
    return StudentDashboardOut(
        summary=summary,
        booking_stats=_to_labeled_counts(booking_stats),
        issue_stats=_to_labeled_counts(issue_stats),
        recent_activity=RecentActivity(
            bookings=[BookingOut.model_validate(item) for item in recent_bookings],
            issues=[IssueOut.model_validate(item) for item in recent_issues],
            announcements=[AnnouncementOut.model_validate(item) for item in announcements],
        ),
        upcoming_bookings=[BookingOut.model_validate(item) for item in upcoming],
        trends=StudentTrends(
            activity=_daily_points(
                db.execute(
                    select(Booking.created_at).where(owns_booking, Booking.created_at >= trend_start)
                ).scalars()
            )
        ),
    )


def analytics(
    db: Session,
    *,
    start_date: date | None = None,
    end_date: date | None = None,
    group_by: GroupBy = "day",
    now: datetime | None = None,
) -> AnalyticsOut:
    moment = now or datetime.now(timezone.utc)
    end = end_date or moment.date()
    start = start_date or (end - timedelta(days=30))
    range_start = datetime.combine(start, time.min, tzinfo=timezone.utc)
    range_end = datetime.combine(end, time.max, tzinfo=timezone.utc)

    booking_counts: Counter = Counter()
    room_counts: Counter = Counter()
    room_minutes: Counter = Counter()
    booking_rows = db.execute(
        select(Booking.status, Booking.created_at, Booking.room, Booking.start_time, Booking.end_time).where(
            Booking.created_at.between(range_start, range_end)
        )
    ).all()
    for status, created_at, room, start_time, end_time in booking_rows:
        booking_counts[(bucket_key(_to_utc(created_at), group_by), _label(status))] += 1
        if status == BookingStatus.approved:
            room_counts[room] += 1
            room_minutes[room] += max(0, parse_time_to_minutes(end_time) - parse_time_to_minutes(start_time))

    issue_counts: Counter = Counter()
    issue_rows = db.execute(
        select(Issue.category, Issue.created_at).where(Issue.created_at.between(range_start, range_end))
    ).all()
    for category, created_at in issue_rows:
        issue_counts[(bucket_key(_to_utc(created_at), group_by), _label(category))] += 1

    return AnalyticsOut(
        booking_analytics=[
            BucketStatusCount(bucket=bucket, status=status, count=count)
            for (bucket, status), count in sorted(booking_counts.items())
        ],
        issue_analytics=[
            BucketCategoryCount(bucket=bucket, category=category, count=count)
            for (bucket, category), count in sorted(issue_counts.items())
        ],
        room_analytics=[
            RoomUsage(room=room, count=count, total_hours=round(room_minutes[room] / 60, 2))
            for room, count in sorted(room_counts.items(), key=lambda item: (-item[1], item[0]))
        ],
        date_range=DateRange(start=start, end=end),
        group_by=group_by,
    )
