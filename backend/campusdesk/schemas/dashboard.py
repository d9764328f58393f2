from __future__ import annotations

from datetime import date

from pydantic import Field

from campusdesk.schemas.announcement import AnnouncementOut
from campusdesk.schemas.booking import BookingOut
from campusdesk.schemas.common import CamelModel
from campusdesk.schemas.issue import IssueOut


class LabeledCount(CamelModel):
    label: str
    value: int


class DailyCountPoint(CamelModel):
    date: str
    value: int


class ResolutionStats(CamelModel):
    avg_resolution_days: float | None = None
    min_resolution_days: float | None = None
    max_resolution_days: float | None = None


class IssueSummaryOut(CamelModel):
    status_stats: list[LabeledCount]
    category_stats: list[LabeledCount]
    priority_stats: list[LabeledCount]
    resolution_stats: ResolutionStats


class AnnouncementSummaryOut(CamelModel):
    category_stats: list[LabeledCount]
    priority_stats: list[LabeledCount]
    audience_stats: list[LabeledCount]
    total_views: int


class RecentActivity(CamelModel):
    bookings: list[BookingOut] = Field(default_factory=list)
    issues: list[IssueOut] = Field(default_factory=list)
    announcements: list[AnnouncementOut] = Field(default_factory=list)


class AdminSummary(CamelModel):
    total_users: int
    total_students: int
    total_representatives: int
    total_admins: int
    total_bookings: int
    total_issues: int
    total_announcements: int
    pending_bookings: int
    open_issues: int
    approval_rate: int
    avg_resolution_time: int


class AdminTrends(CamelModel):
    bookings: list[DailyCountPoint]
    issues: list[DailyCountPoint]


class AdminDashboardOut(CamelModel):
    summary: AdminSummary
    user_stats: list[LabeledCount]
    booking_stats: list[LabeledCount]
    issue_stats: list[LabeledCount]
    announcement_stats: list[LabeledCount]
    recent_activity: RecentActivity
    trends: AdminTrends


class StudentSummary(CamelModel):
    total_bookings: int
    total_issues: int
    pending_bookings: int
    open_issues: int
    upcoming_bookings: int
    booking_success_rate: int
    issue_resolution_rate: int


class StudentTrends(CamelModel):
    activity: list[DailyCountPoint]


class StudentDashboardOut(CamelModel):
    summary: StudentSummary
    booking_stats: list[LabeledCount]
    issue_stats: list[LabeledCount]
    recent_activity: RecentActivity
    upcoming_bookings: list[BookingOut]
    trends: StudentTrends


class BucketStatusCount(CamelModel):
    bucket: str
    status: str
    count: int


class BucketCategoryCount(CamelModel):
    bucket: str
    category: str
    count: int


class RoomUsage(CamelModel):
    room: str
    count: int
    total_hours: float


class DateRange(CamelModel):
    start: date
    end: date


class AnalyticsOut(CamelModel):
    booking_analytics: list[BucketStatusCount]
    issue_analytics: list[BucketCategoryCount]
    room_analytics: list[RoomUsage]
    date_range: DateRange
    group_by: str
