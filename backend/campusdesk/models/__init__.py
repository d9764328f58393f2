from campusdesk.models.activity_log import ActivityLog  # noqa: F401
from campusdesk.models.announcement import (  # noqa: F401
    Announcement,
    AnnouncementCategory,
    AnnouncementPriority,
    AnnouncementView,
    TargetAudience,
)
from campusdesk.models.booking import Booking, BookingRoomLock, BookingStatus  # noqa: F401
from campusdesk.models.issue import Issue, IssueCategory, IssuePriority, IssueStatus  # noqa: F401
from campusdesk.models.user import AcademicYear, ApprovalStatus, Department, User, UserRole  # noqa: F401
