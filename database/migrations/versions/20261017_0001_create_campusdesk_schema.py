"""create campusdesk schema

Revision ID: 20261017_0001
Revises: None
Create Date: 2026-10-17 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261017_0001"
down_revision = None
branch_labels = None
depends_on = None


YEAR_VALUES = ("1st", "2nd", "3rd", "4th", "5th")

user_role_enum = sa.Enum("student", "class-representative", "admin", name="user_role")
department_enum = sa.Enum(
    "Computer Science",
    "Mechanical Engineering",
    "Information Technology",
    "Civil Engineering",
    "Administration",
    name="department",
)
academic_year_enum = sa.Enum(*YEAR_VALUES, name="academic_year")
approval_status_enum = sa.Enum("pending", "approved", "rejected", name="approval_status")
booking_status_enum = sa.Enum("pending", "approved", "rejected", name="booking_status")
issue_category_enum = sa.Enum(
    "academic", "infrastructure", "hostel", "canteen", "transport", "other", name="issue_category"
)
issue_priority_enum = sa.Enum("low", "medium", "high", "urgent", name="issue_priority")
issue_status_enum = sa.Enum(
    "pending", "open", "in-progress", "resolved", "closed", "rejected", name="issue_status"
)
announcement_category_enum = sa.Enum(
    "general", "academic", "events", "exam", "holiday", "important", name="announcement_category"
)
announcement_priority_enum = sa.Enum("low", "medium", "high", name="announcement_priority")
target_audience_enum = sa.Enum("all", "students", "specific-year", "specific-department", name="target_audience")
announcement_target_year_enum = sa.Enum(*YEAR_VALUES, name="announcement_target_year")

ALL_ENUMS = (
    user_role_enum,
    department_enum,
    academic_year_enum,
    approval_status_enum,
    booking_status_enum,
    issue_category_enum,
    issue_priority_enum,
    issue_status_enum,
    announcement_category_enum,
    announcement_priority_enum,
    target_audience_enum,
    announcement_target_year_enum,
)


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("roll_number", sa.String(length=20), nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("role", user_role_enum, nullable=False),
        sa.Column("department", department_enum, nullable=False),
        sa.Column("year", academic_year_enum, nullable=False),
        sa.Column("class_name", sa.String(length=10), nullable=True),
        sa.Column("phone", sa.String(length=10), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("approval_status", approval_status_enum, nullable=False, server_default="approved"),
        sa.Column("approved_by_id", sa.String(length=36), nullable=True),
        sa.Column("approved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_login", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_roll_number", "users", ["roll_number"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_role", "users", ["role"])

    op.create_table(
        "bookings",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("student_id", sa.String(length=36), nullable=False),
        sa.Column("student_roll_number", sa.String(length=20), nullable=False),
        sa.Column("student_name", sa.String(length=50), nullable=False),
        sa.Column("room", sa.String(length=50), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("purpose", sa.Text(), nullable=False),
        sa.Column("status", booking_status_enum, nullable=False, server_default="pending"),
        sa.Column("admin_notes", sa.String(length=200), nullable=True),
        sa.Column("processed_by_id", sa.String(length=36), nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_bookings_room_date", "bookings", ["room", "date"])
    op.create_index("ix_bookings_student_date", "bookings", ["student_id", "date"])
    op.create_index("ix_bookings_status", "bookings", ["status"])

    op.create_table(
        "booking_room_locks",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("room", sa.String(length=50), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.UniqueConstraint("room", "date", name="uq_booking_room_locks_room_date"),
    )

    op.create_table(
        "issues",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("category", issue_category_enum, nullable=False, server_default="other"),
        sa.Column("priority", issue_priority_enum, nullable=False, server_default="medium"),
        sa.Column("status", issue_status_enum, nullable=False, server_default="pending"),
        sa.Column("student_id", sa.String(length=36), nullable=False),
        sa.Column("student_roll_number", sa.String(length=20), nullable=False),
        sa.Column("student_name", sa.String(length=50), nullable=False),
        sa.Column("room_code", sa.String(length=20), nullable=True),
        sa.Column("room_name", sa.String(length=100), nullable=True),
        sa.Column("affected_components", sa.JSON(), nullable=False),
        sa.Column("attachments", sa.JSON(), nullable=False),
        sa.Column("admin_notes", sa.String(length=500), nullable=True),
        sa.Column("assigned_to_id", sa.String(length=36), nullable=True),
        sa.Column("resolved_by_id", sa.String(length=36), nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("processed_by_id", sa.String(length=36), nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_issues_category", "issues", ["category"])
    op.create_index("ix_issues_status", "issues", ["status"])
    op.create_index("ix_issues_student_id", "issues", ["student_id"])

    op.create_table(
        "announcements",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=150), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("category", announcement_category_enum, nullable=False, server_default="general"),
        sa.Column("priority", announcement_priority_enum, nullable=False, server_default="medium"),
        sa.Column("target_audience", target_audience_enum, nullable=False, server_default="all"),
        sa.Column("target_year", announcement_target_year_enum, nullable=True),
        sa.Column("target_department", sa.String(length=100), nullable=True),
        sa.Column("is_pinned", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("publish_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expiry_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_by_id", sa.String(length=36), nullable=False),
        sa.Column("created_by_name", sa.String(length=50), nullable=True),
        sa.Column("attachments", sa.JSON(), nullable=False),
        sa.Column("views", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_announcements_active_publish", "announcements", ["is_active", "publish_date"])
    op.create_index(
        "ix_announcements_targeting",
        "announcements",
        ["target_audience", "target_year", "target_department"],
    )

    op.create_table(
        "announcement_views",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column(
            "announcement_id",
            sa.String(length=36),
            sa.ForeignKey("announcements.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("viewed_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("announcement_id", "user_id", name="uq_announcement_views_announcement_user"),
    )
    op.create_index("ix_announcement_views_announcement_id", "announcement_views", ["announcement_id"])

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=True),
        sa.Column("entity_id", sa.String(length=100), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_activity_logs_user_id", "activity_logs", ["user_id"])
    op.create_index("ix_activity_logs_entity", "activity_logs", ["entity_type", "entity_id"])


def downgrade() -> None:
    op.drop_index("ix_activity_logs_entity", table_name="activity_logs")
    op.drop_index("ix_activity_logs_user_id", table_name="activity_logs")
    op.drop_table("activity_logs")
    op.drop_index("ix_announcement_views_announcement_id", table_name="announcement_views")
    op.drop_table("announcement_views")
    op.drop_index("ix_announcements_targeting", table_name="announcements")
    op.drop_index("ix_announcements_active_publish", table_name="announcements")
    op.drop_table("announcements")
    op.drop_index("ix_issues_student_id", table_name="issues")
    op.drop_index("ix_issues_status", table_name="issues")
    op.drop_index("ix_issues_category", table_name="issues")
    op.drop_table("issues")
    op.drop_table("booking_room_locks")
    op.drop_index("ix_bookings_status", table_name="bookings")
    op.drop_index("ix_bookings_student_date", table_name="bookings")
    op.drop_index("ix_bookings_room_date", table_name="bookings")
    op.drop_table("bookings")
    op.drop_index("ix_users_role", table_name="users")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_index("ix_users_roll_number", table_name="users")
    op.drop_table("users")
    bind = op.get_bind()
    for enum in ALL_ENUMS:
        enum.drop(bind, checkfirst=True)
