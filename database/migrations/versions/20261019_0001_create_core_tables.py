"""create core tables

Revision ID: 20261019_0001
Revises: None
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


name_display_enum = sa.Enum(
    "show_all",
    "show_edition_only",
    "show_year_only",
    "show_none",
    name="name_display",
)
edition_display_enum = sa.Enum("arabic", "ordinal", "roman", name="edition_display")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "rooms",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("code", sa.String(length=4), nullable=False),
        sa.Column("capacity", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(length=50), nullable=False),
        sa.CheckConstraint("capacity > 0", name="ck_rooms_capacity_positive"),
    )
    op.create_index("ix_rooms_code", "rooms", ["code"], unique=True)

    op.create_table(
        "event_categories",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("category", sa.String(length=100), nullable=False),
        sa.Column("code", sa.String(length=15), nullable=False, unique=True),
    )
    op.create_table(
        "event_areas",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("sigla", sa.String(length=15), nullable=False),
    )
    op.create_table(
        "activity_categories",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("code", sa.String(length=2), nullable=False, unique=True),
        sa.Column("description", sa.String(length=100), nullable=False),
    )

    op.create_table(
        "events",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("edition", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("start_date", sa.DateTime(), nullable=False),
        sa.Column("end_date", sa.DateTime(), nullable=False),
        sa.Column("registry_start_date", sa.DateTime(), nullable=False),
        sa.Column("registry_end_date", sa.DateTime(), nullable=False),
        sa.Column("status_visible", sa.Boolean(), nullable=False),
        sa.Column("status_active", sa.Boolean(), nullable=False),
        sa.Column("display", name_display_enum, nullable=False),
        sa.Column("edition_display", edition_display_enum, nullable=False),
        sa.Column("event_category_id", sa.String(length=36), sa.ForeignKey("event_categories.id"), nullable=False),
        sa.Column("event_area_id", sa.String(length=36), sa.ForeignKey("event_areas.id"), nullable=True),
    )
    op.create_table(
        "organizer_event",
        sa.Column("event_id", sa.String(length=36), sa.ForeignKey("events.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    )

    op.create_table(
        "activities",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("vacancy", sa.Integer(), nullable=False),
        sa.Column("workload_in_minutes", sa.Integer(), nullable=False),
        sa.Column("ready_for_certificate_emission", sa.Boolean(), nullable=False),
        sa.Column("index_in_category", sa.Integer(), nullable=False),
        sa.Column(
            "event_id",
            sa.String(length=36),
            sa.ForeignKey("events.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "activity_category_id",
            sa.String(length=36),
            sa.ForeignKey("activity_categories.id"),
            nullable=False,
        ),
        sa.CheckConstraint("vacancy > 0", name="ck_activities_vacancy_positive"),
        sa.CheckConstraint("workload_in_minutes > 0", name="ck_activities_workload_positive"),
    )
    op.create_index(
        "ix_activities_event_category",
        "activities",
        ["event_id", "activity_category_id", "index_in_category"],
    )
    for table_name in ("responsible_activity", "teaching_activity"):
        op.create_table(
            table_name,
            sa.Column(
                "activity_id",
                sa.String(length=36),
                sa.ForeignKey("activities.id", ondelete="CASCADE"),
                primary_key=True,
            ),
            sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        )

    op.create_table(
        "schedules",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("start_date", sa.DateTime(), nullable=False),
        sa.Column("duration_in_minutes", sa.Integer(), nullable=False),
        sa.Column("url", sa.String(length=300), nullable=True),
        sa.Column("room_id", sa.String(length=36), sa.ForeignKey("rooms.id"), nullable=True),
        sa.Column(
            "activity_id",
            sa.String(length=36),
            sa.ForeignKey("activities.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.CheckConstraint("duration_in_minutes > 0", name="ck_schedules_duration_positive"),
    )
    op.create_index("ix_schedules_start_date", "schedules", ["start_date"])
    op.create_index("ix_schedules_room_id", "schedules", ["room_id"])
    op.create_index("ix_schedules_activity_id", "schedules", ["activity_id"])

    op.create_table(
        "activity_registries",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("registry_date", sa.DateTime(), nullable=False),
        sa.Column("ready_for_certificate", sa.Boolean(), nullable=False),
        sa.Column("rating", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.String(length=36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column(
            "activity_id",
            sa.String(length=36),
            sa.ForeignKey("activities.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.UniqueConstraint("user_id", "activity_id", name="uq_activity_registries_user_activity"),
    )
    op.create_index("ix_activity_registries_user_id", "activity_registries", ["user_id"])
    op.create_index("ix_activity_registries_activity_id", "activity_registries", ["activity_id"])

    op.create_table(
        "presences",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("is_present", sa.Boolean(), nullable=False),
        sa.Column(
            "registry_id",
            sa.String(length=36),
            sa.ForeignKey("activity_registries.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "schedule_id",
            sa.String(length=36),
            sa.ForeignKey("schedules.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.UniqueConstraint("registry_id", "schedule_id", name="uq_presences_registry_schedule"),
    )
    op.create_index("ix_presences_registry_id", "presences", ["registry_id"])
    op.create_index("ix_presences_schedule_id", "presences", ["schedule_id"])

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("actor_id", sa.String(length=36), nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=100), nullable=True),
        sa.Column("entity_id", sa.String(length=100), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("activity_logs")
    op.drop_index("ix_presences_schedule_id", table_name="presences")
    op.drop_index("ix_presences_registry_id", table_name="presences")
    op.drop_table("presences")
    op.drop_index("ix_activity_registries_activity_id", table_name="activity_registries")
    op.drop_index("ix_activity_registries_user_id", table_name="activity_registries")
    op.drop_table("activity_registries")
    op.drop_index("ix_schedules_activity_id", table_name="schedules")
    op.drop_index("ix_schedules_room_id", table_name="schedules")
    op.drop_index("ix_schedules_start_date", table_name="schedules")
    op.drop_table("schedules")
    op.drop_table("teaching_activity")
    op.drop_table("responsible_activity")
    op.drop_index("ix_activities_event_category", table_name="activities")
    op.drop_table("activities")
    op.drop_table("organizer_event")
    op.drop_table("events")
    op.drop_table("activity_categories")
    op.drop_table("event_areas")
    op.drop_table("event_categories")
    op.drop_index("ix_rooms_code", table_name="rooms")
    op.drop_table("rooms")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
    edition_display_enum.drop(op.get_bind(), checkfirst=True)
    name_display_enum.drop(op.get_bind(), checkfirst=True)
