"""initial_schema

Revision ID: 5c1e2a7d9b30
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "5c1e2a7d9b30"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("uuid", sa.UUID(), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        sa.Column("is_superuser", sa.Boolean(), nullable=True),
        sa.Column("email_reminders", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("reminder_tiers", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("uuid"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "events",
        sa.Column("uuid", sa.UUID(), nullable=False),
        sa.Column("title", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("venue", sa.String(length=100), nullable=True),
        sa.Column("organizer", sa.String(length=100), nullable=True),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("capacity", sa.Integer(), nullable=True),
        sa.Column(
            "visibility",
            sa.Enum("public", "private", name="event_visibility_enum"),
            nullable=False,
            server_default="public",
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_by", sa.UUID(), nullable=True),
        sa.Column("active_registrations", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.CheckConstraint("capacity IS NULL OR capacity >= 1", name="ck_events_capacity_positive"),
        sa.CheckConstraint("active_registrations >= 0", name="ck_events_active_registrations"),
        sa.ForeignKeyConstraint(["created_by"], ["users.uuid"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("uuid"),
    )
    op.create_index("ix_events_created_by", "events", ["created_by"])
    op.create_index(
        "ix_events_start_visibility_active", "events", ["start_at", "visibility", "is_active"]
    )

    op.create_table(
        "registrations",
        sa.Column("uuid", sa.UUID(), nullable=False),
        sa.Column("event_id", sa.UUID(), nullable=False),
        sa.Column("subject_id", sa.UUID(), nullable=False),
        sa.Column(
            "status",
            sa.Enum("registered", "checked_in", "cancelled", name="registration_status_enum"),
            nullable=False,
            server_default="registered",
        ),
        sa.Column("registered_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["event_id"], ["events.uuid"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["subject_id"], ["users.uuid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("uuid"),
        sa.UniqueConstraint("event_id", "subject_id", name="uq_registrations_event_subject"),
    )
    op.create_index("ix_registrations_event_id", "registrations", ["event_id"])
    op.create_index("ix_registrations_subject_id", "registrations", ["subject_id"])
    op.create_index("ix_registrations_status_event", "registrations", ["status", "event_id"])

    op.create_table(
        "reminder_deliveries",
        sa.Column("uuid", sa.UUID(), nullable=False),
        sa.Column("registration_id", sa.UUID(), nullable=False),
        sa.Column("tier", sa.String(length=32), nullable=False),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["registration_id"], ["registrations.uuid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("uuid"),
        sa.UniqueConstraint(
            "registration_id", "tier", name="uq_reminder_deliveries_registration_tier"
        ),
    )
    op.create_index(
        "ix_reminder_deliveries_registration_id", "reminder_deliveries", ["registration_id"]
    )

    op.create_table(
        "email_logs",
        sa.Column("uuid", sa.UUID(), nullable=False),
        sa.Column("provider_message_id", sa.String(length=255), nullable=True),
        sa.Column("to_address", sa.String(length=255), nullable=False),
        sa.Column("from_address", sa.String(length=255), nullable=False),
        sa.Column("subject", sa.String(length=500), nullable=False),
        sa.Column("html_body", sa.Text(), nullable=True),
        sa.Column("text_body", sa.Text(), nullable=True),
        sa.Column("email_type", sa.Enum("reminder", name="email_type_enum"), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=True),
        sa.Column("event_id", sa.UUID(), nullable=True),
        sa.Column(
            "status",
            sa.Enum("pending", "sent", "failed", name="email_status_enum"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("error_message", sa.Text(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.uuid"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["event_id"], ["events.uuid"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("uuid"),
    )
    op.create_index(
        "ix_email_logs_provider_message_id", "email_logs", ["provider_message_id"], unique=True
    )
    op.create_index("ix_email_logs_to_address", "email_logs", ["to_address"])
    op.create_index("ix_email_logs_email_type", "email_logs", ["email_type"])
    op.create_index("ix_email_logs_status", "email_logs", ["status"])
    op.create_index("ix_email_logs_user_id", "email_logs", ["user_id"])
    op.create_index("ix_email_logs_event_id", "email_logs", ["event_id"])


def downgrade() -> None:
    op.drop_table("email_logs")
    op.drop_table("reminder_deliveries")
    op.drop_table("registrations")
    op.drop_table("events")
    op.drop_table("users")
    op.execute("DROP TYPE IF EXISTS email_status_enum")
    op.execute("DROP TYPE IF EXISTS email_type_enum")
    op.execute("DROP TYPE IF EXISTS registration_status_enum")
    op.execute("DROP TYPE IF EXISTS event_visibility_enum")
