"""initial

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-19 00:00:00.000000

Creates users, books, book_tracking, user_strikes and activity_logs.
"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None

TRACKING_STATUS = sa.Enum(
    "PLAN_TO_READ",
    "READING",
    "COMPLETED",
    "ON_HOLD",
    "DROPPED",
    name="trackingstatus",
)
STRIKE_REASON = sa.Enum(
    "PROFANITY", "HATE_SPEECH", "SPAM", "HARASSMENT", "OTHER", name="strikereason"
)
STRIKE_SEVERITY = sa.Enum("MINOR", "MODERATE", "SEVERE", name="strikeseverity")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("username", sa.String(), nullable=False),
        sa.Column("display_name", sa.String(), nullable=False),
        sa.Column("hashed_password", sa.String(), nullable=False),
        sa.Column("is_global_admin", sa.Boolean(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("is_banned", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("banned_until", sa.DateTime(), nullable=True),
        sa.Column("ban_reason", sa.Text(), nullable=True),
        sa.Column(
            "banned_by",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("banned_at", sa.DateTime(), nullable=True),
        sa.Column("strike_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_strike_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_users_id", "users", ["id"])
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_username", "users", ["username"], unique=True)
    op.create_index("ix_users_banned", "users", ["is_banned", "banned_until"])

    op.create_table(
        "books",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("type", sa.String(length=50), nullable=True),
        sa.Column("chapters", sa.Integer(), nullable=True),
        sa.Column("volumes", sa.Integer(), nullable=True),
        sa.Column("cover_image", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_books_id", "books", ["id"])
    op.create_index("ix_books_title", "books", ["title"])

    op.create_table(
        "book_tracking",
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column(
            "book_id",
            sa.Integer(),
            sa.ForeignKey("books.id", ondelete="CASCADE"),
            primary_key=True,
        ),
        sa.Column("status", TRACKING_STATUS, nullable=False),
        sa.Column("current_chapter", sa.Integer(), nullable=True),
        sa.Column("current_volume", sa.Integer(), nullable=True),
        sa.Column("rating", sa.Numeric(2, 1), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("finish_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("last_read_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
    )
    op.create_index(
        "ix_book_tracking_user_status", "book_tracking", ["user_id", "status"]
    )

    op.create_table(
        "user_strikes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("reason", STRIKE_REASON, nullable=False),
        sa.Column("severity", STRIKE_SEVERITY, nullable=False),
        sa.Column(
            "issued_by",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("report_id", sa.String(length=64), nullable=True),
        sa.Column("moderated_content_id", sa.String(length=64), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("expires_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_user_strikes_id", "user_strikes", ["id"])
    op.create_index("ix_user_strikes_user_id", "user_strikes", ["user_id"])
    op.create_index(
        "ix_user_strikes_user_expires", "user_strikes", ["user_id", "expires_at"]
    )
    op.create_index("ix_user_strikes_created", "user_strikes", ["created_at"])

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=False),
        sa.Column("resource_type", sa.String(length=50), nullable=False),
        sa.Column("resource_id", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_activity_logs_id", "activity_logs", ["id"])
    op.create_index(
        "ix_activity_logs_user_created", "activity_logs", ["user_id", "created_at"]
    )
    op.create_index("ix_activity_logs_action", "activity_logs", ["action"])


def downgrade() -> None:
    op.drop_table("activity_logs")
    op.drop_table("user_strikes")
    op.drop_table("book_tracking")
    op.drop_table("books")
    op.drop_table("users")
    STRIKE_SEVERITY.drop(op.get_bind(), checkfirst=True)
    STRIKE_REASON.drop(op.get_bind(), checkfirst=True)
    TRACKING_STATUS.drop(op.get_bind(), checkfirst=True)
