"""add reports

Revision ID: 0002_add_reports
Revises: 0001_initial
Create Date: 2026-10-19 12:00:00.000000
"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0002_add_reports"
down_revision = "0001_initial"
branch_labels = None
depends_on = None

REPORT_REASON = sa.Enum(
    "OFFENSIVE_CONTENT", "SPAM", "HARASSMENT", "OTHER", name="reportreason"
)
REPORT_STATUS = sa.Enum(
    "PENDING", "REVIEWED", "RESOLVED", "REJECTED", name="reportstatus"
)


def upgrade() -> None:
    op.create_table(
        "reports",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "reporter_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "reported_user_id",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("reason", REPORT_REASON, nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", REPORT_STATUS, nullable=False),
        sa.Column(
            "reviewed_by",
            sa.Integer(),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("moderator_notes", sa.Text(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
    )
    op.create_index("ix_reports_id", "reports", ["id"])
    op.create_index("ix_reports_status_created", "reports", ["status", "created_at"])
    op.create_index("ix_reports_reporter", "reports", ["reporter_id"])
    op.create_index("ix_reports_reported_user", "reports", ["reported_user_id"])


def downgrade() -> None:
    op.drop_table("reports")
    REPORT_STATUS.drop(op.get_bind(), checkfirst=True)
    REPORT_REASON.drop(op.get_bind(), checkfirst=True)
