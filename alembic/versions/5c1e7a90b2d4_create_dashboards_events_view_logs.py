"""Create dashboards, events and view_logs tables

Revision ID: 5c1e7a90b2d4
Revises:
Create Date: 2026-09-02 10:14:37.512093

"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '5c1e7a90b2d4'
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create the dashboard, event and view log tables."""

    # --- dashboards ---
    op.create_table(
        "dashboards",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("slug", sa.String(100), nullable=False, unique=True),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=False, server_default=""),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("is_private", sa.Boolean, nullable=False, server_default=sa.false()),
        sa.Column(
            "created_at", sa.DateTime(timezone=True),
            nullable=False, server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at", sa.DateTime(timezone=True),
            nullable=False, server_default=sa.func.now(),
        ),
        sa.Column(
            "last_activity_at", sa.DateTime(timezone=True),
            nullable=False, server_default=sa.func.now(),
        ),
        sa.Column("view_count", sa.Integer, nullable=False, server_default="0"),
    )
    op.create_index("ix_dashboards_last_activity", "dashboards", ["last_activity_at"])
    op.create_index("ix_dashboards_created_at", "dashboards", ["created_at"])

    # --- events ---
    op.create_table(
        "events",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "dashboard_id", sa.String(36),
            sa.ForeignKey("dashboards.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("color", sa.String(20), nullable=False, server_default="#3b82f6"),
        sa.Column(
            "created_at", sa.DateTime(timezone=True),
            nullable=False, server_default=sa.func.now(),
        ),
    )
    op.create_index("ix_events_dashboard_date", "events", ["dashboard_id", "date"])

    # --- view_logs ---
    op.create_table(
        "view_logs",
        sa.Column("id", sa.BigInteger, primary_key=True, autoincrement=True),
        sa.Column("dashboard_id", sa.String(36), nullable=False),
        sa.Column(
            "viewed_at", sa.DateTime(timezone=True),
            nullable=False, server_default=sa.func.now(),
        ),
    )
    op.create_index(
        "idx_view_logs_dashboard_ts", "view_logs",
        ["dashboard_id", sa.text("viewed_at DESC")],
    )
    op.create_index("idx_view_logs_ts", "view_logs", ["viewed_at"])


def downgrade() -> None:
    """Drop view_logs, events and dashboards."""
    op.drop_index("idx_view_logs_ts", table_name="view_logs")
    op.drop_index("idx_view_logs_dashboard_ts", table_name="view_logs")
    op.drop_table("view_logs")
    op.drop_index("ix_events_dashboard_date", table_name="events")
    op.drop_table("events")
    op.drop_index("ix_dashboards_created_at", table_name="dashboards")
    op.drop_index("ix_dashboards_last_activity", table_name="dashboards")
    op.drop_table("dashboards")
