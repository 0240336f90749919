"""Add dashboards.trending_score

Revision ID: 8e3b2f6d41a7
Revises: 5c1e7a90b2d4
Create Date: 2026-09-16 18:40:02.118354

Existing rows read as 0 until the next trending update rewrites them.
"""
from collections.abc import Sequence

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision: str = '8e3b2f6d41a7'
down_revision: str | Sequence[str] | None = '5c1e7a90b2d4'
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.add_column(
        "dashboards",
        sa.Column("trending_score", sa.Integer, nullable=False, server_default="0"),
    )
    op.create_index(
        "ix_dashboards_trending", "dashboards", [sa.text("trending_score DESC")],
    )


def downgrade() -> None:
    op.drop_index("ix_dashboards_trending", table_name="dashboards")
    op.drop_column("dashboards", "trending_score")
