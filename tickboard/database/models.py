"""
tickboard.database.models — SQLAlchemy 2.0 Data Models
=======================================================

Tables:
- dashboards  — Countdown dashboards (opaque UUID PK, unique slug)
- events      — Countdown targets owned by a dashboard
- view_logs   — Append-only page-view journal feeding the trending score
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _new_id() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Tickboard ORM models."""


# ---------------------------------------------------------------------------
# Dashboard — a named collection of countdown events
# ---------------------------------------------------------------------------
class Dashboard(Base):
    """A public or password-protected countdown dashboard.

    ``view_count`` only ever moves through an atomic ``+ 1`` UPDATE.
    ``trending_score`` is overwritten by the aggregator on every cycle and
    was added after dashboards already existed, hence the server default.
    ``updated_at`` tracks owner edits only; it has no ``onupdate`` so the
    background jobs can write scores without touching it.
    """
    __tablename__ = "dashboards"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    is_private: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    last_activity_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    view_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )
    trending_score: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0, server_default="0"
    )

    events: Mapped[list[Event]] = relationship(
        back_populates="dashboard", cascade="all, delete-orphan",
        order_by="Event.date",
    )

    __table_args__ = (
        Index("ix_dashboards_trending", trending_score.desc()),
        Index("ix_dashboards_last_activity", "last_activity_at"),
        Index("ix_dashboards_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Dashboard id={self.id} slug={self.slug!r} score={self.trending_score}>"


# ---------------------------------------------------------------------------
# Event — a single countdown target
# ---------------------------------------------------------------------------
class Event(Base):
    __tablename__ = "events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    dashboard_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("dashboards.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, default=None)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    color: Mapped[str] = mapped_column(String(20), nullable=False, default="#3b82f6")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    dashboard: Mapped[Dashboard] = relationship(back_populates="events")

    __table_args__ = (
        Index("ix_events_dashboard_date", "dashboard_id", "date"),
    )

    def __repr__(self) -> str:
        return f"<Event id={self.id} title={self.title!r} date={self.date}>"


# ---------------------------------------------------------------------------
# ViewLog — append-only view journal
# ---------------------------------------------------------------------------
class ViewLog(Base):
    """One counted page view of a dashboard.

    Rows are immutable once written.  ``dashboard_id`` carries no foreign
    key: deleting a dashboard leaves its log rows for retention to age out.
    """
    __tablename__ = "view_logs"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    dashboard_id: Mapped[str] = mapped_column(String(36), nullable=False)
    viewed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False,
    )

    __table_args__ = (
        Index("idx_view_logs_dashboard_ts", "dashboard_id", viewed_at.desc()),
        Index("idx_view_logs_ts", "viewed_at"),
    )

    def __repr__(self) -> str:
        return f"<ViewLog id={self.id} dashboard={self.dashboard_id} ts={self.viewed_at}>"
