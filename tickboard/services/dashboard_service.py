"""
tickboard.services.dashboard_service — Dashboard & Event CRUD
==============================================================

Owner-facing reads and writes for dashboards and their countdown events,
plus the public explore listing.

The owner-facing functions (create, update and delete of dashboards and
events, and ``get_password_hash``) are called by the dashboard editor
backend, which verifies the owner's password against
``get_password_hash`` and hashes any new password before reaching this
layer.  That backend also unlocks private dashboards; the public API in
:mod:`tickboard.api.routes.public` only ever serves them locked.

Every owner mutation bumps the dashboard's ``last_activity_at`` so the
inactivity reaper leaves it alone.

All functions take an open :class:`Session`; the caller commits.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tickboard.database.models import Dashboard, Event

logger = logging.getLogger(__name__)

SORT_TRENDING = "trending"
SORT_NEWEST = "newest"
VALID_SORTS = (SORT_TRENDING, SORT_NEWEST)


# ---------------------------------------------------------------------------
# Serialization helpers
# ---------------------------------------------------------------------------
def _iso(value: datetime | None) -> str | None:
    """ISO-format *value*, treating naive datetimes (SQLite) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.isoformat()


def _dashboard_to_dict(d: Dashboard) -> dict[str, Any]:
    return {
        "id": d.id,
        "slug": d.slug,
        "title": d.title,
        "description": d.description or "",
        "is_private": bool(d.is_private),
        "created_at": _iso(d.created_at),
        "updated_at": _iso(d.updated_at),
        "last_activity_at": _iso(d.last_activity_at),
        "view_count": d.view_count or 0,
        "trending_score": d.trending_score or 0,
    }


def _event_to_dict(e: Event) -> dict[str, Any]:
    return {
        "id": e.id,
        "dashboard_id": e.dashboard_id,
        "title": e.title,
        "description": e.description,
        "date": _iso(e.date),
        "color": e.color,
        "created_at": _iso(e.created_at),
    }


def _touch(session: Session, dashboard_id: str, now: datetime) -> None:
    session.execute(
        update(Dashboard)
        .where(Dashboard.id == dashboard_id)
        .values(last_activity_at=now)
    )


def _get_dashboard(session: Session, dashboard_id: str) -> Dashboard:
    dashboard = session.get(Dashboard, dashboard_id)
    if dashboard is None:
        raise ValueError(f"Dashboard not found: {dashboard_id}")
    return dashboard


def _get_event(session: Session, dashboard_id: str, event_id: str) -> Event:
    event = session.scalar(
        select(Event).where(Event.id == event_id, Event.dashboard_id == dashboard_id)
    )
    if event is None:
        raise ValueError(f"Event not found: {event_id}")
    return event


# ---------------------------------------------------------------------------
# Dashboards
# ---------------------------------------------------------------------------
def create_dashboard(
    session: Session,
    *,
    slug: str,
    title: str,
    password_hash: str,
    description: str = "",
    is_private: bool = False,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Insert a new dashboard.  Raises ``ValueError`` if *slug* is taken."""
    ts = now or datetime.now(UTC)
    dashboard = Dashboard(
        slug=slug,
        title=title,
        description=description,
        password_hash=password_hash,
        is_private=is_private,
        created_at=ts,
        updated_at=ts,
        last_activity_at=ts,
        view_count=0,
        trending_score=0,
    )
    try:
        with session.begin_nested():   # SAVEPOINT
            session.add(dashboard)
            session.flush()
    except IntegrityError:
        # Only the savepoint is rolled back; the caller's pending work survives.
        raise ValueError(f"Slug already taken: {slug}") from None

    logger.info("Created dashboard %s (%s)", dashboard.id, slug)
    return _dashboard_to_dict(dashboard)


def get_dashboard_by_slug(session: Session, slug: str) -> dict[str, Any] | None:
    dashboard = session.scalar(select(Dashboard).where(Dashboard.slug == slug))
    return _dashboard_to_dict(dashboard) if dashboard else None


def get_password_hash(session: Session, dashboard_id: str) -> str:
    """Return the stored hash for the external password verifier."""
    return _get_dashboard(session, dashboard_id).password_hash


def update_dashboard(
    session: Session,
    dashboard_id: str,
    *,
    title: str | None = None,
    description: str | None = None,
    is_private: bool | None = None,
    password_hash: str | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Apply owner edits.  Only the given fields change."""
    ts = now or datetime.now(UTC)
    dashboard = _get_dashboard(session, dashboard_id)

    if title is not None:
        dashboard.title = title
    if description is not None:
        dashboard.description = description
    if is_private is not None:
        dashboard.is_private = is_private
    if password_hash is not None:
        dashboard.password_hash = password_hash

    dashboard.updated_at = ts
    dashboard.last_activity_at = ts
    session.flush()
    return _dashboard_to_dict(dashboard)


def delete_dashboard(session: Session, dashboard_id: str) -> int:
    """Delete a dashboard and its events (children first).

    Returns the number of events removed.
    """
    _get_dashboard(session, dashboard_id)
    result = session.execute(delete(Event).where(Event.dashboard_id == dashboard_id))
    session.execute(delete(Dashboard).where(Dashboard.id == dashboard_id))
    logger.info("Deleted dashboard %s and %d events", dashboard_id, result.rowcount)
    return result.rowcount or 0


def list_dashboards(
    session: Session,
    *,
    sort: str = SORT_TRENDING,
    search: str | None = None,
    page: int = 1,
    page_size: int = 20,
) -> dict[str, Any]:
    """Paginated explore listing, by trending score or newest first."""
    if sort not in VALID_SORTS:
        raise ValueError(f"Invalid sort: {sort}. Must be one of {VALID_SORTS}")

    q = select(Dashboard)
    count_q = select(func.count()).select_from(Dashboard)
    if search:
        term = search.strip()
        # Literal substring: % and _ in the term are escaped
        cond = or_(
            Dashboard.title.icontains(term, autoescape=True),
            Dashboard.description.icontains(term, autoescape=True),
        )
        q = q.where(cond)
        count_q = count_q.where(cond)

    if sort == SORT_TRENDING:
        q = q.order_by(
            Dashboard.trending_score.desc(),
            Dashboard.view_count.desc(),
            Dashboard.created_at.desc(),
        )
    else:
        q = q.order_by(Dashboard.created_at.desc())

    total = session.scalar(count_q) or 0
    rows = session.scalars(q.offset((page - 1) * page_size).limit(page_size)).all()

    return {
        "total": total,
        "page": page,
        "page_size": page_size,
        "sort": sort,
        "dashboards": [_dashboard_to_dict(d) for d in rows],
    }


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------
def list_events(session: Session, dashboard_id: str) -> list[dict[str, Any]]:
    rows = session.scalars(
        select(Event).where(Event.dashboard_id == dashboard_id).order_by(Event.date)
    ).all()
    return [_event_to_dict(e) for e in rows]


def next_event(
    session: Session,
    dashboard_id: str,
    now: datetime | None = None,
) -> dict[str, Any] | None:
    """Soonest event that has not started yet, for the explore card preview."""
    ts = now or datetime.now(UTC)
    event = session.scalar(
        select(Event)
        .where(Event.dashboard_id == dashboard_id, Event.date >= ts)
        .order_by(Event.date)
        .limit(1)
    )
    return _event_to_dict(event) if event else None


def add_event(
    session: Session,
    dashboard_id: str,
    *,
    title: str,
    date: datetime,
    color: str = "#3b82f6",
    description: str | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    ts = now or datetime.now(UTC)
    _get_dashboard(session, dashboard_id)

    event = Event(
        dashboard_id=dashboard_id,
        title=title,
        description=description,
        date=date,
        color=color,
        created_at=ts,
    )
    session.add(event)
    _touch(session, dashboard_id, ts)
    session.flush()
    return _event_to_dict(event)


def update_event(
    session: Session,
    dashboard_id: str,
    event_id: str,
    *,
    title: str | None = None,
    date: datetime | None = None,
    color: str | None = None,
    description: str | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    ts = now or datetime.now(UTC)
    event = _get_event(session, dashboard_id, event_id)

    if title is not None:
        event.title = title
    if date is not None:
        event.date = date
    if color is not None:
        event.color = color
    if description is not None:
        event.description = description

    _touch(session, dashboard_id, ts)
    session.flush()
    return _event_to_dict(event)


def delete_event(
    session: Session,
    dashboard_id: str,
    event_id: str,
    *,
    now: datetime | None = None,
) -> None:
    ts = now or datetime.now(UTC)
    event = _get_event(session, dashboard_id, event_id)
    session.delete(event)
    _touch(session, dashboard_id, ts)
    session.flush()
