"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import os

# ---------------------------------------------------------------------------
# Ensure a valid JWT_SECRET is always set for test runs.
# This must happen before any import of tickboard.api.deps which validates
# the secret at module-load time.
# ---------------------------------------------------------------------------
_TEST_JWT_SECRET = "test-secret-for-pytest-only-" + "x" * 40  # > 32 chars
os.environ.setdefault("JWT_SECRET", _TEST_JWT_SECRET)

from datetime import UTC, datetime  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import Engine, create_engine  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402

from tickboard.database.models import Base, Dashboard, Event, ViewLog  # noqa: E402

# Fixed "current time" for window / horizon boundary tests
NOW = datetime(2026, 10, 1, 12, 0, 0, tzinfo=UTC)

_bigint_sqlite_registered = False


def _register_bigint_sqlite_compat():
    """Map BigInteger → INTEGER so autoincrement works on SQLite (idempotent)."""
    global _bigint_sqlite_registered
    if _bigint_sqlite_registered:
        return
    from sqlalchemy import BigInteger
    from sqlalchemy.ext.compiler import compiles

    @compiles(BigInteger, "sqlite")
    def _compile_bigint_as_integer(type_, compiler, **kw):
        return "INTEGER"

    _bigint_sqlite_registered = True


_register_bigint_sqlite_compat()


@pytest.fixture
def db_engine() -> Engine:
    """Create an in-memory SQLite engine with all Tickboard tables.

    Uses StaticPool so every session (and ``asyncio.to_thread``) shares
    the same in-memory database.
    """
    from sqlalchemy.pool import StaticPool

    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def db_session(db_engine: Engine):
    """Provide a session on the shared engine; rolled back after each test."""
    with Session(db_engine) as session:
        yield session
        session.rollback()


@pytest.fixture
def admin_token():
    """Generate a valid admin JWT for use in API integration tests."""
    return make_admin_token()


def make_admin_token(sub: str = "99999", username: str = "FixtureAdmin") -> str:
    """Create an admin JWT.  Usable as both a fixture and a factory function."""
    import jwt

    from tickboard.api.deps import JWT_ALGORITHM, JWT_SECRET

    return jwt.encode(
        {"sub": sub, "username": username, "is_admin": True},
        JWT_SECRET,
        algorithm=JWT_ALGORITHM,
    )


# ---------------------------------------------------------------------------
# Row factories
# ---------------------------------------------------------------------------
def make_dashboard(
    session: Session,
    slug: str,
    *,
    last_activity_at: datetime = NOW,
    created_at: datetime = NOW,
    trending_score: int = 0,
    view_count: int = 0,
    is_private: bool = False,
    title: str | None = None,
) -> Dashboard:
    dashboard = Dashboard(
        slug=slug,
        title=title or slug.replace("-", " ").title(),
        description="",
        password_hash="hash:" + slug,
        is_private=is_private,
        created_at=created_at,
        updated_at=created_at,
        last_activity_at=last_activity_at,
        view_count=view_count,
        trending_score=trending_score,
    )
    session.add(dashboard)
    session.flush()
    return dashboard


def make_event(session: Session, dashboard: Dashboard, title: str, date: datetime) -> Event:
    event = Event(dashboard_id=dashboard.id, title=title, date=date, created_at=NOW)
    session.add(event)
    session.flush()
    return event


def add_views(session: Session, dashboard_id: str, count: int, viewed_at: datetime) -> None:
    session.add_all(
        ViewLog(dashboard_id=dashboard_id, viewed_at=viewed_at) for _ in range(count)
    )
    session.flush()


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything is stored as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
