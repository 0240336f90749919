"""
tickboard.database.engine — Database Connection & Async Helper
===============================================================

The background jobs and the API share one set of **synchronous**
SQLAlchemy functions.  The worker runs on an ``asyncio`` event loop, so
every job is shipped to a thread with :func:`run_db` instead of being
called inline.

Usage::

    from tickboard.database.engine import create_db_engine, init_db, run_db

    engine = create_db_engine("worker")  # reads DATABASE_URL from .env
    init_db(engine)                      # CREATE TABLE IF NOT EXISTS …

    # Inside an async task loop:
    result = await run_db(run_trending_update, engine)
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from contextlib import contextmanager
from typing import ParamSpec, TypeVar

from sqlalchemy import Engine, create_engine, make_url
from sqlalchemy.orm import Session

from tickboard.database.models import Base

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


# ---------------------------------------------------------------------------
# Engine creation
# ---------------------------------------------------------------------------
# (pool_size, max_overflow) per process; the worker has three job loops.
_POOL_SIZES: dict[str, tuple[int, int]] = {
    "api": (5, 10),
    "worker": (3, 2),
}


def create_db_engine(role: str = "api") -> Engine:
    """Build a SQLAlchemy :class:`Engine` from the ``DATABASE_URL`` env var.

    *role* is ``"api"`` or ``"worker"``.  It picks the pool size and, on
    PostgreSQL, sets ``application_name=tickboard-<role>`` so each
    process's connections are identifiable in ``pg_stat_activity``.

    Raises
    ------
    RuntimeError
        If ``DATABASE_URL`` is not set.
    ValueError
        If *role* is unknown.
    """
    if role not in _POOL_SIZES:
        raise ValueError(f"Unknown engine role: {role!r}. Must be one of {sorted(_POOL_SIZES)}")

    raw_url = os.getenv("DATABASE_URL")
    if not raw_url:
        raise RuntimeError(
            "DATABASE_URL is not set.  "
            "Copy .env.example → .env and set a valid PostgreSQL URL."
        )

    url = make_url(raw_url)
    connect_args: dict[str, str] = {}
    if url.get_backend_name() == "postgresql":
        connect_args["application_name"] = f"tickboard-{role}"

    pool_size, max_overflow = _POOL_SIZES[role]
    engine = create_engine(
        url,
        echo=False,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True,
        pool_timeout=10,
        pool_recycle=3600,
        connect_args=connect_args,
    )
    logger.info("Database engine created for %s → %s", role, engine.url.host)
    return engine


# ---------------------------------------------------------------------------
# Schema initialization
# ---------------------------------------------------------------------------
def init_db(engine: Engine) -> None:
    """Create all tables defined in :mod:`tickboard.database.models`.

    .. note::

        In production the schema is managed by Alembic (``alembic upgrade
        head``).  ``create_all`` is kept for dev/test environments.
    """
    Base.metadata.create_all(engine)
    logger.info("Database tables verified / created.")


# ---------------------------------------------------------------------------
# Session helper
# ---------------------------------------------------------------------------
@contextmanager
def get_session(engine: Engine):
    """Yield a :class:`Session` that auto-commits on success and rolls back
    on exception.
    """
    session = Session(engine)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Async bridge
# ---------------------------------------------------------------------------
async def run_db(func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Run a **synchronous** database function on a background thread.

    ::

        result = await run_db(run_view_log_cleanup, engine, 30)
    """
    return await asyncio.to_thread(func, *args, **kwargs)
