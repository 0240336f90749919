"""
tickboard.services.trending_service — Trending Score Aggregator
================================================================

Converts raw ``view_logs`` rows into each dashboard's ``trending_score``.

How it works:
    1. Fix ``now`` once at the start of the run.
    2. For each dashboard, count its view-log rows in three trailing
       windows (24 h, 7 d, 30 d), lower bound inclusive.
    3. Overwrite ``trending_score`` with
       ``views_24h * 10 + views_7d * 3 + views_30d``.

The score is a pure function of the log contents at ``now``, so the batch
job is idempotent and may race the per-view refresh path harmlessly
(last writer wins, both compute the same value).

Two entry points:
    - :func:`run_trending_update` — scheduled batch over every dashboard.
    - :func:`refresh_dashboard_score` — one dashboard, called right after
      a view is recorded; also bumps ``last_activity_at``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy import Engine, case, func, select, update
from sqlalchemy.orm import Session

from tickboard.constants import WINDOW_7D, WINDOW_24H, WINDOW_30D, trending_score
from tickboard.database.engine import get_session
from tickboard.database.models import Dashboard, ViewLog

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class WindowCounts:
    """View counts for one dashboard across the three trending windows."""

    views_24h: int = 0
    views_7d: int = 0
    views_30d: int = 0

    @property
    def score(self) -> int:
        return trending_score(self.views_24h, self.views_7d, self.views_30d)


def count_views(session: Session, dashboard_id: str, now: datetime) -> WindowCounts:
    """Count *dashboard_id*'s views with ``viewed_at >= now - window``.

    One query over the widest window with a conditional sum per narrower
    window.
    """
    cutoff_24h = now - WINDOW_24H
    cutoff_7d = now - WINDOW_7D
    cutoff_30d = now - WINDOW_30D

    row = session.execute(
        select(
            func.coalesce(
                func.sum(case((ViewLog.viewed_at >= cutoff_24h, 1), else_=0)), 0
            ).label("views_24h"),
            func.coalesce(
                func.sum(case((ViewLog.viewed_at >= cutoff_7d, 1), else_=0)), 0
            ).label("views_7d"),
            func.count().label("views_30d"),
        )
        .where(
            ViewLog.dashboard_id == dashboard_id,
            ViewLog.viewed_at >= cutoff_30d,
        )
    ).one()

    return WindowCounts(
        views_24h=int(row.views_24h),
        views_7d=int(row.views_7d),
        views_30d=int(row.views_30d),
    )


def refresh_dashboard_score(
    engine: Engine,
    dashboard_id: str,
    *,
    now: datetime | None = None,
) -> int | None:
    """Recompute one dashboard's score and mark it active.

    Returns the new score, or ``None`` if the dashboard no longer exists.
    """
    ts = now or datetime.now(UTC)

    with get_session(engine) as session:
        counts = count_views(session, dashboard_id, ts)
        result = session.execute(
            update(Dashboard)
            .where(Dashboard.id == dashboard_id)
            .values(trending_score=counts.score, last_activity_at=ts)
        )
        if result.rowcount == 0:
            logger.debug("Score refresh skipped, dashboard %s is gone", dashboard_id)
            return None

    logger.debug(
        "Refreshed %s: 24h=%d 7d=%d 30d=%d score=%d",
        dashboard_id, counts.views_24h, counts.views_7d, counts.views_30d, counts.score,
    )
    return counts.score


def run_trending_update(
    engine: Engine,
    *,
    now: datetime | None = None,
) -> dict:
    """Rewrite ``trending_score`` on every dashboard.

    Enumeration errors propagate (nothing has been written yet).  A failure
    on one dashboard is logged and counted; the others still run.

    Returns ``{"dashboards_checked", "updated", "skipped", "failed",
    "timestamp"}``.
    """
    ts = now or datetime.now(UTC)
    logger.info("Starting trending score update (now=%s)", ts.isoformat())

    with get_session(engine) as session:
        dashboard_ids = session.scalars(select(Dashboard.id)).all()

    if not dashboard_ids:
        logger.info("No dashboards to update")

    updated = 0
    skipped = 0
    failed = 0

    for dashboard_id in dashboard_ids:
        try:
            with get_session(engine) as session:
                counts = count_views(session, dashboard_id, ts)
                result = session.execute(
                    update(Dashboard)
                    .where(Dashboard.id == dashboard_id)
                    .values(trending_score=counts.score)
                )
        except Exception:
            failed += 1
            logger.exception("Trending update failed for dashboard %s", dashboard_id)
            continue

        if result.rowcount == 0:
            # Deleted between enumeration and update
            skipped += 1
            continue

        updated += 1
        logger.debug("Updated %s: score=%d", dashboard_id, counts.score)

    logger.info(
        "Trending update complete — %d updated, %d skipped, %d failed (of %d)",
        updated, skipped, failed, len(dashboard_ids),
    )
    return {
        "dashboards_checked": len(dashboard_ids),
        "updated": updated,
        "skipped": skipped,
        "failed": failed,
        "timestamp": ts.isoformat(),
    }
