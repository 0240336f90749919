"""
tickboard.services.reaper_service — Inactive Dashboard Cleanup
===============================================================

Daily job that deletes dashboards with no activity for
``inactivity_days`` (default 90), together with their events.

How it works:
    1. Select ids of dashboards with ``last_activity_at < cutoff``.
    2. For each one, in its own transaction:
       a. re-check it still exists and is still stale (a view or an owner
          edit since step 1 makes it a no-op);
       b. delete its events;
       c. delete the dashboard.
    3. Log per-dashboard event counts and a summary.

Children always go before the parent, so an interrupted run can never
leave events without a dashboard.  The next run re-selects any dashboard
that is still stale and finishes it.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import Engine, delete, select

from tickboard.constants import INACTIVITY_DAYS
from tickboard.database.engine import get_session
from tickboard.database.models import Dashboard, Event

logger = logging.getLogger(__name__)


def run_inactive_dashboard_cleanup(
    engine: Engine,
    inactivity_days: int = INACTIVITY_DAYS,
    *,
    now: datetime | None = None,
) -> dict:
    """Delete dashboards whose ``last_activity_at`` is before the cutoff.

    Returns ``{"dashboards_deleted", "events_deleted", "skipped", "failed",
    "deleted", "cutoff"}`` where ``deleted`` lists
    ``{"dashboard_id", "slug", "events_deleted"}`` per removed dashboard.
    """
    cutoff = (now or datetime.now(UTC)) - timedelta(days=inactivity_days)
    logger.info("Starting cleanup for dashboards inactive since %s", cutoff.isoformat())

    with get_session(engine) as session:
        candidate_ids = session.scalars(
            select(Dashboard.id).where(Dashboard.last_activity_at < cutoff)
        ).all()

    deleted: list[dict] = []
    skipped = 0
    failed = 0

    if not candidate_ids:
        logger.info("No inactive dashboards to delete")

    for dashboard_id in candidate_ids:
        try:
            with get_session(engine) as session:
                slug = session.scalar(
                    select(Dashboard.slug).where(
                        Dashboard.id == dashboard_id,
                        Dashboard.last_activity_at < cutoff,
                    )
                )
                if slug is None:
                    skipped += 1
                    logger.debug(
                        "Dashboard %s deleted or active again, skipping", dashboard_id,
                    )
                    continue

                events_result = session.execute(
                    delete(Event).where(Event.dashboard_id == dashboard_id)
                )
                session.execute(delete(Dashboard).where(Dashboard.id == dashboard_id))
        except Exception:
            failed += 1
            logger.exception("Failed to delete inactive dashboard %s", dashboard_id)
            continue

        events_deleted = events_result.rowcount or 0
        deleted.append({
            "dashboard_id": dashboard_id,
            "slug": slug,
            "events_deleted": events_deleted,
        })
        logger.info(
            "Deleted dashboard %s (%s) and %d events", dashboard_id, slug, events_deleted,
        )

    total_events = sum(d["events_deleted"] for d in deleted)
    logger.info(
        "Inactive dashboard cleanup complete — %d dashboards, %d events removed, "
        "%d skipped, %d failed (inactivity_days=%d, cutoff=%s)",
        len(deleted), total_events, skipped, failed, inactivity_days, cutoff.isoformat(),
    )
    return {
        "dashboards_deleted": len(deleted),
        "events_deleted": total_events,
        "skipped": skipped,
        "failed": failed,
        "deleted": deleted,
        "cutoff": cutoff.isoformat(),
    }
