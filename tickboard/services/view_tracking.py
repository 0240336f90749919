"""
tickboard.services.view_tracking — View Log Write Path
=======================================================

Central write path for the ``view_logs`` journal.

Called once per counted view (the client de-duplicates to roughly one
view per viewer per dashboard per 30 minutes; nothing here depends on
that being exact).

Per view:
1. ``view_count = view_count + 1`` as a single UPDATE, so concurrent
   viewers never lose increments.
2. Append an immutable ``ViewLog`` row in the same transaction.
3. Refresh the dashboard's trending score immediately.  A failure in this
   step is logged and dropped; the view itself is already committed and
   the next scheduled aggregation will catch up.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime

from sqlalchemy import Engine, select, update

from tickboard.database.engine import get_session
from tickboard.database.models import Dashboard, ViewLog
from tickboard.services.trending_service import refresh_dashboard_score

logger = logging.getLogger(__name__)


def record_view(
    engine: Engine,
    dashboard_id: str,
    *,
    now: datetime | None = None,
) -> dict:
    """Count one view of *dashboard_id* and refresh its score.

    Returns ``{"dashboard_id", "view_count", "trending_score"}``;
    ``trending_score`` is ``None`` if the refresh failed.

    Raises
    ------
    ValueError
        If the dashboard does not exist.  No log row is written.
    """
    ts = now or datetime.now(UTC)

    with get_session(engine) as session:
        result = session.execute(
            update(Dashboard)
            .where(Dashboard.id == dashboard_id)
            .values(view_count=Dashboard.view_count + 1)
        )
        if result.rowcount == 0:
            raise ValueError(f"Dashboard not found: {dashboard_id}")

        session.add(ViewLog(dashboard_id=dashboard_id, viewed_at=ts))
        session.flush()
        view_count = session.scalar(
            select(Dashboard.view_count).where(Dashboard.id == dashboard_id)
        )

    score: int | None = None
    try:
        score = refresh_dashboard_score(engine, dashboard_id, now=ts)
    except Exception:
        logger.exception("Score refresh failed after view of %s", dashboard_id)

    return {
        "dashboard_id": dashboard_id,
        "view_count": view_count,
        "trending_score": score,
    }
