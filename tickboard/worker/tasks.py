"""
tickboard.worker.tasks — Periodic Background Jobs
==================================================

Scheduled jobs that run on ``discord.ext.tasks`` loops:

- **Trending update** — every 6 hours, rewrites ``trending_score`` on all
  dashboards from the view log.
- **View log retention** — daily, removes view logs older than
  ``view_log_retention_days`` (default 30).
- **Inactive dashboard reaper** — daily, removes dashboards idle for
  ``inactivity_days`` (default 90) along with their events.

Each loop fires once on start and then on its interval.  The jobs are
synchronous and run via ``run_db()`` so the event loop never blocks.
A failed run is logged; the next tick is the retry.
"""

from __future__ import annotations

import logging

from discord.ext import tasks
from sqlalchemy import Engine

from tickboard.config import TickboardConfig
from tickboard.database.engine import run_db

logger = logging.getLogger(__name__)


class PeriodicJobs:
    """Owns the three maintenance loops for one worker process."""

    def __init__(self, engine: Engine, cfg: TickboardConfig) -> None:
        self.engine = engine
        self.cfg = cfg

    def start(self) -> None:
        """Apply configured intervals and start every loop.

        Must be called from within a running event loop.
        """
        self.trending_loop.change_interval(hours=self.cfg.trending_interval_hours)
        self.retention_loop.change_interval(hours=self.cfg.retention_interval_hours)
        self.reaper_loop.change_interval(hours=self.cfg.reaper_interval_hours)

        self.trending_loop.start()
        self.retention_loop.start()
        self.reaper_loop.start()
        logger.info(
            "Periodic jobs started (trending=%sh, retention=%sh, reaper=%sh)",
            self.cfg.trending_interval_hours,
            self.cfg.retention_interval_hours,
            self.cfg.reaper_interval_hours,
        )

    def stop(self) -> None:
        """Cancel all loops."""
        self.trending_loop.cancel()
        self.retention_loop.cancel()
        self.reaper_loop.cancel()

    # -------------------------------------------------------------------
    # Trending update — every 6 hours
    # -------------------------------------------------------------------
    @tasks.loop(hours=6)
    async def trending_loop(self):
        """Recompute every dashboard's trending score."""
        from tickboard.services.trending_service import run_trending_update

        try:
            result = await run_db(run_trending_update, self.engine)
            logger.info(
                "Trending task complete: updated=%d skipped=%d failed=%d",
                result["updated"], result["skipped"], result["failed"],
            )
        except Exception:
            logger.exception("Trending task failed", extra={"task": "trending"})

    # -------------------------------------------------------------------
    # View log retention — every 24 hours
    # -------------------------------------------------------------------
    @tasks.loop(hours=24)
    async def retention_loop(self):
        """Delete view logs older than the retention horizon."""
        from tickboard.services.retention_service import run_view_log_cleanup

        try:
            result = await run_db(
                run_view_log_cleanup,
                self.engine,
                self.cfg.view_log_retention_days,
                self.cfg.delete_batch_size,
            )
            logger.info(
                "Retention task complete: %d view logs deleted (%d failed batches)",
                result["logs_deleted"], result["failed_batches"],
            )
        except Exception:
            logger.exception("Retention task failed", extra={"task": "retention"})

    # -------------------------------------------------------------------
    # Inactive dashboard reaper — every 24 hours
    # -------------------------------------------------------------------
    @tasks.loop(hours=24)
    async def reaper_loop(self):
        """Delete dashboards with no activity inside the inactivity horizon."""
        from tickboard.services.reaper_service import run_inactive_dashboard_cleanup

        try:
            result = await run_db(
                run_inactive_dashboard_cleanup, self.engine, self.cfg.inactivity_days,
            )
            logger.info(
                "Reaper task complete: %d dashboards, %d events deleted",
                result["dashboards_deleted"], result["events_deleted"],
            )
        except Exception:
            logger.exception("Reaper task failed", extra={"task": "reaper"})
