"""
tickboard.services.retention_service — View Log Retention Cleanup
==================================================================

Periodic cleanup of aged ``view_logs`` rows.

    - Default retention: 30 days (``jobs.view_log_retention_days``).
    - Only rows strictly older than the cutoff are removed; a row stamped
      exactly ``now - retention_days`` survives.
    - Runs daily from the worker or ad-hoc from the admin API.

**Deletion is batched**: the candidate ids are selected once, then removed
in chunks of ``batch_size``, each chunk in its own transaction.  A crash
mid-sweep leaves some chunks deleted; the next run re-selects whatever is
still older than the cutoff and finishes the job.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from datetime import UTC, datetime, timedelta

from sqlalchemy import Engine, delete, func, select

from tickboard.constants import DELETE_BATCH_SIZE, VIEW_LOG_RETENTION_DAYS
from tickboard.database.engine import get_session
from tickboard.database.models import ViewLog

logger = logging.getLogger(__name__)


def _chunked(ids: Sequence[int], size: int) -> Iterator[Sequence[int]]:
    for start in range(0, len(ids), size):
        yield ids[start:start + size]


def run_view_log_cleanup(
    engine: Engine,
    retention_days: int = VIEW_LOG_RETENTION_DAYS,
    batch_size: int = DELETE_BATCH_SIZE,
    *,
    now: datetime | None = None,
) -> dict:
    """Delete view-log rows with ``viewed_at < now - retention_days``.

    Returns ``{"logs_deleted", "batches", "failed_batches", "cutoff"}``.
    """
    if batch_size <= 0:
        raise ValueError(f"batch_size must be positive, got {batch_size}")

    cutoff = (now or datetime.now(UTC)) - timedelta(days=retention_days)
    logger.info("Starting cleanup for view logs older than %s", cutoff.isoformat())

    with get_session(engine) as session:
        ids = session.scalars(
            select(ViewLog.id).where(ViewLog.viewed_at < cutoff).order_by(ViewLog.id)
        ).all()

    if not ids:
        logger.info("No old view logs to delete")
        return {
            "logs_deleted": 0,
            "batches": 0,
            "failed_batches": 0,
            "cutoff": cutoff.isoformat(),
        }

    logs_deleted = 0
    batches = 0
    failed_batches = 0

    for chunk in _chunked(ids, batch_size):
        try:
            with get_session(engine) as session:
                result = session.execute(
                    delete(ViewLog).where(ViewLog.id.in_(chunk))
                )
        except Exception:
            failed_batches += 1
            logger.exception(
                "Retention: batch of %d view logs failed (ids %d..%d)",
                len(chunk), chunk[0], chunk[-1],
            )
            continue

        batches += 1
        logs_deleted += result.rowcount  # type: ignore[operator]
        logger.info(
            "Retention: deleted batch of %d view logs (total so far: %d)",
            result.rowcount, logs_deleted,
        )

    logger.info(
        "View log cleanup complete — %d deleted in %d batches, %d failed "
        "(retention_days=%d, cutoff=%s)",
        logs_deleted, batches, failed_batches, retention_days, cutoff.isoformat(),
    )
    return {
        "logs_deleted": logs_deleted,
        "batches": batches,
        "failed_batches": failed_batches,
        "cutoff": cutoff.isoformat(),
    }


def get_view_log_stats(engine: Engine) -> dict:
    """Return view-log size statistics for the admin health endpoint."""
    with get_session(engine) as session:
        total = session.scalar(select(func.count()).select_from(ViewLog)) or 0
        oldest = session.scalar(select(func.min(ViewLog.viewed_at)))
        newest = session.scalar(select(func.max(ViewLog.viewed_at)))

    return {
        "total_view_logs": total,
        "oldest_view": oldest.isoformat() if oldest else None,
        "newest_view": newest.isoformat() if newest else None,
    }
