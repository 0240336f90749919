"""
tickboard.api.routes.admin — Maintenance Job Triggers
======================================================

JWT-protected admin routes for:
    - Trending score recomputation
    - View log retention cleanup
    - Inactive dashboard cleanup
    - View log size stats
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy import Engine

from tickboard.api.deps import get_current_admin, get_engine
from tickboard.constants import DELETE_BATCH_SIZE, INACTIVITY_DAYS, VIEW_LOG_RETENTION_DAYS

router = APIRouter(prefix="/admin", tags=["admin"])


class TrendingResult(BaseModel):
    dashboards_checked: int
    updated: int
    skipped: int
    failed: int
    timestamp: str


class RetentionResult(BaseModel):
    logs_deleted: int
    batches: int
    failed_batches: int
    cutoff: str


class ReaperResult(BaseModel):
    dashboards_deleted: int
    events_deleted: int
    skipped: int
    failed: int
    deleted: list[dict[str, Any]]
    cutoff: str


class ViewLogStats(BaseModel):
    total_view_logs: int
    oldest_view: str | None
    newest_view: str | None


@router.post("/jobs/trending/run", response_model=TrendingResult)
def trigger_trending(
    engine: Engine = Depends(get_engine),
    admin: dict = Depends(get_current_admin),  # noqa: ARG001
):
    """Manually trigger a full trending score update."""
    from tickboard.services.trending_service import run_trending_update

    return TrendingResult(**run_trending_update(engine))


@router.post("/jobs/retention/run", response_model=RetentionResult)
def trigger_retention(
    engine: Engine = Depends(get_engine),
    admin: dict = Depends(get_current_admin),  # noqa: ARG001
    retention_days: int = Query(VIEW_LOG_RETENTION_DAYS, ge=1, le=365),
    batch_size: int = Query(DELETE_BATCH_SIZE, ge=1, le=5_000),
):
    """Manually trigger view log retention cleanup."""
    from tickboard.services.retention_service import run_view_log_cleanup

    return RetentionResult(**run_view_log_cleanup(engine, retention_days, batch_size))


@router.post("/jobs/reaper/run", response_model=ReaperResult)
def trigger_reaper(
    engine: Engine = Depends(get_engine),
    admin: dict = Depends(get_current_admin),  # noqa: ARG001
    inactivity_days: int = Query(INACTIVITY_DAYS, ge=1, le=3650),
):
    """Manually trigger inactive dashboard cleanup."""
    from tickboard.services.reaper_service import run_inactive_dashboard_cleanup

    return ReaperResult(**run_inactive_dashboard_cleanup(engine, inactivity_days))


@router.get("/view-logs/stats", response_model=ViewLogStats)
def view_log_stats(
    engine: Engine = Depends(get_engine),
    admin: dict = Depends(get_current_admin),  # noqa: ARG001
):
    """View log size for the admin health panel."""
    from tickboard.services.retention_service import get_view_log_stats

    return ViewLogStats(**get_view_log_stats(engine))
