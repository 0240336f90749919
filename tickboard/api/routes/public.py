"""
tickboard.api.routes.public — Public dashboard endpoints
=========================================================

Explore listing, dashboard reads, and view recording.  Owner mutations
go through the service layer behind the external auth collaborator and
are not exposed here.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy import Engine
from sqlalchemy.orm import Session

from tickboard.api.deps import get_dashboard_or_404, get_engine, get_session
from tickboard.services.dashboard_service import (
    SORT_TRENDING,
    VALID_SORTS,
    list_dashboards,
    list_events,
    next_event,
)
from tickboard.services.view_tracking import record_view

router = APIRouter(tags=["public"])


class ViewRecorded(BaseModel):
    dashboard_id: str
    view_count: int
    trending_score: int | None


# ---------------------------------------------------------------------------
# GET /dashboards
# ---------------------------------------------------------------------------
@router.get("/dashboards")
def explore_dashboards(
    sort: str = Query(SORT_TRENDING),
    q: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    session: Session = Depends(get_session),
):
    """Explore listing, trending or newest first."""
    if sort not in VALID_SORTS:
        raise HTTPException(422, f"sort must be one of {VALID_SORTS}")

    result = list_dashboards(session, sort=sort, search=q, page=page, page_size=page_size)
    for dashboard in result["dashboards"]:
        dashboard["next_event"] = (
            None if dashboard["is_private"] else next_event(session, dashboard["id"])
        )
    return result


# ---------------------------------------------------------------------------
# GET /dashboards/{slug}
# ---------------------------------------------------------------------------
@router.get("/dashboards/{slug}")
def get_dashboard(
    dashboard: dict = Depends(get_dashboard_or_404),
    session: Session = Depends(get_session),
):
    """Dashboard detail.  Private dashboards are returned locked, without events."""
    if dashboard["is_private"]:
        return {**dashboard, "locked": True, "events": []}
    return {**dashboard, "locked": False, "events": list_events(session, dashboard["id"])}


# ---------------------------------------------------------------------------
# POST /dashboards/{slug}/views
# ---------------------------------------------------------------------------
@router.post("/dashboards/{slug}/views", response_model=ViewRecorded)
def post_view(
    dashboard: dict = Depends(get_dashboard_or_404),
    engine: Engine = Depends(get_engine),
):
    """Count one view and refresh the dashboard's trending score."""
    try:
        result = record_view(engine, dashboard["id"])
    except ValueError as exc:
        raise HTTPException(404, str(exc))
    return ViewRecorded(**result)
