"""
tests/test_trending_service.py — Trending Aggregator Tests
===========================================================

Runs the aggregator against the real SQLite schema with a fixed ``NOW``:
- Window counts and the weighted score
- Inclusive 30-day lower bound
- Idempotence across consecutive runs
- Per-dashboard failure isolation and enumeration failure
- Single-dashboard refresh path
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import timedelta
from unittest.mock import patch

import pytest
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from conftest import NOW, add_views, as_utc, make_dashboard
from tickboard.constants import trending_score
from tickboard.database.models import Dashboard
from tickboard.services import trending_service
from tickboard.services.trending_service import (
    WindowCounts,
    count_views,
    refresh_dashboard_score,
    run_trending_update,
)


def _score(db_session: Session, dashboard_id: str) -> int:
    db_session.expire_all()
    return db_session.scalar(
        select(Dashboard.trending_score).where(Dashboard.id == dashboard_id)
    )


class TestTrendingFormula:
    def test_weights(self):
        assert trending_score(1, 0, 0) == 10
        assert trending_score(0, 1, 0) == 3
        assert trending_score(0, 0, 1) == 1

    def test_single_recent_view_counts_in_every_window(self):
        assert WindowCounts(1, 1, 1).score == 14

    def test_empty_counts_score_zero(self):
        assert WindowCounts().score == 0


class TestCountViews:
    def test_counts_each_window(self, db_session):
        """5 views 1h ago, 3 views 5d ago, 2 views 20d ago."""
        d1 = make_dashboard(db_session, "d1")
        add_views(db_session, d1.id, 5, NOW - timedelta(hours=1))
        add_views(db_session, d1.id, 3, NOW - timedelta(days=5))
        add_views(db_session, d1.id, 2, NOW - timedelta(days=20))
        db_session.commit()

        counts = count_views(db_session, d1.id, NOW)

        assert counts == WindowCounts(views_24h=5, views_7d=8, views_30d=10)
        assert counts.score == 84

    def test_windows_never_shrink_when_widened(self, db_session):
        d = make_dashboard(db_session, "mixed")
        for hours in (0, 2, 23, 25, 47, 24 * 6, 24 * 8, 24 * 29, 24 * 31):
            add_views(db_session, d.id, 1, NOW - timedelta(hours=hours))
        db_session.commit()

        counts = count_views(db_session, d.id, NOW)

        assert counts.views_24h <= counts.views_7d <= counts.views_30d
        assert (counts.views_24h, counts.views_7d, counts.views_30d) == (3, 6, 8)

    def test_exactly_thirty_days_is_included(self, db_session):
        d = make_dashboard(db_session, "boundary")
        add_views(db_session, d.id, 1, NOW - timedelta(days=30))
        add_views(db_session, d.id, 1, NOW - timedelta(days=30, microseconds=1))
        db_session.commit()

        counts = count_views(db_session, d.id, NOW)

        assert counts.views_30d == 1
        assert counts.views_7d == 0

    def test_exactly_24h_is_included(self, db_session):
        d = make_dashboard(db_session, "day-edge")
        add_views(db_session, d.id, 1, NOW - timedelta(hours=24))
        db_session.commit()

        assert count_views(db_session, d.id, NOW) == WindowCounts(1, 1, 1)

    def test_other_dashboards_views_ignored(self, db_session):
        a = make_dashboard(db_session, "a")
        b = make_dashboard(db_session, "b")
        add_views(db_session, b.id, 4, NOW - timedelta(hours=1))
        db_session.commit()

        assert count_views(db_session, a.id, NOW) == WindowCounts()

    def test_future_views_fall_in_every_window(self, db_session):
        """Clock skew: a view stamped after ``now`` still satisfies ``>=``."""
        d = make_dashboard(db_session, "skew")
        add_views(db_session, d.id, 1, NOW + timedelta(minutes=5))
        db_session.commit()

        assert count_views(db_session, d.id, NOW).score == 14


class TestRunTrendingUpdate:
    def test_recomputes_and_overwrites_stale_scores(self, db_engine, db_session):
        d1 = make_dashboard(db_session, "d1")
        d2 = make_dashboard(db_session, "d2", trending_score=999)
        add_views(db_session, d1.id, 5, NOW - timedelta(hours=1))
        add_views(db_session, d1.id, 3, NOW - timedelta(days=5))
        add_views(db_session, d1.id, 2, NOW - timedelta(days=20))
        db_session.commit()

        result = run_trending_update(db_engine, now=NOW)

        assert result["dashboards_checked"] == 2
        assert result["updated"] == 2
        assert result["failed"] == 0
        assert _score(db_session, d1.id) == 84
        # Overwritten, not left at the stale value
        assert _score(db_session, d2.id) == 0

    def test_idempotent(self, db_engine, db_session):
        d = make_dashboard(db_session, "steady")
        add_views(db_session, d.id, 2, NOW - timedelta(hours=3))
        add_views(db_session, d.id, 7, NOW - timedelta(days=10))
        db_session.commit()

        run_trending_update(db_engine, now=NOW)
        first = _score(db_session, d.id)
        run_trending_update(db_engine, now=NOW)
        second = _score(db_session, d.id)

        assert first == second == 2 * 14 + 7

    def test_scores_decay_as_time_passes(self, db_engine, db_session):
        d = make_dashboard(db_session, "fading")
        add_views(db_session, d.id, 1, NOW - timedelta(hours=1))
        db_session.commit()

        run_trending_update(db_engine, now=NOW)
        assert _score(db_session, d.id) == 14

        run_trending_update(db_engine, now=NOW + timedelta(days=2))
        assert _score(db_session, d.id) == 4

        run_trending_update(db_engine, now=NOW + timedelta(days=31))
        assert _score(db_session, d.id) == 0

    def test_does_not_touch_activity_or_updated_at(self, db_engine, db_session):
        old = NOW - timedelta(days=40)
        d = make_dashboard(db_session, "quiet", last_activity_at=old, created_at=old)
        db_session.commit()

        run_trending_update(db_engine, now=NOW)

        db_session.expire_all()
        row = db_session.get(Dashboard, d.id)
        assert as_utc(row.last_activity_at) == old
        assert as_utc(row.updated_at) == old

    def test_no_dashboards_is_noop(self, db_engine):
        result = run_trending_update(db_engine, now=NOW)
        assert result["dashboards_checked"] == 0
        assert result["updated"] == 0

    def test_one_failure_does_not_abort_others(self, db_engine, db_session):
        good = make_dashboard(db_session, "good")
        bad = make_dashboard(db_session, "bad")
        add_views(db_session, good.id, 1, NOW - timedelta(hours=1))
        db_session.commit()
        bad_id = bad.id

        real_count_views = trending_service.count_views

        def flaky(session, dashboard_id, now):
            if dashboard_id == bad_id:
                raise RuntimeError("transient storage error")
            return real_count_views(session, dashboard_id, now)

        with patch.object(trending_service, "count_views", side_effect=flaky):
            result = run_trending_update(db_engine, now=NOW)

        assert result["failed"] == 1
        assert result["updated"] == 1
        assert _score(db_session, good.id) == 14

    def test_enumeration_failure_propagates(self):
        with patch.object(
            trending_service, "get_session", side_effect=RuntimeError("db unreachable"),
        ):
            with pytest.raises(RuntimeError, match="db unreachable"):
                run_trending_update(object(), now=NOW)

    def test_dashboard_deleted_mid_run_is_skipped(self, db_engine, db_session):
        keep = make_dashboard(db_session, "keep")
        gone = make_dashboard(db_session, "gone")
        db_session.commit()
        gone_id = gone.id

        real_get_session = trending_service.get_session
        calls = {"n": 0}

        @contextmanager
        def racing(engine):
            calls["n"] += 1
            if calls["n"] == 2:
                # Owner deletes a dashboard right after enumeration
                with real_get_session(engine) as s:
                    s.execute(delete(Dashboard).where(Dashboard.id == gone_id))
            with real_get_session(engine) as s:
                yield s

        with patch.object(trending_service, "get_session", racing):
            result = run_trending_update(db_engine, now=NOW)

        assert result["dashboards_checked"] == 2
        assert result["skipped"] == 1
        assert result["updated"] == 1
        assert result["failed"] == 0
        assert _score(db_session, keep.id) == 0


class TestRefreshDashboardScore:
    def test_writes_score_and_bumps_activity(self, db_engine, db_session):
        old = NOW - timedelta(days=60)
        d = make_dashboard(db_session, "single", last_activity_at=old)
        add_views(db_session, d.id, 3, NOW - timedelta(days=2))
        db_session.commit()

        score = refresh_dashboard_score(db_engine, d.id, now=NOW)

        assert score == 3 * 3 + 3
        db_session.expire_all()
        row = db_session.get(Dashboard, d.id)
        assert row.trending_score == 12
        assert as_utc(row.last_activity_at) == NOW

    def test_matches_batch_result(self, db_engine, db_session):
        d = make_dashboard(db_session, "agree")
        add_views(db_session, d.id, 4, NOW - timedelta(hours=5))
        add_views(db_session, d.id, 6, NOW - timedelta(days=15))
        db_session.commit()

        single = refresh_dashboard_score(db_engine, d.id, now=NOW)
        run_trending_update(db_engine, now=NOW)

        assert _score(db_session, d.id) == single

    def test_missing_dashboard_returns_none(self, db_engine):
        assert refresh_dashboard_score(db_engine, "no-such-id", now=NOW) is None
