"""
tickboard.constants — Shared Constants & Helpers
=================================================

Single source of truth for the trending formula and the retention
horizons.  Import from here instead of duplicating in services and routes.
"""

from __future__ import annotations

from datetime import timedelta

# ---------------------------------------------------------------------------
# Trending windows — (window length, weight)
# ---------------------------------------------------------------------------
# Windows overlap: a view from the last hour counts in all three terms.
WINDOW_24H = timedelta(hours=24)
WINDOW_7D = timedelta(days=7)
WINDOW_30D = timedelta(days=30)

WEIGHT_24H = 10
WEIGHT_7D = 3
WEIGHT_30D = 1

# ---------------------------------------------------------------------------
# Retention defaults
# ---------------------------------------------------------------------------
VIEW_LOG_RETENTION_DAYS = 30
INACTIVITY_DAYS = 90
DELETE_BATCH_SIZE = 500


def trending_score(views_24h: int, views_7d: int, views_30d: int) -> int:
    """Recency-weighted popularity score::

        score = views_24h * 10 + views_7d * 3 + views_30d * 1
    """
    return views_24h * WEIGHT_24H + views_7d * WEIGHT_7D + views_30d * WEIGHT_30D
