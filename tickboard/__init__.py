"""
Tickboard — Countdown Dashboards with a Trending Feed
======================================================
Password-protected countdown-timer dashboards, ranked on the explore page
by a recency-weighted trending score computed from the view log.

Package layout::

    tickboard/
    ├── config.py          # YAML → typed Python config
    ├── constants.py       # Trending windows/weights, retention horizons
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   └── models.py      # dashboards, events, view_logs
    ├── services/
    │   ├── dashboard_service.py  # Dashboard / event CRUD + explore listing
    │   ├── view_tracking.py      # View log write path
    │   ├── trending_service.py   # Trending score aggregator
    │   ├── retention_service.py  # View log retention sweep
    │   └── reaper_service.py     # Inactive dashboard cleanup
    ├── worker/
    │   ├── __main__.py    # python -m tickboard.worker
    │   └── tasks.py       # Scheduled job loops
    └── api/
        ├── main.py        # FastAPI app
        ├── deps.py        # Engine/session/JWT dependencies
        └── routes/        # Public + admin REST endpoints
"""

__version__ = "0.1.0"
