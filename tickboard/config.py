"""
tickboard.config — YAML Configuration Loader
=============================================

Reads ``config.yaml`` for infrastructure settings: site identity, API
port, and the cadence / horizons of the background maintenance jobs.
Secrets (``DATABASE_URL``, ``JWT_SECRET``) stay in the environment.

Usage::

    from tickboard.config import load_config

    cfg = load_config()                  # reads ./config.yaml by default
    print(cfg.trending_interval_hours)   # 6
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml


@dataclass(frozen=True, slots=True)
class TickboardConfig:
    """Immutable configuration loaded from ``config.yaml``."""

    # Identity
    site_name: str

    # API
    api_port: int

    # Job cadence (hours between runs)
    trending_interval_hours: float = 6
    retention_interval_hours: float = 24
    reaper_interval_hours: float = 24

    # Horizons
    view_log_retention_days: int = 30
    inactivity_days: int = 90

    # Max view-log ids per DELETE statement
    delete_batch_size: int = 500


def load_config(path: str | Path = "config.yaml") -> TickboardConfig:
    """Read *path* and return a :class:`TickboardConfig` instance.

    Job settings are optional and fall back to the dataclass defaults.

    Raises
    ------
    FileNotFoundError
        If the YAML file doesn't exist.
    KeyError
        If a required key is missing from the YAML file.
    ValueError
        If a horizon, interval or batch size is not positive.
    """
    config_path = Path(path)
    if not config_path.exists():
        raise FileNotFoundError(
            f"Configuration file not found: {config_path.resolve()}\n"
            "Hint: copy config.yaml.example → config.yaml and edit it."
        )

    with open(config_path, encoding="utf-8") as fh:
        raw: dict = yaml.safe_load(fh) or {}

    jobs: dict = raw.get("jobs") or {}
    defaults = TickboardConfig(site_name="", api_port=0)

    cfg = TickboardConfig(
        site_name=raw["site_name"],
        api_port=int(raw["api_port"]),
        trending_interval_hours=float(
            jobs.get("trending_interval_hours", defaults.trending_interval_hours)
        ),
        retention_interval_hours=float(
            jobs.get("retention_interval_hours", defaults.retention_interval_hours)
        ),
        reaper_interval_hours=float(
            jobs.get("reaper_interval_hours", defaults.reaper_interval_hours)
        ),
        view_log_retention_days=int(
            jobs.get("view_log_retention_days", defaults.view_log_retention_days)
        ),
        inactivity_days=int(jobs.get("inactivity_days", defaults.inactivity_days)),
        delete_batch_size=int(jobs.get("delete_batch_size", defaults.delete_batch_size)),
    )

    for name in (
        "trending_interval_hours", "retention_interval_hours", "reaper_interval_hours",
        "view_log_retention_days", "inactivity_days", "delete_batch_size",
    ):
        if getattr(cfg, name) <= 0:
            raise ValueError(f"jobs.{name} must be positive, got {getattr(cfg, name)}")

    return cfg
