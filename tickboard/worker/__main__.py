"""
tickboard.worker.__main__ — Entry point for ``python -m tickboard.worker``
===========================================================================

Wiring:
1. Load .env (secrets).
2. Load config.yaml (job cadence and horizons).
3. Create the SQLAlchemy engine and ensure tables exist.
4. Start the periodic job loops and run until interrupted.
"""

from __future__ import annotations

import asyncio
import logging
import os

from dotenv import load_dotenv
from sqlalchemy import Engine

from tickboard.config import TickboardConfig, load_config
from tickboard.database.engine import create_db_engine, init_db
from tickboard.worker.tasks import PeriodicJobs

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("tickboard")


async def _serve(engine: Engine, cfg: TickboardConfig) -> None:
    jobs = PeriodicJobs(engine, cfg)
    jobs.start()
    try:
        await asyncio.Event().wait()
    finally:
        jobs.stop()


def main() -> None:
    """Bootstrap and run the maintenance worker."""

    # 1. Environment variables (secrets).
    load_dotenv()

    # 2. Soft configuration.
    cfg = load_config(os.getenv("TICKBOARD_CONFIG", "config.yaml"))
    logger.info("Config loaded — Site: %s", cfg.site_name)

    # 3. Database.
    engine = create_db_engine("worker")
    init_db(engine)

    # 4. Run (blocks until Ctrl+C or SIGTERM).
    logger.info("Starting Tickboard worker…")
    try:
        asyncio.run(_serve(engine, cfg))
    except KeyboardInterrupt:
        logger.info("Shutting down gracefully…")


if __name__ == "__main__":
    main()
