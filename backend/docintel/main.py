"""
Process entry point.

Startup sequence (mirrors a service lifespan hook):
  1. Configure process-wide logging from settings
  2. Ping the database; abort if it is unreachable
  3. Ensure the documents schema exists

Run as ``docintel-init`` (see pyproject scripts) or ``python -m docintel.main``.
"""

from __future__ import annotations

import asyncio
import logging

from sqlalchemy.ext.asyncio import AsyncEngine

from docintel.core.config import Settings, settings
from docintel.core.logging_setup import configure_logging
from docintel.db.session import check_db_health, init_models

logger = logging.getLogger(__name__)


async def startup(config: Settings | None = None, engine: AsyncEngine | None = None) -> None:
    cfg = config or settings
    configure_logging(cfg)

    logger.info("Starting document intelligence | env=%s", cfg.app_env)

    db_health = await check_db_health(engine)
    if db_health["status"] != "ok":
        logger.critical("Database health check failed at startup: %s", db_health)
        raise RuntimeError(f"DB unavailable: {db_health}")

    await init_models(engine)
    logger.info("Startup complete")


def main() -> None:
    asyncio.run(startup())


if __name__ == "__main__":
    main()
