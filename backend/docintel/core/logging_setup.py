"""Process-wide logging setup."""

from __future__ import annotations

import logging

from docintel.core.config import Settings, settings as _default_settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

# Chatty third-party loggers that drown out pipeline lines at DEBUG
_QUIET_LOGGERS = ("httpx", "httpcore", "openai", "aiosqlite", "sqlalchemy.engine")


def configure_logging(config: Settings | None = None) -> None:
    """
    Configure the root logger once per process.

    DEBUG when ``debug`` is set, otherwise ``log_level`` from settings.
    """
    cfg   = config or _default_settings
    level = logging.DEBUG if cfg.debug else getattr(logging, cfg.log_level.upper(), logging.INFO)

    logging.basicConfig(level=level, format=LOG_FORMAT)
    # basicConfig is a no-op once handlers exist; the level must still apply
    logging.getLogger().setLevel(level)

    if not cfg.db_echo_sql:
        for name in _QUIET_LOGGERS:
            logging.getLogger(name).setLevel(max(level, logging.WARNING))
