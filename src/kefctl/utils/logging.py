from __future__ import annotations

import logging
import os
from typing import Literal, get_args

import coloredlogs  # type: ignore[import-untyped]

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"
LOGLEVEL_ENV_VAR = "LOGLEVEL"

# chatty at DEBUG, and nothing kefctl needs to show
QUIET_LOGGERS = ("aiohttp", "asyncio")


def resolve_level(level: str | None = None) -> LogLevel:
    """Pick the level from ``level`` or ``$LOGLEVEL``; unknown names mean INFO."""
    name = (level or os.environ.get(LOGLEVEL_ENV_VAR) or "INFO").strip().upper()
    if name == "WARN":
        name = "WARNING"
    for choice in get_args(LogLevel):
        if choice == name:
            return choice
    return "INFO"


def setup_logging(level: LogLevel | None = None) -> None:
    resolved = resolve_level(level)
    coloredlogs.install(level=resolved, fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logging.getLogger(__name__).debug("Logging at %s", resolved)
