"""Package logging.

All searchdsl loggers live under the ``searchdsl`` namespace. The namespace
logger gets one stream handler and its level from `settings.LOG_LEVEL` the
first time a `Logger` is created; the root logger is left alone.
"""

import logging
from typing import Optional

from searchdsl.settings import settings

PACKAGE_LOGGER = "searchdsl"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def resolve_level(name: Optional[str]) -> int:
    """Map a level name to its numeric value; unknown or empty names resolve to INFO."""
    level = logging.getLevelName((name or "").upper())
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: Optional[str] = None) -> logging.Logger:
    """Attach the package handler once and set the namespace level.

    Args:
        level: Level name; defaults to `settings.LOG_LEVEL`
    """
    global _configured
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(resolve_level(settings.LOG_LEVEL if level is None else level))
    if not _configured:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        package_logger.addHandler(handler)
        _configured = True
    return package_logger


class Logger:
    """Named logger for compiler and builder traces.

    ``message`` logs at the configured LOG_LEVEL, so the one-line summary of
    a compiled query is emitted whatever verbosity is selected.
    """

    def __init__(self, name: str) -> None:
        if not _configured:
            configure_logging()
        if name != PACKAGE_LOGGER and not name.startswith(PACKAGE_LOGGER + "."):
            name = f"{PACKAGE_LOGGER}.{name}"
        self._logger = logging.getLogger(name)

    @property
    def name(self) -> str:
        return self._logger.name

    def debug(self, msg: str, *args) -> None:
        self._logger.debug(msg, *args)

    def warning(self, msg: str, *args) -> None:
        self._logger.warning(msg, *args)

    def message(self, msg: str, *args) -> None:
        self._logger.log(resolve_level(settings.LOG_LEVEL), msg, *args)
