"""
Centralized logging setup for the Upokari service.

Provides a ``get_logger`` factory that returns module-specific loggers
all writing to both a shared rotating log file and the console.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import List, Optional

from upokari.config import Config, get_config

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
_LOG_FILE_NAME = "upokari.log"
_MAX_BYTES = 10 * 1024 * 1024  # 10 MB per log file
_BACKUP_COUNT = 5
_FMT = "%(asctime)s | %(levelname)-8s | %(name)-30s | %(message)s"
_DATE_FMT = "%Y-%m-%d %H:%M:%S"

_formatter = logging.Formatter(_FMT, datefmt=_DATE_FMT)

# Shared handlers, built from the active Config by the first get_logger call.
# Modules call get_logger at import, so that first call opens the log file.
_handlers: List[logging.Handler] = []
_loggers: List[logging.Logger] = []


def _build_handlers(config: Config) -> List[logging.Handler]:
    file_handler = RotatingFileHandler(
        str(config.LOG_DIR / _LOG_FILE_NAME),
        maxBytes=_MAX_BYTES,
        backupCount=_BACKUP_COUNT,
        encoding="utf-8",
    )
    file_handler.setFormatter(_formatter)
    file_handler.setLevel(logging.DEBUG)  # file always captures everything

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(_formatter)
    console_handler.setLevel(getattr(logging, config.LOG_LEVEL, logging.INFO))

    return [file_handler, console_handler]


def _shared_handlers() -> List[logging.Handler]:
    if not _handlers:
        _handlers.extend(_build_handlers(get_config()))
    return _handlers


def setup_logging(config: Optional[Config] = None) -> None:
    """
    Point every logger created so far at *config*'s log directory and level.

    Call this after installing a new Config (see ``load_config``); loggers
    created at import time keep writing to the old handlers otherwise.
    """
    config = config or get_config()
    old = list(_handlers)
    _handlers[:] = _build_handlers(config)
    for logger in _loggers:
        for h in old:
            logger.removeHandler(h)
        for h in _handlers:
            logger.addHandler(h)
    for h in old:
        h.close()


def get_logger(name: str) -> logging.Logger:
    """
    Return a logger identified by *name*.

    All loggers share the same file and console handlers so output is
    consistent across the application.

    Args:
        name: Typically ``__name__`` of the calling module.

    Returns:
        A configured :class:`logging.Logger`.
    """
    logger = logging.getLogger(name)
    if logger not in _loggers:
        logger.setLevel(logging.DEBUG)
        for h in _shared_handlers():
            logger.addHandler(h)
        logger.propagate = False
        _loggers.append(logger)
    return logger
