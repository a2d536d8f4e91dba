"""
Logging utilities for the channel toolkit.

Every module gets its logger from get_logger(), which attaches a single
console handler the first time a name is seen. CHANNEL_LOG_LEVEL overrides
the default INFO level.

Polling loops re-run the same reads every few seconds; wrap those runs in
quiet() so only warnings and errors reach the console.
"""

import logging
import os
from contextlib import contextmanager
from typing import Iterator, Optional

_DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def _level_from_env() -> int:
    level_str = os.getenv("CHANNEL_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_str, logging.INFO)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a configured logger with a stream handler.

    Subsequent calls with the same name reuse the existing configuration.
    """
    logger = logging.getLogger(name if name else "channel_toolkit")
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_DEFAULT_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(_level_from_env())

    return logger


class _WarningsOnly(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.WARNING


@contextmanager
def quiet(logger: logging.Logger, enabled: bool = True) -> Iterator[None]:
    """Drop records below WARNING on a logger while the block runs.

    Each call installs and removes its own filter; the logger level is
    never changed.
    """
    if not enabled:
        yield
        return

    run_filter = _WarningsOnly()
    logger.addFilter(run_filter)
    try:
        yield
    finally:
        logger.removeFilter(run_filter)
