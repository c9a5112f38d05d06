"""Console logging setup. Call ``setup_logging()`` once at process start."""

from __future__ import annotations

import logging
import sys

LOGGER_NAME = "ketra"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: int | str = logging.WARNING) -> logging.Logger:
    """Attach a stderr handler to the package logger.

    Repeated calls only adjust the level so handlers are never duplicated.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.WARNING)

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(console)
    logger.propagate = False
    return logger


__all__ = ["LOGGER_NAME", "setup_logging"]
