"""Structured logging utilities."""

from __future__ import annotations

import logging
import sys
from typing import Optional

from fleet_planner.utils.config import Settings, get_settings


_LOGGER_INITIALIZED = False


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure process-wide logging.

    The handler is installed once. A later call with explicit ``settings``
    only moves the root level, so ``create_app(settings)`` decides how chatty
    a planner process is even though modules grabbed loggers at import time.
    """

    global _LOGGER_INITIALIZED
    resolved_level = (settings or get_settings()).log_level.upper()

    if _LOGGER_INITIALIZED:
        if settings is not None:
            logging.getLogger().setLevel(resolved_level)
        return

    logging.basicConfig(
        level=resolved_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    _LOGGER_INITIALIZED = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger for the requested module."""
    configure_logging()
    return logging.getLogger(name)
