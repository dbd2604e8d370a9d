from __future__ import annotations

import logging
from dataclasses import replace

from app import create_app
from fleet_planner.utils.config import get_settings
from fleet_planner.utils.logger import configure_logging, get_logger


def test_create_app_applies_configured_log_level() -> None:
    root = logging.getLogger()
    previous_level = root.level
    try:
        create_app(replace(get_settings(), log_level="debug"))
        assert root.level == logging.DEBUG

        configure_logging(replace(get_settings(), log_level="WARNING"))
        assert root.level == logging.WARNING
    finally:
        root.setLevel(previous_level)


def test_get_logger_does_not_reset_level() -> None:
    root = logging.getLogger()
    previous_level = root.level
    try:
        root.setLevel(logging.ERROR)
        logger = get_logger("fleet_planner.tests")

        assert logger.name == "fleet_planner.tests"
        assert root.level == logging.ERROR
    finally:
        root.setLevel(previous_level)
