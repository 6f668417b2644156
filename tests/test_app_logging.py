"""Tests for logging configuration."""

import logging

from calorie_assistant.app_logging import configure_logging


def test_configure_logging_idempotent() -> None:
    logger = logging.getLogger("calorie_assistant")
    logger.handlers.clear()

    configure_logging()
    first_count = len(logger.handlers)

    configure_logging()
    second_count = len(logger.handlers)

    assert first_count == 1
    assert second_count == 1
    assert logger.propagate is False


def test_module_loggers_inherit_package_handler() -> None:
    configure_logging()

    child = logging.getLogger("calorie_assistant.services.nutrition")

    assert not child.handlers
    assert child.getEffectiveLevel() == logging.INFO
