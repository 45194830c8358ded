"""Tests for the application logger utility."""

from __future__ import annotations

import logging
from unittest.mock import patch

import pytest


@pytest.fixture(autouse=True)
def reset_logger():
    """Reset the logger singleton and logging state between tests."""
    import sprint_tracker.utils.logger as logger_mod

    original = logger_mod._logger
    logger_mod._logger = None
    logging.getLogger("sprint_tracker").handlers.clear()

    yield

    logging.getLogger("sprint_tracker").handlers.clear()
    logger_mod._logger = original


def test_get_logger_creates_log_file(tmp_path):
    with patch("sprint_tracker.utils.logger.user_log_dir", return_value=str(tmp_path)):
        from sprint_tracker.utils.logger import get_logger

        logger = get_logger()

    assert (tmp_path / "sprint-tracker.log").exists()
    assert isinstance(logger, logging.Logger)


def test_get_logger_returns_singleton(tmp_path):
    with patch("sprint_tracker.utils.logger.user_log_dir", return_value=str(tmp_path)):
        from sprint_tracker.utils.logger import get_logger

        assert get_logger() is get_logger()


def test_module_loggers_end_up_in_file(tmp_path):
    """Children of the application logger write to the same file."""
    with patch("sprint_tracker.utils.logger.user_log_dir", return_value=str(tmp_path)):
        from sprint_tracker.utils.logger import get_logger

        logger = get_logger()

    logging.getLogger("sprint_tracker.services.sprint_service").info("sprint created")
    for handler in logger.handlers:
        handler.flush()

    content = (tmp_path / "sprint-tracker.log").read_text(encoding="utf-8")
    assert "[sprint_tracker.services.sprint_service] sprint created" in content


def test_get_logger_creates_parent_dirs(tmp_path):
    nested = tmp_path / "a" / "b"
    with patch("sprint_tracker.utils.logger.user_log_dir", return_value=str(nested)):
        from sprint_tracker.utils.logger import get_logger

        get_logger()

    assert nested.is_dir()


def test_logger_does_not_propagate(tmp_path):
    with patch("sprint_tracker.utils.logger.user_log_dir", return_value=str(tmp_path)):
        from sprint_tracker.utils.logger import get_logger

        assert get_logger().propagate is False
