"""Tests for logging setup."""

import logging

import pytest

from config import LOG_DIR
from logger import setup_logging, LIBRARY_LOGGERS


@pytest.fixture
def restore_logging():
    yield
    setup_logging()


class TestSetupLogging:

    def test_level_is_configurable(self, restore_logging):
        logger = setup_logging(logging.DEBUG)

        assert logger.name == "companion_reminders"
        assert logger.level == logging.DEBUG
        assert logger.isEnabledFor(logging.DEBUG)

    def test_writes_dated_file_in_log_dir(self, restore_logging):
        logger = setup_logging(logging.INFO)

        file_handler = next(h for h in logger.handlers if isinstance(h, logging.FileHandler))
        assert file_handler.baseFilename.startswith(str(LOG_DIR.absolute()))
        assert "reminders-" in file_handler.baseFilename

    def test_library_warnings_share_the_file(self, restore_logging):
        logger = setup_logging(logging.DEBUG)
        file_handler = next(h for h in logger.handlers if isinstance(h, logging.FileHandler))

        for name in LIBRARY_LOGGERS:
            library_logger = logging.getLogger(name)
            assert file_handler in library_logger.handlers
            # Library chatter stays at WARNING even when reminders log at DEBUG
            assert library_logger.level == logging.WARNING

    def test_repeat_setup_does_not_duplicate_handlers(self, restore_logging):
        setup_logging()
        logger = setup_logging()

        assert sum(isinstance(h, logging.FileHandler) for h in logger.handlers) == 1
        assert len(logging.getLogger("apscheduler").handlers) == 1
