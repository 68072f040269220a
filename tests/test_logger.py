"""
Tests for logger setup and per-operation logging.
"""

import logging

import pytest

from src.trackium_location.core.logger import LoggerContext, setup_logger


class TestSetupLogger:
    """Handler configuration."""

    def test_console_and_file_handlers(self, tmp_path):
        log_file = tmp_path / "logs" / "agent.log"

        logger = setup_logger("trackium_location.test.file", str(log_file), "WARNING")
        logger.debug("provider response: {}")
        for handler in logger.handlers:
            handler.flush()

        console, file_handler = logger.handlers
        assert console.level == logging.WARNING
        assert file_handler.level == logging.DEBUG
        assert "provider response" in log_file.read_text()
        assert logger.propagate is False
        file_handler.close()

    def test_console_only_without_file(self):
        logger = setup_logger("trackium_location.test.console", None, "DEBUG")

        assert len(logger.handlers) == 1
        assert logger.handlers[0].level == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self):
        logger = setup_logger("trackium_location.test.level", None, "chatty")

        assert logger.handlers[0].level == logging.INFO

    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logger("trackium_location.test.repeat", None)
        logger = setup_logger("trackium_location.test.repeat", None)

        assert len(logger.handlers) == 1


class TestLoggerContext:
    """Start, completion and failure lines."""

    def test_success(self, caplog):
        logger = logging.getLogger("trackium_location.test.ctx")

        with caplog.at_level(logging.INFO, logger=logger.name):
            with LoggerContext(logger, "location cycle 1") as context:
                pass

        messages = [record.getMessage() for record in caplog.records]
        assert messages[0] == "Starting location cycle 1"
        assert messages[1].startswith("Completed location cycle 1 in")
        assert context.duration >= 0

    def test_failure_logged_once_without_traceback(self, caplog):
        logger = logging.getLogger("trackium_location.test.ctx")

        with caplog.at_level(logging.INFO, logger=logger.name):
            with pytest.raises(RuntimeError):
                with LoggerContext(logger, "location cycle 2"):
                    raise RuntimeError("disk on fire")

        errors = [record for record in caplog.records if record.levelno == logging.ERROR]
        assert len(errors) == 1
        assert "disk on fire" in errors[0].getMessage()
        assert errors[0].exc_info is None
