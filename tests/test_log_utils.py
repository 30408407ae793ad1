import logging
import os
from unittest.mock import patch

import pytest
from rich.logging import RichHandler

from paperfetch import log_utils

pytestmark = pytest.mark.unit


class TestLogUtils:
    """Test suite for log_utils module."""

    def setup_method(self):
        """Reset logger state before each test."""
        for handler in log_utils.logger.handlers[:]:
            log_utils.logger.removeHandler(handler)
            handler.close()

        log_utils._file_handler = None

        log_utils._initialize_logger()

    def teardown_method(self):
        # Drop any file handler so tmp_path can be cleaned up
        log_utils._initialize_logger()
        log_utils._file_handler = None

    def test_logger_initialization(self):
        """Test that logger is properly initialized."""
        assert log_utils.logger.name == "paperfetch"
        assert not log_utils.logger.propagate
        assert len(log_utils.logger.handlers) == 1
        assert isinstance(log_utils.logger.handlers[0], RichHandler)

    def test_logger_initialization_with_env_var(self):
        """Test logger initialization with environment variable."""
        with patch.dict(os.environ, {"PAPERFETCH_LOG_LEVEL": "DEBUG"}):
            log_utils._initialize_logger()
            assert log_utils.logger.level == logging.DEBUG
            assert log_utils.logger.handlers[0].level == logging.DEBUG

    def test_logger_initialization_with_invalid_env_var(self):
        """Test logger initialization with invalid environment variable."""
        with patch.dict(os.environ, {"PAPERFETCH_LOG_LEVEL": "INVALID"}):
            log_utils._initialize_logger()
            # Should default to INFO level
            assert log_utils.logger.level == logging.INFO

    def test_set_log_level_valid(self):
        """Test setting valid log levels."""
        log_utils.set_log_level("DEBUG")
        assert log_utils.logger.level == logging.DEBUG

        log_utils.set_log_level("warning")
        assert log_utils.logger.level == logging.WARNING
        assert log_utils.logger.handlers[0].level == logging.WARNING

    def test_set_log_level_invalid(self):
        """Test setting invalid log level."""
        original_level = log_utils.logger.level
        log_utils.set_log_level("INVALID_LEVEL")
        assert log_utils.logger.level == original_level

    def test_rich_handler_keeps_message_only_format(self):
        log_utils.set_log_level("DEBUG")

        assert log_utils.logger.handlers[0].formatter._fmt == "%(message)s"

    def test_add_file_logging(self, tmp_path):
        """Test that file logging writes paperfetch.log in the given directory."""
        log_dir = tmp_path / "logs"

        log_utils.add_file_logging(log_dir, "DEBUG")
        log_utils.logger.info("file logging check")
        log_utils._file_handler.flush()

        log_file = log_dir / "paperfetch.log"
        assert log_file.exists()
        assert "file logging check" in log_file.read_text(encoding="utf-8")
        assert log_utils._file_handler.level == logging.DEBUG

    def test_add_file_logging_replaces_previous_handler(self, tmp_path):
        log_utils.add_file_logging(tmp_path / "a")
        first = log_utils._file_handler

        log_utils.add_file_logging(tmp_path / "b")

        assert first not in log_utils.logger.handlers
        assert log_utils._file_handler in log_utils.logger.handlers
        assert len(log_utils.logger.handlers) == 2

    def test_add_file_logging_invalid_level_defaults_to_info(self, tmp_path):
        log_utils.add_file_logging(tmp_path, "LOUD")

        assert log_utils._file_handler.level == logging.INFO
