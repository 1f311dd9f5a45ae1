"""Unit tests for logging configuration module.

Tests verify that the logging configuration functions work correctly with different
scenarios including various log levels, formats, and file logging options.
"""

import logging
from unittest.mock import patch

import pytest

from careerpath.core.logging_config import (
    DETAILED_FORMAT,
    JSON_FORMAT,
    MODULE_LOG_LEVELS,
    SIMPLE_FORMAT,
    get_logger,
    setup_logging,
)


def _handler(kind):
    return next((h for h in logging.getLogger().handlers if type(h) is kind), None)


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    setup_logging(enable_file=False)


class TestSetupLoggingLogLevels:
    """Test setup_logging with different log levels."""

    @pytest.mark.parametrize(
        "log_level,expected_level",
        [
            ("DEBUG", logging.DEBUG),
            ("INFO", logging.INFO),
            ("WARNING", logging.WARNING),
            ("ERROR", logging.ERROR),
            ("critical", logging.CRITICAL),
        ],
    )
    def test_console_handler_level(self, log_level, expected_level):
        setup_logging(log_level=log_level, enable_file=False)

        console_handler = _handler(logging.StreamHandler)
        assert console_handler is not None
        assert console_handler.level == expected_level

    def test_root_logger_level_is_debug(self):
        """Filtering happens at handler level."""
        setup_logging(log_level="WARNING", enable_file=False)
        assert logging.getLogger().level == logging.DEBUG


class TestSetupLoggingFormats:
    """Test setup_logging with different log formats."""

    @pytest.mark.parametrize(
        "log_format,expected_format",
        [
            ("simple", SIMPLE_FORMAT),
            ("detailed", DETAILED_FORMAT),
            ("json", JSON_FORMAT),
            ("unknown", DETAILED_FORMAT),
        ],
    )
    def test_formats(self, log_format, expected_format):
        setup_logging(log_format=log_format, enable_file=False)
        assert _handler(logging.StreamHandler).formatter._fmt == expected_format


class TestSetupLoggingFileHandling:
    """Test setup_logging file logging functionality."""

    def test_file_handler_when_enabled(self, tmp_path):
        with (
            patch("careerpath.core.logging_config.LOG_FILE_DIR", str(tmp_path)),
            patch("careerpath.core.logging_config.ENABLE_FILE_LOGGING", True),
        ):
            setup_logging(log_level="ERROR", enable_file=True)

        file_handler = _handler(logging.FileHandler)
        assert file_handler is not None
        # File handler always takes everything
        assert file_handler.level == logging.DEBUG
        assert file_handler.baseFilename == str(tmp_path / "careerpath.log")
        file_handler.close()

    def test_no_file_handler_when_globally_disabled(self, tmp_path):
        with (
            patch("careerpath.core.logging_config.LOG_FILE_DIR", str(tmp_path)),
            patch("careerpath.core.logging_config.ENABLE_FILE_LOGGING", False),
        ):
            setup_logging(enable_file=True)
        assert _handler(logging.FileHandler) is None

    def test_no_file_handler_when_disabled_per_call(self):
        setup_logging(enable_file=False)
        assert _handler(logging.FileHandler) is None


class TestSetupLoggingHandlerManagement:
    """Test setup_logging handler management."""

    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logging(enable_file=False)
        setup_logging(enable_file=False)
        assert len(logging.getLogger().handlers) == 1


class TestSetupLoggingModuleSpecificLevels:
    """Test module-specific log level configuration."""

    @pytest.mark.parametrize(
        "module_name,expected_level",
        [
            ("careerpath.server", logging.INFO),
            ("careerpath.server.api", logging.DEBUG),
            ("careerpath.server.services", logging.DEBUG),
            ("careerpath.core.database", logging.INFO),
            ("sqlalchemy.engine", logging.WARNING),
            ("httpx", logging.WARNING),
            ("google_genai", logging.WARNING),
        ],
    )
    def test_module_specific_log_levels(self, module_name, expected_level):
        setup_logging(enable_file=False)
        assert logging.getLogger(module_name).level == expected_level

    def test_all_module_log_levels_configured(self):
        setup_logging(enable_file=False)
        for module_name, expected_level_str in MODULE_LOG_LEVELS.items():
            assert logging.getLogger(module_name).level == getattr(logging, expected_level_str)


class TestGetLogger:
    """Test get_logger function."""

    def test_returns_named_logger(self):
        logger = get_logger("careerpath.server.services.roadmap_cache")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "careerpath.server.services.roadmap_cache"

    def test_same_name_returns_same_instance(self):
        assert get_logger("careerpath.test") is get_logger("careerpath.test")

    def test_inherits_module_level(self):
        setup_logging(enable_file=False)
        logger = get_logger("careerpath.server.api.v1.roadmap")
        assert logger.getEffectiveLevel() == logging.DEBUG
