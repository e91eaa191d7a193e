"""
Tests for logging configuration.

This module tests handler setup, environment variable handling, JSON
formatting and the performance logging helpers.
"""

import json
import logging
import logging.handlers
import os
import tempfile
from io import StringIO
from unittest.mock import patch

import pytest

from bcLeiden.common.logging_config import (
    setup_logging,
    get_logger,
    configure_external_library_logging,
    log_function_entry,
    log_performance_metric,
    LoggingTimer,
    JSONFormatter,
    PerformanceFilter,
    ROOT_LOGGER_NAME,
    DEFAULT_LOG_FILE_NAME,
    ENV_LOG_LEVEL,
    ENV_LOG_DIR,
    ENV_LOG_CONSOLE,
    ENV_LOG_JSON
)


def _reset_loggers():
    for name in (ROOT_LOGGER_NAME, f"{ROOT_LOGGER_NAME}.performance", f"{ROOT_LOGGER_NAME}.debug"):
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()
        logger.filters.clear()
        logger.setLevel(logging.NOTSET)
        logger.propagate = True


class TestSetupLogging:
    """Test the main setup_logging function."""

    def setup_method(self):
        """Clear any existing handlers before each test."""
        _reset_loggers()

    def teardown_method(self):
        _reset_loggers()

    def test_basic_setup(self):
        """Test basic logging setup with defaults."""
        logger = setup_logging()

        assert logger.name == "bcLeiden"
        assert logger.level == logging.INFO
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.StreamHandler)
        assert not logger.propagate

    def test_custom_level(self):
        """Test setting custom log level."""
        logger = setup_logging(level="DEBUG")
        assert logger.level == logging.DEBUG

        logger = setup_logging(level="WARNING", force_setup=True)
        assert logger.level == logging.WARNING

    def test_existing_setup_is_kept(self):
        """Test that a second call without force_setup is a no-op."""
        setup_logging(level="DEBUG")
        logger = setup_logging(level="ERROR")

        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1

    def test_foreign_handler_does_not_block_setup(self):
        """Test that a handler added by someone else is not taken as a previous setup."""
        logger = logging.getLogger(ROOT_LOGGER_NAME)
        foreign = logging.NullHandler()
        logger.addHandler(foreign)

        logger = setup_logging(level="DEBUG")

        assert logger.level == logging.DEBUG
        assert foreign in logger.handlers
        assert sum(isinstance(h, logging.StreamHandler) for h in logger.handlers) == 1

    def test_force_setup_keeps_foreign_handlers(self):
        """Test that reconfiguration only replaces the handlers it installed."""
        setup_logging(level="INFO")
        logger = logging.getLogger(ROOT_LOGGER_NAME)
        foreign = logging.NullHandler()
        logger.addHandler(foreign)

        logger = setup_logging(level="WARNING", json_format=True, force_setup=True)

        stream_handlers = [h for h in logger.handlers if isinstance(h, logging.StreamHandler)]
        assert foreign in logger.handlers
        assert len(stream_handlers) == 1
        assert isinstance(stream_handlers[0].formatter, JSONFormatter)

    def test_reset_restores_propagation(self):
        """Test that the teardown helper undoes propagate=False."""
        logger = setup_logging()
        assert not logger.propagate

        _reset_loggers()
        assert logger.propagate

    def test_invalid_level(self):
        """Test that invalid log level raises ValueError."""
        with pytest.raises(ValueError, match="Invalid logging level"):
            setup_logging(level="INVALID_LEVEL")

    def test_file_logging(self):
        """Test file logging setup."""
        with tempfile.TemporaryDirectory() as temp_dir:
            log_file = os.path.join(temp_dir, "test.log")

            logger = setup_logging(log_file=log_file, console=False)

            assert len(logger.handlers) == 1
            assert isinstance(logger.handlers[0], logging.handlers.RotatingFileHandler)

            logger.info("Betweenness computed")
            logger.handlers[0].flush()
            with open(log_file, encoding="utf-8") as f:
                assert "Betweenness computed" in f.read()

            _reset_loggers()

    def test_json_format(self):
        """Test that json_format installs the JSON formatter."""
        logger = setup_logging(json_format=True)
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)

    def test_performance_filter_installed(self):
        """Test that performance logging filters the performance logger."""
        setup_logging(performance_logging=True)
        perf_logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.performance")

        assert any(isinstance(f, PerformanceFilter) for f in perf_logger.filters)

    @patch.dict(os.environ, {ENV_LOG_LEVEL: "ERROR", ENV_LOG_CONSOLE: "false"})
    def test_environment_variables(self):
        """Test configuration from environment variables."""
        logger = setup_logging()

        assert logger.level == logging.ERROR
        assert len(logger.handlers) == 0

    @patch.dict(os.environ, {ENV_LOG_JSON: "yes"})
    def test_environment_json(self):
        """Test enabling JSON output from the environment."""
        logger = setup_logging()
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)

    def test_log_dir_uses_default_file_name(self):
        """Test that a log directory without a file name gets the default file."""
        with tempfile.TemporaryDirectory() as temp_dir:
            with patch.dict(os.environ, {ENV_LOG_DIR: temp_dir}):
                logger = setup_logging(console=False)

            handler = logger.handlers[0]
            assert handler.baseFilename == os.path.join(temp_dir, DEFAULT_LOG_FILE_NAME)
            _reset_loggers()


class TestFormattersAndFilters:
    """Test JSONFormatter and PerformanceFilter."""

    def _record(self, message, **extra):
        record = logging.LogRecord(
            name="bcLeiden.network", level=logging.INFO, pathname=__file__,
            lineno=1, msg=message, args=(), exc_info=None
        )
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_json_formatter(self):
        """Test the JSON output structure."""
        output = JSONFormatter().format(self._record("hello", source=4))
        data = json.loads(output)

        assert data["message"] == "hello"
        assert data["level"] == "INFO"
        assert data["logger"] == "bcLeiden.network"
        assert data["source"] == 4

    def test_json_formatter_serialises_unknown_types(self):
        """Test that non-JSON values fall back to str()."""
        output = JSONFormatter().format(self._record("edges", key=frozenset([1])))
        assert "frozenset" in json.loads(output)["key"]

    def test_performance_filter(self):
        """Test that only timing messages pass the filter."""
        perf_filter = PerformanceFilter()

        assert perf_filter.filter(self._record("Performance: x completed in 0.1s"))
        assert perf_filter.filter(self._record("elapsed 3s"))
        assert not perf_filter.filter(self._record("Moved vertex 3"))


class TestLoggingHelpers:
    """Test function-entry, performance and timer helpers."""

    def setup_method(self):
        _reset_loggers()
        self.stream = StringIO()
        self.handler = logging.StreamHandler(self.stream)
        self.handler.setLevel(logging.DEBUG)

    def teardown_method(self):
        _reset_loggers()

    def test_get_logger(self):
        """Test that module loggers nest under the library root."""
        logger = get_logger("bcLeiden.network.betweenness")
        assert logger.name == "bcLeiden.network.betweenness"
        assert logger.parent.name in ("bcLeiden.network", "bcLeiden")

    def test_log_function_entry(self):
        """Test debug output on function entry."""
        debug_logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.debug")
        debug_logger.addHandler(self.handler)
        debug_logger.setLevel(logging.DEBUG)

        log_function_entry("edge_betweenness", distance="hop", n_jobs=1)

        assert "Entering edge_betweenness(distance=hop, n_jobs=1)" in self.stream.getvalue()

    def test_log_performance_metric(self):
        """Test the performance message format."""
        perf_logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.performance")
        perf_logger.addHandler(self.handler)
        perf_logger.setLevel(logging.INFO)

        log_performance_metric("vertex_betweenness", 1.23456, {"vertices": 6})

        output = self.stream.getvalue()
        assert "Performance: vertex_betweenness completed in 1.235s" in output
        assert "vertices=6" in output

    def test_logging_timer(self):
        """Test that the timer records a duration and logs it."""
        perf_logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.performance")
        perf_logger.addHandler(self.handler)
        perf_logger.setLevel(logging.INFO)

        with LoggingTimer("detect_communities", {"vertices": 4}) as timer:
            sum(range(100))

        assert timer.duration is not None
        assert timer.duration >= 0
        assert "detect_communities completed" in self.stream.getvalue()

    def test_configure_external_library_logging(self):
        """Test setting third-party logger levels."""
        configure_external_library_logging({"networkit": "ERROR", "bogus": "NOT_A_LEVEL"})

        assert logging.getLogger("networkit").level == logging.ERROR
        assert logging.getLogger("bogus").level == logging.NOTSET
