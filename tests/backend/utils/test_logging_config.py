"""Unit tests for logging configuration

Tests verify that structlog is configured with:
- JSON output to the log file
- Automatic log directory creation
- DEBUG records in the file, console filtered by console_level
- Exception tracebacks rendered into the entry
- Third-party stdlib loggers rendered in the same JSON shape
"""

import json
import logging
import os
import shutil
import tempfile

import pytest
import structlog

from brandpulse.backend.utils.logging_config import get_logger, setup_logging


@pytest.fixture
def temp_log_dir():
    """Create a temporary directory for test logs."""
    temp_dir = tempfile.mkdtemp(prefix="test_logs_")
    yield temp_dir
    if os.path.exists(temp_dir):
        shutil.rmtree(temp_dir)


@pytest.fixture
def clean_logging():
    """Reset logging configuration after each test."""
    yield
    structlog.reset_defaults()
    root = logging.getLogger()
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()


def _read_entries(log_file):
    with open(log_file, encoding="utf-8") as f:
        return [json.loads(line) for line in f if line.strip()]


class TestSetupLogging:
    """Test setup_logging() function."""

    def test_creates_log_directory(self, temp_log_dir, clean_logging):
        log_dir = os.path.join(temp_log_dir, "logs")
        assert not os.path.exists(log_dir)

        setup_logging(log_dir=log_dir)

        assert os.path.isdir(log_dir)

    def test_writes_json_entries(self, temp_log_dir, clean_logging):
        setup_logging(log_dir=temp_log_dir, log_filename="backend.log")

        get_logger("brandpulse.test").info("analysis_started", entity="Tesla", topic_count=5)

        entry = _read_entries(os.path.join(temp_log_dir, "backend.log"))[-1]
        assert entry["event"] == "analysis_started"
        assert entry["level"] == "info"
        assert entry["entity"] == "Tesla"
        assert entry["topic_count"] == 5
        assert entry["logger"] == "brandpulse.test"
        assert "timestamp" in entry

    @pytest.mark.parametrize('log_filename', ["backend.log", "pipeline.log"])
    def test_entry_point_log_files(self, temp_log_dir, clean_logging, log_filename):
        """The API and the CLI each write only their own log file."""
        setup_logging(log_dir=temp_log_dir, log_filename=log_filename)

        get_logger("brandpulse.test").info("analysis_started", entity="Tesla")

        assert os.listdir(temp_log_dir) == [log_filename]
        assert _read_entries(os.path.join(temp_log_dir, log_filename))[-1]["event"] == "analysis_started"

    def test_debug_goes_to_file_only(self, temp_log_dir, clean_logging, capsys):
        setup_logging(log_dir=temp_log_dir, console_level=logging.WARNING)
        logger = get_logger("brandpulse.test")

        logger.debug("batch_completed", stage="sentiment")
        logger.warning("relevance_batch_kept", batch_size=10)

        out = capsys.readouterr().out
        events = [e["event"] for e in _read_entries(os.path.join(temp_log_dir, "brandpulse.log"))]
        assert events == ["batch_completed", "relevance_batch_kept"]
        assert "batch_completed" not in out
        assert "relevance_batch_kept" in out

    def test_exception_traceback_included(self, temp_log_dir, clean_logging):
        setup_logging(log_dir=temp_log_dir)
        logger = get_logger("brandpulse.test")

        try:
            raise RuntimeError("reddit is down")
        except RuntimeError:
            logger.error("analysis_failed", exc_info=True)

        entry = _read_entries(os.path.join(temp_log_dir, "brandpulse.log"))[-1]
        assert entry["level"] == "error"
        assert "RuntimeError: reddit is down" in entry["exception"]

    def test_stdlib_loggers_rendered_as_json(self, temp_log_dir, clean_logging):
        setup_logging(log_dir=temp_log_dir)

        logging.getLogger("uvicorn.error").warning("server shutting down")

        entry = _read_entries(os.path.join(temp_log_dir, "brandpulse.log"))[-1]
        assert entry["event"] == "server shutting down"
        assert entry["level"] == "warning"
