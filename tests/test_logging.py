"""Tests for logging configuration."""

import io
import json
import logging
import sys

import pytest

from portkiller.logging_config import ConsoleFormatter, JSONFormatter, setup_logging


def make_record(msg="Test message", level=logging.INFO, **extra):
    record = logging.LogRecord(
        name="portkiller.test",
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for JSON log formatter."""

    def test_basic_format(self):
        """Test basic JSON log format."""
        data = json.loads(JSONFormatter().format(make_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "portkiller.test"
        assert data["message"] == "Test message"
        assert data["timestamp"].endswith("Z")

    def test_extra_fields(self):
        """Test port, pid and outcome extras are included."""
        record = make_record("Terminated", port=8080, pid=1001, outcome="killed", duration_ms=312.5)

        data = json.loads(JSONFormatter().format(record))

        assert data["port"] == 8080
        assert data["pid"] == 1001
        assert data["outcome"] == "killed"
        assert data["duration_ms"] == 312.5

    def test_unknown_extras_ignored(self):
        data = json.loads(JSONFormatter().format(make_record(method="GET")))
        assert "method" not in data

    def test_exception_included(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = make_record(level=logging.ERROR)
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))

        assert "RuntimeError: boom" in data["exception"]


class TestConsoleFormatter:
    """Tests for console log formatter."""

    def test_basic_format(self):
        """Test basic console format includes level and message."""
        output = ConsoleFormatter().format(make_record())

        assert "INFO" in output
        assert "Test message" in output
        assert "portkiller.test" in output

    def test_extra_fields_in_brackets(self):
        """Test extra fields appear in brackets."""
        output = ConsoleFormatter().format(make_record("Scan", strategy="lsof", duration_ms=12.34))

        assert "[strategy=lsof, 12.3ms]" in output

    def test_pid_and_outcome(self):
        output = ConsoleFormatter().format(make_record("Terminated", pid=42, outcome="not_found"))
        assert "pid=42" in output
        assert "outcome=not_found" in output


class TestSetupLogging:
    """Tests for logging setup."""

    @pytest.fixture(autouse=True)
    def restore_root(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_setup_replaces_handlers(self):
        """Test setup_logging installs exactly one stderr handler."""
        setup_logging(debug=True, json_logs=False)
        setup_logging(debug=True, json_logs=False)

        root = logging.getLogger()
        assert len(root.handlers) == 1
        assert root.handlers[0].stream is sys.stderr

    def test_debug_mode_sets_debug_level(self):
        """Test debug mode sets DEBUG level."""
        setup_logging(debug=True, json_logs=False)
        assert logging.getLogger().level == logging.DEBUG

    def test_default_level_is_warning(self):
        """Test non-debug mode keeps the command line quiet."""
        setup_logging(debug=False, json_logs=False)
        assert logging.getLogger().level == logging.WARNING

    def test_json_formatter_selected(self):
        setup_logging(json_logs=True)
        assert isinstance(logging.getLogger().handlers[0].formatter, JSONFormatter)

    def test_stream_override_without_color(self):
        """Test a non-terminal stream gets plain text."""
        stream = io.StringIO()
        setup_logging(stream=stream)

        logging.getLogger("portkiller.test").warning("Port scan failed", extra={"strategy": "ss"})

        assert stream.getvalue().rstrip().endswith("WARNING  portkiller.test: Port scan failed [strategy=ss]")
        assert "\033[" not in stream.getvalue()
