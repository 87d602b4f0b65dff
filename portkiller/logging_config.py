"""Logging setup for the portkiller command line.

Library modules only create loggers; handlers are installed here, and only
by the CLI. Scan and kill paths attach structured context through
``extra=``, which both formatters know how to render.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Any

# extra= key -> console rendering
EXTRA_FIELDS = {
    "port": "port={}",
    "pid": "pid={}",
    "strategy": "strategy={}",
    "outcome": "outcome={}",
    "duration_ms": "{:.1f}ms",
}


def _extras(record: logging.LogRecord) -> dict[str, Any]:
    return {name: getattr(record, name) for name in EXTRA_FIELDS if hasattr(record, name)}


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for piping scan/kill logs into other tools."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_extras(record),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable lines, colored by level when writing to a terminal."""

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, color: bool = True) -> None:
        super().__init__()
        self.color = color

    def format(self, record: logging.LogRecord) -> str:
        level = f"{record.levelname:8}"
        if self.color:
            level = f"{self.LEVEL_COLORS.get(record.levelno, '')}{level}{self.RESET}"

        context = [EXTRA_FIELDS[name].format(value) for name, value in _extras(record).items()]
        suffix = f" [{', '.join(context)}]" if context else ""

        line = (
            f"{datetime.fromtimestamp(record.created):%H:%M:%S} {level} "
            f"{record.name}: {record.getMessage()}{suffix}"
        )
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(debug: bool = False, json_logs: bool = False, stream: IO[str] | None = None) -> None:
    """Install a single root handler on stderr.

    Command output goes to stdout, so logs stay on stderr and default to
    WARNING to keep ``list --json`` parseable.

    Args:
        debug: Log probe commands, waits and escalations
        json_logs: Emit JSON lines instead of console text
        stream: Override the output stream (defaults to ``sys.stderr``)
    """
    stream = stream or sys.stderr
    level = logging.DEBUG if debug else logging.WARNING

    handler = logging.StreamHandler(stream)
    if json_logs:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(ConsoleFormatter(color=stream.isatty()))

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        root_logger.removeHandler(existing)
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    logging.getLogger(__name__).debug(
        f"Logging configured: level={logging.getLevelName(level)}, json={json_logs}"
    )
