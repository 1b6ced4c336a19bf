"""
Logging Configuration — One stderr handler, text or JSON.

Records may carry run context through `extra=`:

    logger.info("→ Mirroring", extra={"run_id": run_id, "stage": "Mirroring"})

The JSON formatter emits that context as fields; the text formatter shows
it as a `run_id/stage` tag after the level.

## Environment Variables

- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
- LOG_FORMAT: json, text (default: text)

Command-line options take precedence over both.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import IO, Any, Dict, Optional

CONTEXT_FIELDS = ("run_id", "stage")


def _context(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        name: getattr(record, name)
        for name in CONTEXT_FIELDS
        if getattr(record, name, None) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per line: ts, level, logger, message, run context, exception."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(_context(record))
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)

    def formatTime(self, record: logging.LogRecord, datefmt: Optional[str] = None) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return ts.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class HumanFormatter(logging.Formatter):
    """
    Terminal formatter.

        12:34:56 INFO    [pipeline       ] R-20260204T221903-92929A/Mirroring → Mirroring
    """

    LEVEL_COLORS = {
        logging.DEBUG: "36",
        logging.INFO: "32",
        logging.WARNING: "33",
        logging.ERROR: "31",
        logging.CRITICAL: "35",
    }

    def __init__(self, color: bool = False):
        super().__init__(datefmt="%H:%M:%S")
        self.color = color

    def _level(self, record: logging.LogRecord) -> str:
        name = f"{record.levelname:7}"
        code = self.LEVEL_COLORS.get(record.levelno)
        if not self.color or code is None:
            return name
        return f"\033[{code}m{name}\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        module = record.name.rsplit(".", 1)[-1][:15]
        context = "/".join(str(v) for v in _context(record).values())

        line = f"{self.formatTime(record, self.datefmt)} {self._level(record)} [{module:15}] "
        if context:
            line += f"{context} "
        line += record.getMessage()

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(
    level: str | None = None,
    format_type: str | None = None,
    stream: Optional[IO[str]] = None,
) -> logging.Handler:
    """
    Replace the root logger's handlers with a single configured handler.

    Args:
        level: Log level name; falls back to $LOG_LEVEL, then INFO.
        format_type: "json" or "text"; falls back to $LOG_FORMAT, then text.
        stream: Output stream (default: stderr, so --json output on stdout
                stays parseable).

    Returns:
        The installed handler.
    """
    level_name = (level or os.environ.get("LOG_LEVEL") or "INFO").upper()
    format_name = (format_type or os.environ.get("LOG_FORMAT") or "text").lower()
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    stream = stream or sys.stderr
    handler = logging.StreamHandler(stream)
    if format_name == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(HumanFormatter(color=getattr(stream, "isatty", lambda: False)()))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(numeric_level)

    logging.getLogger(__name__).debug(f"Logging configured: level={level_name}, format={format_name}")
    return handler
