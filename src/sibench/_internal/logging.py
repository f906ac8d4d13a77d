"""Logging setup for sibench.

Workers run as threads or as spawned processes, so every record carries the
thread or process name it came from (``sibench-worker-3`` and so on).
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime

_TEXT_FORMAT = "%(asctime)s [%(levelname)-8s] %(origin)s %(name)s: %(message)s"


class _OriginFilter(logging.Filter):
    """Attach an ``origin`` attribute naming the emitting thread or process."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.processName not in ("MainProcess", None):
            record.origin = record.processName
        else:
            record.origin = record.threadName
        return True


class _JsonFormatter(logging.Formatter):
    """One-line JSON log formatter.

    Keys: timestamp, level, logger, origin, message (and exception if any).
    """

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "origin": getattr(record, "origin", record.threadName),
            "message": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def setup_logging(
    level: int = logging.INFO,
    *,
    json_format: bool = False,
) -> logging.Logger:
    """Configure and return the ``sibench`` root logger.

    Calling this more than once only adjusts the level of the existing
    handler; spawned worker processes call it on start-up.

    Args:
        level: Logging level (e.g. ``logging.DEBUG``).
        json_format: Emit JSON lines instead of human-readable text.

    Returns:
        The configured ``sibench`` logger.
    """
    logger = logging.getLogger("sibench")
    logger.setLevel(level)

    if logger.handlers:
        for handler in logger.handlers:
            handler.setLevel(level)
        return logger

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.addFilter(_OriginFilter())

    if json_format:
        formatter: logging.Formatter = _JsonFormatter()
    else:
        formatter = logging.Formatter(_TEXT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.propagate = False

    return logger


def get_logger(name: str) -> logging.Logger:
    """Return a child logger, e.g. ``get_logger("engine.worker")``."""
    return logging.getLogger(f"sibench.{name}")
