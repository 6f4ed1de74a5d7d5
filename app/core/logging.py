"""
Structured JSON logging configuration.
Every record is emitted as a single JSON line carrying the request id when available.
"""
import logging
import json
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from app.core.config import settings

# LogRecord attributes that are not user-supplied extra fields
_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
        "request_id",
    }
)


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Standard fields (timestamp, level, logger, message) come first, followed by
    the request id, any `extra={}` fields, exception text and source location.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "request_id"):
            log_data["request_id"] = record.request_id

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_data[key] = value

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        log_data["source"] = {
            "file": record.pathname,
            "line": record.lineno,
            "function": record.funcName,
        }

        return json.dumps(log_data, default=str)


def setup_logging(level: Optional[str] = None) -> logging.Logger:
    """
    Configure and return the application logger.

    Args:
        level: Log level name; defaults to settings.LOG_LEVEL

    Returns:
        The "review_cache" logger with a single stdout JSON handler
    """
    log_level = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)

    logger = logging.getLogger("review_cache")
    logger.setLevel(log_level)

    # Remove existing handlers to avoid duplicates on reload
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(JSONFormatter())
    logger.addHandler(console_handler)

    logger.propagate = False

    return logger


# Global logger instance
logger = setup_logging()

