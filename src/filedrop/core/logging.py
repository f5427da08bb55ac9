"""Logging configuration for FileDrop."""

import contextvars
import json
import logging
import sys
import traceback
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Context variable for storing the drop token in request scope
token_context: contextvars.ContextVar[str | None] = contextvars.ContextVar("token", default=None)

# Keys passed through `extra=` that are copied into JSON log lines
LOG_FIELDS = (
    # Slot lifecycle
    "token", "room", "requester", "file_name", "size_bytes", "reason", "count",
    "retention_seconds", "length",
    # Limits and storage
    "max_file_size_bytes", "max_storage_bytes", "max_bytes", "storage_path",
    "error",
    # Chat delivery
    "kind", "timeout", "status_code",
    # HTTP requests
    "http_status", "method", "path", "duration_ms",
)


class JsonLogFormatter(logging.Formatter):
    """Single-line JSON formatter.

    One record per line. Only the fields named in LOG_FIELDS are taken
    from `extra`; an explicit `token` overrides the request token context.
    """

    SEVERITY_MAP = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        logging.WARNING: "WARNING",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as single-line JSON.

        Args:
            record: Log record to format

        Returns:
            Single-line JSON string
        """
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "severity": self.SEVERITY_MAP.get(record.levelno, "DEFAULT"),
            "message": record.getMessage(),
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        token = token_context.get()
        if token:
            log_entry["token"] = token

        for key in LOG_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_entry[key] = value

        if record.exc_info:
            exc_text = "".join(traceback.format_exception(*record.exc_info))
            log_entry["exception"] = exc_text
            log_entry["exception_type"] = record.exc_info[0].__name__ if record.exc_info[0] else "Unknown"
            log_entry["exception_message"] = str(record.exc_info[1]) if record.exc_info[1] else ""

        return json.dumps(log_entry, default=str, ensure_ascii=False)


def setup_logging(env: Optional[str] = None, level: Optional[str] = None) -> None:
    """Configure logging for the application.

    Local development gets a plain text format at DEBUG level. Every other
    environment gets JSON lines at LOG_LEVEL.

    Args:
        env: Environment name, defaults to settings.ENV
        level: Log level name, defaults to settings.LOG_LEVEL
    """
    from filedrop.core.config import settings

    env = env or settings.ENV
    if env == "local":
        log_level = logging.DEBUG
    else:
        log_level = logging.getLevelName((level or settings.LOG_LEVEL).upper())
        if not isinstance(log_level, int):
            log_level = logging.INFO

    handler = logging.StreamHandler(sys.stdout)

    if env == "local":
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
    else:
        formatter = JsonLogFormatter()

    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for logger_name in ["uvicorn", "uvicorn.access", "uvicorn.error"]:
        uvicorn_logger = logging.getLogger(logger_name)
        uvicorn_logger.setLevel(log_level)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.addHandler(handler)
        uvicorn_logger.propagate = False
