"""
Centralized logging configuration.

Console output is plain text; the optional rotating file gets one JSON object
per line. Context passed as keyword arguments to a `StructuredLogger` ends up
as top-level keys of that object, which is what the audit trail
(`log_business_event`) and timing lines (`log_performance`) rely on.
"""
import logging
import logging.config
import json
import sys
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from pathlib import Path

ROOT_LOGGER_NAME = "hoarding_app"

# Loggers wired to the same handlers as the application
_MANAGED_LOGGERS = {
    ROOT_LOGGER_NAME: None,  # follows the requested level
    "uvicorn": "INFO",
    "sqlalchemy.engine": "WARNING",
}

# LogRecord attributes that structured context must not shadow
_RESERVED_KEYS = frozenset({"message", "level", "logger", "timestamp"})


class JSONFormatter(logging.Formatter):
    """One JSON document per record, structured context merged at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "process_id": record.process,
            "thread_id": record.thread,
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        for key, value in (getattr(record, "context", None) or {}).items():
            entry[f"ctx_{key}" if key in _RESERVED_KEYS else key] = value

        # Dates, enums and UUIDs fall back to str()
        return json.dumps(entry, ensure_ascii=False, default=str)


class StructuredLogger:
    """Thin wrapper whose level methods take keyword context.

        logger.info("Placement committed", placement_id=pid, hoarding_id=3)

    ``None`` values are dropped; ``exc_info`` goes to the stdlib logger.
    """

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

    def _emit(self, level: int, message: str, **context):
        if not self.logger.isEnabledFor(level):
            return
        exc_info = context.pop("exc_info", None)
        context = {k: v for k, v in context.items() if v is not None}
        self.logger.log(level, message, exc_info=exc_info, extra={"context": context})

    def debug(self, message: str, **context):
        self._emit(logging.DEBUG, message, **context)

    def info(self, message: str, **context):
        self._emit(logging.INFO, message, **context)

    def warning(self, message: str, **context):
        self._emit(logging.WARNING, message, **context)

    def error(self, message: str, **context):
        self._emit(logging.ERROR, message, **context)


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    enable_console: bool = True
) -> None:
    """
    Configure the application, uvicorn and SQLAlchemy loggers.

    Args:
        log_level: Level for the application loggers and handlers
        log_file: Rotating JSON log file (10MB x 5); directories are created
        enable_console: Plain-text output on stdout
    """
    handlers: Dict[str, Dict[str, Any]] = {}
    if enable_console:
        handlers["console"] = {
            "class": "logging.StreamHandler",
            "stream": sys.stdout,
            "formatter": "standard",
            "level": log_level,
        }
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "filename": log_file,
            "maxBytes": 10 * 1024 * 1024,
            "backupCount": 5,
            "formatter": "json",
            "level": log_level,
        }

    names = list(handlers)
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {"()": JSONFormatter},
            "standard": {
                "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": handlers,
        "loggers": {
            name: {"level": level or log_level, "handlers": names, "propagate": False}
            for name, level in _MANAGED_LOGGERS.items()
        },
        "root": {"level": log_level, "handlers": names},
    })


def get_logger(name: str) -> StructuredLogger:
    """Structured logger under the ``hoarding_app`` namespace (pass ``__name__``)."""
    if name != ROOT_LOGGER_NAME and not name.startswith(ROOT_LOGGER_NAME + "."):
        name = f"{ROOT_LOGGER_NAME}.{name}"
    return StructuredLogger(name)


def log_business_event(
    event_type: str,
    details: Dict[str, Any],
    user_id: Optional[int] = None,
    request_id: Optional[str] = None
) -> None:
    """
    Audit trail entry on the ``hoarding_app.audit`` logger.

    Args:
        event_type: e.g. 'placement_committed', 'report_submitted'
        details: Event fields; they cannot override the actor or request id
        user_id: Acting user, when there is one
        request_id: Correlation id of the triggering request
    """
    context = dict(details)
    context.update(event_type=event_type, user_id=user_id, request_id=request_id)
    get_logger("audit").info(f"Business event: {event_type}", **context)


def log_performance(
    operation: str,
    duration_ms: float,
    additional_data: Optional[Dict[str, Any]] = None
) -> None:
    """Timing line on the ``hoarding_app.performance`` logger."""
    context = dict(additional_data or {})
    context.update(operation=operation, duration_ms=round(duration_ms, 2))
    get_logger("performance").info(f"Performance: {operation}", **context)
