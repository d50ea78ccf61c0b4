"""
Logging Configuration Module

Configures the standard ``logging`` module for the service:

- JSONFormatter: one JSON object per log line for log aggregation
- StandardFormatter: human-readable lines for local development
- setup_logging: root logger, Uvicorn loggers and third-party verbosity
- get_logger: module logger factory

Usage:
    from app.utils.logger import get_logger, setup_logging

    setup_logging(log_level="INFO", json_logs=False)
    logger = get_logger(__name__)
    logger.info("Application started")
"""

import json
import logging
import sys
import traceback

from datetime import datetime, timezone
from typing import Any


# Log level mapping from string to logging constants
LOG_LEVEL_MAP: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Third-party loggers quieted to the third-party level
THIRD_PARTY_LOGGERS: list[str] = [
    "urllib3",
    "requests",
    "charset_normalizer",
    "httpx",
    "httpcore",
    "redis",
    "asyncio",
]

UVICORN_LOGGERS: tuple[str, ...] = ("uvicorn", "uvicorn.access", "uvicorn.error")


class JSONFormatter(logging.Formatter):
    """
    Formats log records as compact JSON objects.

    Example output:
        {"timestamp":"2025-01-15T10:30:45.123456+00:00","level":"INFO",
         "logger":"app.services.metadata_service","message":"Parsed ..."}
    """

    # Standard LogRecord attributes that are not copied into "extra"
    RESERVED_ATTRS: frozenset[str] = frozenset(
        {
            "args",
            "asctime",
            "created",
            "exc_info",
            "exc_text",
            "filename",
            "funcName",
            "levelname",
            "levelno",
            "lineno",
            "message",
            "module",
            "msecs",
            "msg",
            "name",
            "pathname",
            "process",
            "processName",
            "relativeCreated",
            "stack_info",
            "thread",
            "threadName",
            "taskName",
        }
    )

    def __init__(self, include_source_location: bool = False) -> None:
        super().__init__()
        self.include_source_location = include_source_location

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(
                timespec="microseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_source_location:
            log_entry["source"] = {
                "filename": record.filename,
                "lineno": record.lineno,
                "function": record.funcName,
            }

        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            log_entry["exception"] = {
                "type": exc_type.__name__ if exc_type else "Unknown",
                "message": str(exc_value) if exc_value else "",
                "traceback": "".join(traceback.format_exception(*record.exc_info)),
            }

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if not key.startswith("_") and key not in self.RESERVED_ATTRS
        }
        if extra:
            log_entry["extra"] = extra

        return json.dumps(log_entry, default=str, ensure_ascii=False, separators=(",", ":"))


class StandardFormatter(logging.Formatter):
    """Plain text formatter: ``[TIMESTAMP] LEVEL logger_name: message``."""

    DEFAULT_FORMAT: str = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"
    DEFAULT_DATE_FORMAT: str = "%Y-%m-%d %H:%M:%S"

    def __init__(self, fmt: str | None = None, datefmt: str | None = None) -> None:
        super().__init__(
            fmt=fmt or self.DEFAULT_FORMAT,
            datefmt=datefmt or self.DEFAULT_DATE_FORMAT,
        )


def get_log_level_from_string(level_str: str) -> int:
    """Map a level name such as ``"info"`` to its logging constant."""
    return LOG_LEVEL_MAP.get(level_str.upper(), logging.INFO)


def _build_formatter(json_logs: bool, level: int) -> logging.Formatter:
    if json_logs:
        return JSONFormatter(include_source_location=level <= logging.DEBUG)
    return StandardFormatter()


def _configure_uvicorn_logging(formatter: logging.Formatter, level: int) -> None:
    """Route Uvicorn's loggers through the application formatter."""
    for name in UVICORN_LOGGERS:
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.setLevel(level)
        uvicorn_logger.propagate = False
        uvicorn_logger.handlers.clear()
        stream = sys.stderr if name == "uvicorn.error" else sys.stdout
        handler = logging.StreamHandler(stream)
        handler.setFormatter(formatter)
        uvicorn_logger.addHandler(handler)


def _configure_third_party_loggers(level: int) -> None:
    for logger_name in THIRD_PARTY_LOGGERS:
        logging.getLogger(logger_name).setLevel(level)


def setup_logging(
    log_level: str = "INFO",
    json_logs: bool = False,
    third_party_level: str = "WARNING",
) -> None:
    """
    Configure application-wide logging.

    Called once at startup from the FastAPI lifespan. Replaces any handlers
    already attached to the root logger.

    Args:
        log_level: Application log level name.
        json_logs: Emit JSON lines instead of plain text.
        third_party_level: Level applied to noisy library loggers.
    """
    level = get_log_level_from_string(log_level)
    formatter = _build_formatter(json_logs, level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    _configure_uvicorn_logging(formatter, level)
    _configure_third_party_loggers(get_log_level_from_string(third_party_level))

    logging.getLogger(__name__).info(
        "Logging configured: level=%s, json=%s", logging.getLevelName(level), json_logs
    )


def get_logger(name: str, level: str | None = None) -> logging.Logger:
    """
    Return the logger for ``name``, optionally setting its level.

    Handlers come from ``setup_logging`` via the root logger.
    """
    logger = logging.getLogger(name)
    if level is not None:
        logger.setLevel(get_log_level_from_string(level))
    return logger


__all__ = [
    "JSONFormatter",
    "StandardFormatter",
    "get_log_level_from_string",
    "get_logger",
    "setup_logging",
]
