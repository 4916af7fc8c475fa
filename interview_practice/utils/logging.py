"""Logging utilities for the Interview Practice Engine.

Every record carries the id of the session being worked on (empty outside a
session), so one session's history can be pulled out of a shared log.
"""

import json
import logging
import logging.handlers
import sys
from contextvars import ContextVar
from datetime import datetime
from pathlib import Path
from typing import Optional

# Session id of the operation in progress
correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", None, None))) | {"message", "correlation_id"}

_NOISY_LOGGERS = ("asyncio", "aiohttp", "aiohttp.access", "aiohttp.client")


class CorrelationIdFilter(logging.Filter):
    """Stamp records with the current session id."""

    def filter(self, record):
        record.correlation_id = correlation_id.get()
        return True


class StructuredFormatter(logging.Formatter):
    """One JSON object per line, including anything passed via ``extra=``."""

    def format(self, record):
        entry = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "session_id": getattr(record, "correlation_id", ""),
            "message": record.getMessage(),
        }
        entry.update({k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS})
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


class HumanReadableFormatter(logging.Formatter):
    """``time | LEVEL | logger | [session] message`` lines for the console."""

    def format(self, record):
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        session = getattr(record, "correlation_id", "")
        prefix = f"[{session}] " if session else ""

        line = f"{timestamp} | {record.levelname:<8} | {record.name:<28} | {prefix}{record.getMessage()}"
        if record.exc_info:
            line += f"\n{self.formatException(record.exc_info)}"
        return line


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    enable_console: bool = True,
    enable_file: bool = False,
    structured: bool = False,
    max_file_size: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5
) -> None:
    """Configure the root logger, replacing any handlers installed earlier.

    Args:
        level: Logging level name; unknown names fall back to INFO.
        log_file: Path of the rotating log file.
        enable_console: Log to stderr, keeping stdout free for command output.
        enable_file: Log to ``log_file``.
        structured: Emit JSON lines instead of human-readable text.
        max_file_size: Rotate the log file after this many bytes.
        backup_count: Rotated files to keep.
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    formatter = StructuredFormatter() if structured else HumanReadableFormatter()
    handlers = []

    if enable_console:
        handlers.append(logging.StreamHandler(sys.stderr))

    if enable_file and log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.handlers.RotatingFileHandler(
            log_file, maxBytes=max_file_size, backupCount=backup_count, encoding="utf-8"
        ))

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.addFilter(CorrelationIdFilter())
        root_logger.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger("startup").debug("Logging configured", extra={
        "log_level": level,
        "log_file": log_file if enable_file else None,
        "structured": structured,
    })


def get_logger(name: str, correlation_id_value: Optional[str] = None) -> logging.Logger:
    """Get a named logger, optionally binding the current session id first."""
    if correlation_id_value:
        correlation_id.set(correlation_id_value)
    return logging.getLogger(name)


def set_correlation_id(correlation_id_value: str) -> None:
    """Bind the session id for the current task."""
    correlation_id.set(correlation_id_value)


def get_correlation_id() -> str:
    """Session id bound to the current task, or an empty string."""
    return correlation_id.get()


def log_performance(operation: str, duration: float, details: dict = None):
    """Log how long an operation took, with optional extra fields."""
    extra = {"operation": operation, "duration_ms": int(duration * 1000)}
    if details:
        extra.update(details)

    get_logger("performance").info(f"{operation} took {duration:.3f}s", extra=extra)


def log_error(error: Exception, context: dict = None, level: str = "ERROR"):
    """Log an exception together with its engine details.

    Entries of ``error.details`` are added with an ``error_`` prefix so they
    cannot collide with the caller's context.
    """
    extra = {"error_type": type(error).__name__, "error_message": str(error)}
    extra.update({f"error_{k}": v for k, v in (getattr(error, "details", None) or {}).items()})
    if context:
        extra.update(context)

    getattr(get_logger("error"), level.lower())(f"{type(error).__name__}: {error}", extra=extra, exc_info=error)
