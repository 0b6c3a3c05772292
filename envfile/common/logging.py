"""Centralized logging setup for envfile.

Provides:
  - a uniform log format
  - optional file logging with rotation
  - a rich console handler
  - lightweight context binding (source/line)

Library modules only call `get_logger`; `setup_logging` is for entry points.
"""

from __future__ import annotations

import logging
import logging.config
from pathlib import Path
from typing import Dict, Optional

DEFAULT_EXTRA_KEYS = {
    "source": "-",
    "line": "-",
}

DEFAULT_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(source)s:%(line)s | %(message)s"
CONSOLE_LOG_FORMAT = "[envfile] %(source)s:%(line)s %(message)s"

ROOT_LOGGER_NAME = "envfile"


class _ContextFilter(logging.Filter):
    """Ensure all log records contain the expected extra fields."""

    def filter(self, record: logging.LogRecord) -> bool:  # noqa: D401
        for key, default in DEFAULT_EXTRA_KEYS.items():
            if not hasattr(record, key):
                setattr(record, key, default)
        return True


class ContextLoggerAdapter(logging.LoggerAdapter):
    """A LoggerAdapter that supports `.bind()` for adding context fields."""

    def bind(self, **extra: object) -> "ContextLoggerAdapter":
        merged = {**self.extra, **extra}
        return ContextLoggerAdapter(self.logger, merged)

    def process(self, msg, kwargs):  # noqa: D401
        extra = kwargs.setdefault("extra", {})
        if self.extra:
            extra = {**self.extra, **extra}
        kwargs["extra"] = extra
        return msg, kwargs


def setup_logging(
    *,
    level: str = "INFO",
    log_dir: Optional[Path] = None,
    log_filename: str = "envfile.log",
    max_bytes: int = 1024 * 1024,
    backup_count: int = 3,
    console: bool = True,
) -> None:
    """Initialize global logging.

    Args:
        level: Logging level (default: INFO).
        log_dir: Directory for a rotating log file; no file logging when None.
        log_filename: Log file name inside `log_dir`.
        max_bytes: Max size per log file before rotating.
        backup_count: Number of rotated log files to keep.
        console: Whether to also log to stderr through rich.
    """

    handlers: Dict[str, Dict[str, object]] = {}

    if log_dir is not None:
        log_dir.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": level,
            "formatter": "default",
            "filename": str(log_dir / log_filename),
            "maxBytes": max_bytes,
            "backupCount": backup_count,
            "encoding": "utf-8",
            "filters": ["context"],
        }

    if console:
        handlers["console"] = {
            "class": "rich.logging.RichHandler",
            "level": level,
            "formatter": "console",
            "filters": ["context"],
            "show_path": False,
            "markup": False,
        }

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {
            "context": {
                "()": _ContextFilter,
            }
        },
        "formatters": {
            "default": {
                "format": DEFAULT_LOG_FORMAT,
            },
            "console": {
                "format": CONSOLE_LOG_FORMAT,
            },
        },
        "handlers": handlers,
        "root": {
            "level": level,
            "handlers": list(handlers.keys()),
        },
    }

    logging.config.dictConfig(logging_config)


def get_logger(name: Optional[str] = None, **context: object) -> ContextLoggerAdapter:
    """Get a logger with context binding.

    Args:
        name: Logger name (default: the package logger).
        context: Extra fields to bind to every log record.
    """

    base_logger = logging.getLogger(name or ROOT_LOGGER_NAME)
    return ContextLoggerAdapter(base_logger, context)
