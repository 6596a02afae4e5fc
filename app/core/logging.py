"""Structured logging configuration for the NABH SOP Engine."""

import logging
import sys
from typing import Any

# Context fields picked up from ``extra=`` when present on a record
CONTEXT_FIELDS = (
    "run_id",
    "chapter_code",
    "objective_code",
    "stage",
    "table",
    "sop_id",
    "provider",
)


class StructuredFormatter(logging.Formatter):
    """key=value structured log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured output."""
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "module": record.module,
            "function": record.funcName,
            "message": record.getMessage(),
        }

        for key in CONTEXT_FIELDS:
            value = getattr(record, key, None)
            if value is not None:
                log_data[key] = value

        if hasattr(record, "extra_data"):
            log_data.update(record.extra_data)

        line = " ".join(f"{k}={v}" for k, v in log_data.items())
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def _level_for_env() -> int:
    try:
        from app.core.config import get_settings

        return logging.DEBUG if get_settings().SOP_ENGINE_ENV == "dev" else logging.INFO
    except Exception:
        # Settings unavailable (missing Supabase env); fall back to INFO
        return logging.INFO


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger writing structured lines to stdout
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)
        logger.setLevel(_level_for_env())
        logger.propagate = False

    return logger


def log_with_context(logger: logging.Logger, level: int, msg: str, **kwargs: Any) -> None:
    """
    Log with additional context fields.

    Known context fields (run_id, chapter_code, ...) become top-level keys,
    anything else is appended as extra data.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        msg: Log message
        **kwargs: Context fields
    """
    extra: dict[str, Any] = {k: kwargs.pop(k) for k in CONTEXT_FIELDS if k in kwargs}
    extra["extra_data"] = kwargs
    logger.log(level, msg, extra=extra)
