"""Uniform result envelope for the persistence gateway."""

import logging
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable, Generic, TypeVar

from pydantic import BaseModel

from app.core.logging import get_logger, log_with_context

logger = get_logger(__name__)

T = TypeVar("T")


class GatewayResult(BaseModel, Generic[T]):
    """Either ``success=True`` with ``data`` or ``success=False`` with ``error``."""

    success: bool
    data: T | None = None
    error: str | None = None

    @classmethod
    def ok(cls, data: Any = None) -> "GatewayResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str) -> "GatewayResult":
        return cls(success=False, error=error or "Unknown error")


def error_message(exc: Exception) -> str:
    """Human-readable message from a PostgREST/Storage/validation error."""
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc) or exc.__class__.__name__


def gateway_call(action: str, table: str) -> Callable:
    """Catch any backend failure of a gateway function as a failed result.

    Args:
        action: Description used in the log line ("loading SOPs")
        table: Table or bucket the function talks to
    """

    def decorator(func: Callable[..., GatewayResult]) -> Callable[..., GatewayResult]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> GatewayResult:
            try:
                return func(*args, **kwargs)
            except Exception as e:
                log_with_context(
                    logger, logging.ERROR, f"Error {action}: {e}", table=table, operation=func.__name__
                )
                return GatewayResult.fail(error_message(e))

        return wrapper

    return decorator


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def contains_pattern(term: str) -> str:
    """ILIKE pattern matching ``term`` literally anywhere in the column."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"
