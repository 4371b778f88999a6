"""
Structured logging for Twinscan.

Modules log through ``logging.getLogger(__name__)``; the helpers below
attach operation names, durations and error context as record extras.
Nothing is configured at import time: a caller opts in with
``configure_logging``, which renders to a rich console or to JSON lines.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from rich.console import Console
from rich.logging import RichHandler
from rich.theme import Theme

from twinscan.shared.errors import ErrorContext, TwinscanError

if TYPE_CHECKING:
    from twinscan.config.models.app_settings import LoggingSettings

# Record extras copied into JSON output when present
_EXTRA_FIELDS = ("error_code", "operation", "context", "duration_ms", "result_info")

_CONSOLE_THEME = Theme(
    {
        "logging.level.warning": "yellow",
        "logging.level.error": "red bold",
        "log.path": "dim blue",
    }
)


class StructuredFormatter(logging.Formatter):
    """Renders a record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in _EXTRA_FIELDS:
            if hasattr(record, name):
                entry[name] = getattr(record, name)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def configure_logging(
    settings: LoggingSettings | None = None,
    name: str = "twinscan",
) -> logging.Logger:
    """Install handlers on the ``name`` logger from logging settings.

    The console handler is a themed RichHandler, or JSON on stderr when
    ``use_rich_console`` is off. ``settings.file`` adds a JSON file handler.
    Calling again replaces the handlers installed before.

    Args:
        settings: Logging section of Settings; defaults when None.
        name: Logger to configure.

    Returns:
        The configured logger, which no longer propagates to the root.

    Example:
        >>> logger = configure_logging(Settings().logging)
        >>> logger.name
        'twinscan'
    """
    level = getattr(logging, settings.level) if settings is not None else logging.INFO
    use_rich = settings.use_rich_console if settings is not None else True
    log_file = settings.file if settings is not None else None

    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(level)

    console: logging.Handler
    if use_rich:
        console = RichHandler(
            console=Console(theme=_CONSOLE_THEME, stderr=True),
            markup=False,
            rich_tracebacks=True,
            log_time_format="[%H:%M:%S]",
        )
    else:
        console = logging.StreamHandler()
        console.setFormatter(StructuredFormatter())
    logger.addHandler(console)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(StructuredFormatter())
        logger.addHandler(file_handler)

    logger.propagate = False
    return logger


def _context_to_dict(context: dict[str, Any] | ErrorContext | None) -> dict[str, Any]:
    if context is None:
        return {}
    if isinstance(context, ErrorContext):
        return context.safe_dict()
    return dict(context)


def log_operation_error(
    logger: logging.Logger,
    error: TwinscanError,
    operation: str | None = None,
    context: dict[str, Any] | ErrorContext | None = None,
) -> None:
    """
    Write a structured error log for a TwinscanError.

    Args:
        logger: Logger instance
        error: TwinscanError to record
        operation: Operation name (optional)
        context: Extra context merged over the error's own context
    """
    context_dict: dict[str, Any] = {}

    if error.context:
        context_dict.update(error.context.safe_dict())

    context_dict.update(_context_to_dict(context))

    logger.error(
        error.message,
        extra={
            "error_code": error.code.name,
            "context": context_dict,
            "operation": operation or error.context.operation,
        },
        exc_info=error.original_error is not None,
    )


def log_operation_success(
    logger: logging.Logger,
    operation: str,
    duration_ms: float,
    result_info: dict[str, Any] | None = None,
    context: dict[str, Any] | ErrorContext | None = None,
) -> None:
    """
    Write an info log for a completed operation.

    Args:
        logger: Logger instance
        operation: Operation name
        duration_ms: Duration in milliseconds
        result_info: Result details (optional)
        context: Context information (optional)
    """
    logger.debug(
        "Operation '%s' completed successfully",
        operation,
        extra={
            "operation": operation,
            "duration_ms": duration_ms,
            "result_info": result_info or {},
            "context": _context_to_dict(context),
        },
    )


def log_operation_start(
    logger: logging.Logger,
    operation: str,
    context: dict[str, Any] | None = None,
) -> None:
    """
    Write a log marking the start of an operation.

    Args:
        logger: Logger instance
        operation: Operation name
        context: Context information (optional)
    """
    logger.debug(
        "Starting operation '%s'",
        operation,
        extra={
            "operation": operation,
            "context": context or {},
        },
    )


def log_validation_error(
    logger: logging.Logger,
    field: str,
    value: Any,
    reason: str,
    context: dict[str, Any] | None = None,
) -> None:
    """
    Write a warning for a rejected parameter.

    Args:
        logger: Logger instance
        field: Name of the rejected field
        value: Rejected value
        reason: Why it was rejected
        context: Context information (optional)
    """
    validation_context = {
        "field": field,
        "value": str(value),
        "reason": reason,
    }

    if context:
        validation_context.update(context)

    logger.warning(
        "Validation failed for field '%s': %s",
        field,
        reason,
        extra={
            "error_code": "VALIDATION_ERROR",
            "context": validation_context,
            "operation": "validation",
        },
    )


def log_file_failure(
    logger: logging.Logger,
    error: TwinscanError,
    file_name: str,
) -> None:
    """
    Write a warning for a per-file failure that was recovered locally.

    Args:
        logger: Logger instance
        error: The recovered error
        file_name: Name of the affected file
    """
    logger.warning(
        "Skipping unreadable file %s: %s",
        file_name,
        error.message,
        extra={
            "error_code": error.code.name,
            "operation": "compute_artifacts",
            "context": error.context.safe_dict(),
        },
    )


__all__ = [
    "StructuredFormatter",
    "configure_logging",
    "log_file_failure",
    "log_operation_error",
    "log_operation_start",
    "log_operation_success",
    "log_validation_error",
]
