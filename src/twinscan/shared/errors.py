"""Twinscan Error Handling Module

This module defines the error handling system for Twinscan, providing
structured error classes with context information and user-friendly messages.

The error hierarchy follows these principles:
- One Source of Truth: All error codes are defined in ErrorCode enum
- Structured Context: ErrorContext provides additional information
- User-friendly Messages: Errors can be converted to user-friendly messages
- Proper Exception Chaining: Original exceptions are preserved
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from pathlib import Path
from typing import Any, Union

# Type alias for primitive context values (str, int, float, bool only)
PrimitiveContextValue = Union[str, int, float, bool]

# Default keys to mask in safe_dict
SAFE_DICT_MASK_KEYS: tuple[str, ...] = ()


class ErrorCode(str, Enum):
    """Error codes for Twinscan.

    This enum serves as the single source of truth for all error codes
    used throughout the detection engine.
    """

    # File Access Errors
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    FILE_READ_ERROR = "FILE_READ_ERROR"
    PERMISSION_DENIED = "PERMISSION_DENIED"

    # Validation Errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_PARAMETERS = "INVALID_PARAMETERS"
    INVALID_THRESHOLD = "INVALID_THRESHOLD"
    UNKNOWN_SCAN_MODE = "UNKNOWN_SCAN_MODE"
    INVALID_PRIORITY_ORDER = "INVALID_PRIORITY_ORDER"

    # Detection Errors
    DETECTION_FAILED = "DETECTION_FAILED"

    # Configuration Errors
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    CONFIG_MISSING = "CONFIG_MISSING"
    CONFIG_INVALID = "CONFIG_INVALID"

    # Concurrency Errors
    WORKER_POOL_ERROR = "WORKER_POOL_ERROR"
    OPERATION_CANCELLED = "OPERATION_CANCELLED"


def _coerce_primitives(value: Any | None) -> dict[str, PrimitiveContextValue] | None:
    """Coerce additional_data values to primitives.

    Converts Path, Enum, Decimal to primitive types.

    Args:
        value: Input dictionary or None

    Returns:
        Dictionary with primitive values only, or None

    Raises:
        TypeError: If value is not a dict or contains unconvertible types
    """
    if value is None:
        return None

    if not isinstance(value, dict):
        error_msg = f"additional_data must be dict, got {type(value).__name__}"
        raise TypeError(error_msg)

    coerced: dict[str, PrimitiveContextValue] = {}
    for key, val in value.items():
        if isinstance(val, (str, int, float, bool)):
            coerced[key] = val
        elif isinstance(val, Path):
            coerced[key] = str(val)
        elif isinstance(val, Enum):
            coerced[key] = val.value
        elif isinstance(val, Decimal):
            coerced[key] = float(val)
        else:
            error_msg = (
                f"Cannot coerce {type(val).__name__} to primitive type. "
                f"Only str, int, float, bool, Path, Enum, Decimal are allowed."
            )
            raise TypeError(error_msg)

    return coerced


@dataclass(frozen=True)
class ErrorContextModel:
    """Context information for errors.

    Only primitive types (str, int, float, bool) are allowed in
    additional_data to ensure safe serialization.

    Attributes:
        file_path: Optional file path associated with the error
        operation: Optional operation name that caused the error
        additional_data: Optional dict with primitive values only
    """

    file_path: str | None = None
    operation: str | None = None
    additional_data: dict[str, PrimitiveContextValue] | None = None

    def __post_init__(self) -> None:
        """Post-initialization validation and coercion."""
        if self.additional_data is not None:
            coerced = _coerce_primitives(self.additional_data)
            # Frozen dataclass: internal update goes through object.__setattr__
            object.__setattr__(self, "additional_data", coerced)

    def safe_dict(self, *, mask_keys: tuple[str, ...] | None = None) -> dict[str, Any]:
        """Export context as dict for logging and error reporting.

        Args:
            mask_keys: Fields to exclude from output. Defaults to SAFE_DICT_MASK_KEYS.

        Returns:
            Dictionary with masked fields and guaranteed additional_data key.

        Example:
            >>> context = ErrorContextModel(file_path="/test", operation="hash")
            >>> context.safe_dict()
            {'file_path': '/test', 'operation': 'hash', 'additional_data': {}}
        """
        if mask_keys is None:
            mask_keys = SAFE_DICT_MASK_KEYS

        data: dict[str, Any] = {}
        if self.file_path is not None and "file_path" not in mask_keys:
            data["file_path"] = self.file_path
        if self.operation is not None and "operation" not in mask_keys:
            data["operation"] = self.operation

        # additional_data is always present for consumers
        if self.additional_data is not None and "additional_data" not in mask_keys:
            data["additional_data"] = self.additional_data
        else:
            data["additional_data"] = {}

        return data


ErrorContext = ErrorContextModel


class TwinscanError(Exception):
    """Base exception class for all Twinscan errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """Initialize TwinscanError.

        Args:
            code: Error code from ErrorCode enum
            message: Human-readable error message
            context: Additional context information
            original_error: Original exception that caused this error
        """
        self.code = code
        self.message = message
        self.context = context or ErrorContext()
        self.original_error = original_error

        formatted_message = f"{code.value}: {message}"
        super().__init__(formatted_message)

    def __str__(self) -> str:
        """Return string representation of the error."""
        return f"{self.code.value}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging.

        Returns:
            Dictionary representation of the error with code, message,
            context, and original_error (if present)
        """
        return {
            "code": self.code.value,
            "message": self.message,
            "context": self.context.safe_dict(),
            "original_error": str(self.original_error) if self.original_error else None,
        }


class DomainError(TwinscanError):
    """Domain-specific errors.

    These errors occur when detection rules are violated or an algorithm
    reaches a state it cannot recover from.
    """


class InfrastructureError(TwinscanError):
    """Infrastructure-related errors.

    These errors occur when interacting with external collaborators such
    as the caller's byte-content accessors or the worker pool.
    """


class ApplicationError(TwinscanError):
    """Application-level errors.

    These errors occur at the boundary of the engine, typically related to
    configuration or caller-supplied parameters.
    """


class UnreadableFileError(InfrastructureError):
    """A single file's bytes could not be obtained.

    Recovered per file: the scheduler records it as a FileFailure and the
    file is dropped from digest/signature grouping.
    """


class InvalidParametersError(ApplicationError):
    """Detection parameters are out of domain.

    Raised before any work begins (unknown mode, threshold outside (0, 1],
    empty or malformed priority order).
    """


class OperationCancelledError(TwinscanError):
    """Cooperative cancellation was observed at a checked boundary."""


class DetectionError(DomainError):
    """Internal failure during a detection run."""


def create_unreadable_file_error(
    file_path: str,
    original_error: Exception,
    operation: str = "read_bytes",
) -> UnreadableFileError:
    """Create an UnreadableFileError for a file whose content could not be read.

    Args:
        file_path: Path of the unreadable file
        original_error: The exception raised by the content accessor
        operation: Operation that was being performed

    Returns:
        UnreadableFileError instance
    """
    code = ErrorCode.FILE_READ_ERROR
    if isinstance(original_error, FileNotFoundError):
        code = ErrorCode.FILE_NOT_FOUND
    elif isinstance(original_error, PermissionError):
        code = ErrorCode.PERMISSION_DENIED

    return UnreadableFileError(
        code=code,
        message=f"Cannot read file content: {original_error}",
        context=ErrorContext(file_path=file_path, operation=operation),
        original_error=original_error,
    )


def create_invalid_parameters_error(
    message: str,
    field: str,
    value: Any,
    code: ErrorCode = ErrorCode.INVALID_PARAMETERS,
) -> InvalidParametersError:
    """Create an InvalidParametersError for a rejected request field.

    Args:
        message: Human-readable error message
        field: Name of the offending parameter
        value: Rejected value (stringified into context)
        code: Specific error code

    Returns:
        InvalidParametersError instance
    """
    return InvalidParametersError(
        code=code,
        message=message,
        context=ErrorContext(
            operation="validate_request",
            additional_data={"field": field, "value": str(value)},
        ),
    )


def create_cancelled_error(operation: str, completed: int = 0, total: int = 0) -> OperationCancelledError:
    """Create an OperationCancelledError for the given operation.

    Args:
        operation: Operation that observed the cancellation
        completed: Work units completed before cancellation
        total: Total work units planned

    Returns:
        OperationCancelledError instance
    """
    return OperationCancelledError(
        code=ErrorCode.OPERATION_CANCELLED,
        message=f"Operation '{operation}' cancelled by caller",
        context=ErrorContext(
            operation=operation,
            additional_data={"completed": completed, "total": total},
        ),
    )


__all__ = [
    "ApplicationError",
    "DetectionError",
    "DomainError",
    "ErrorCode",
    "ErrorContext",
    "ErrorContextModel",
    "InfrastructureError",
    "InvalidParametersError",
    "OperationCancelledError",
    "TwinscanError",
    "UnreadableFileError",
    "create_cancelled_error",
    "create_invalid_parameters_error",
    "create_unreadable_file_error",
]
