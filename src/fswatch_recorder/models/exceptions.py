"""
Custom exception classes for the filesystem event recorder.

Provides specific exception types for the startup, runtime and shutdown
failure modes of the event pipeline so callers can tell them apart.
"""

from typing import Any


class BaseError(Exception):
    """
    Base exception class for all recorder errors.

    All custom exceptions in the system should inherit from this base class
    to enable consistent error handling and logging.
    """

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        """
        Initialize the recorder error.

        Args:
            message: Human-readable error description
            error_code: Optional error code for programmatic handling
            context: Optional dictionary with error context information
            cause: Optional underlying exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.context = context or {}
        self.cause = cause

    def __str__(self) -> str:
        """String representation including error code if present."""
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message

    def __repr__(self) -> str:
        """Detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message='{self.message}', "
            f"error_code='{self.error_code}', "
            f"context={self.context})"
        )


class ConfigurationError(BaseError):
    """Raised when there are configuration or settings issues."""

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        expected_type: str | None = None,
        actual_value: Any | None = None,
    ):
        context = {}
        if config_key:
            context["config_key"] = config_key
        if expected_type:
            context["expected_type"] = expected_type
        if actual_value is not None:
            context["actual_value"] = str(actual_value)

        super().__init__(message, error_code="CONFIG_ERROR", context=context)


class WatchSetupError(BaseError):
    """Raised when the recursive directory watch cannot be established."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        operation: str | None = None,
        underlying_error: Exception | None = None,
    ):
        context = {}
        if path:
            context["path"] = path
        if operation:
            context["operation"] = operation

        super().__init__(
            message,
            error_code="WATCH_SETUP_ERROR",
            context=context,
            cause=underlying_error,
        )


class SchemaInitializationError(BaseError):
    """Raised when the event store file or its schema cannot be prepared."""

    def __init__(
        self,
        message: str,
        db_path: str | None = None,
        underlying_error: Exception | None = None,
    ):
        context = {}
        if db_path:
            context["db_path"] = db_path

        super().__init__(message, error_code="SCHEMA_ERROR", context=context, cause=underlying_error)


class PersistenceError(BaseError):
    """Raised when a batch of events cannot be committed."""

    def __init__(
        self,
        message: str,
        db_path: str | None = None,
        record_count: int | None = None,
        underlying_error: Exception | None = None,
    ):
        context = {}
        if db_path:
            context["db_path"] = db_path
        if record_count is not None:
            context["record_count"] = record_count

        super().__init__(
            message,
            error_code="PERSISTENCE_ERROR",
            context=context,
            cause=underlying_error,
        )


class ChannelClosedError(BaseError):
    """Raised on send to, or receive from a drained, closed relay channel."""

    def __init__(self, message: str = "Relay channel is closed", operation: str | None = None):
        context = {}
        if operation:
            context["operation"] = operation

        super().__init__(message, error_code="CHANNEL_CLOSED", context=context)


class ShutdownError(BaseError):
    """Raised when system shutdown fails."""

    def __init__(
        self,
        message: str,
        component: str | None = None,
        shutdown_stage: str | None = None,
        underlying_error: Exception | None = None,
    ):
        context = {}
        if component:
            context["component"] = component
        if shutdown_stage:
            context["shutdown_stage"] = shutdown_stage

        super().__init__(
            message,
            error_code="SHUTDOWN_ERROR",
            context=context,
            cause=underlying_error,
        )
