"""Structured logging utilities for spreadsheet diffing.

This module provides:
- Operation ID tracking using contextvars for correlation across a call
- Structured logging with consistent format and metadata
- Performance metrics logging helpers for decode, encode and diff calls

Usage:
    from spreadsheet_diff.utils.logging import (
        get_logger,
        set_operation_id,
        LogContext,
    )

    logger = get_logger(__name__)

    # Set operation ID for correlation
    set_operation_id("upload-123")

    # Log with context
    with LogContext(file_name="budget.xlsx"):
        logger.info("Decoding workbook")

    # Time a call and log its counters on exit
    with timed_operation(logger, "decode") as metrics:
        metrics.cells_processed += 1
"""

import logging
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

# Context variables for call tracking
_operation_id_var: ContextVar[str | None] = ContextVar("operation_id", default=None)
_extra_context_var: ContextVar[dict[str, Any] | None] = ContextVar(
    "extra_context", default=None
)


def get_operation_id() -> str | None:
    """Get the current operation ID from context.

    Returns:
        The current operation ID or None if not set.
    """
    return _operation_id_var.get()


def set_operation_id(operation_id: str | None) -> None:
    """Set the operation ID in context.

    Args:
        operation_id: The operation ID to set, or None to clear.
    """
    _operation_id_var.set(operation_id)


def get_extra_context() -> dict[str, Any]:
    """Get additional context from context vars.

    Returns:
        Dictionary of extra context values.
    """
    ctx = _extra_context_var.get()
    return ctx if ctx is not None else {}


def set_extra_context(context: dict[str, Any]) -> None:
    """Set additional context in context vars.

    Args:
        context: Dictionary of extra context values.
    """
    _extra_context_var.set(context)


def clear_context() -> None:
    """Clear all context variables."""
    _operation_id_var.set(None)
    _extra_context_var.set(None)


@dataclass
class PerformanceMetrics:
    """Container for counters collected during one codec or diff call.

    Attributes:
        operation: Name of the operation being measured.
        start_time: When the operation started.
        end_time: When the operation ended.
        duration_seconds: Duration in seconds.
        sheets_processed: Number of sheets read or written.
        cells_processed: Number of cells read, written or compared.
        styles_created: Number of distinct style objects materialized.
        style_fallbacks: Number of style attributes that fell back to a default.
        changes_found: Number of change items emitted.
        custom_metrics: Additional custom metrics.
    """

    operation: str
    start_time: datetime = field(default_factory=lambda: datetime.now(UTC))
    end_time: datetime | None = None
    duration_seconds: float = 0.0
    sheets_processed: int = 0
    cells_processed: int = 0
    styles_created: int = 0
    style_fallbacks: int = 0
    changes_found: int = 0
    custom_metrics: dict[str, Any] = field(default_factory=dict)

    def finish(self) -> None:
        """Mark the operation as complete and calculate duration."""
        self.end_time = datetime.now(UTC)
        self.duration_seconds = (self.end_time - self.start_time).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging.

        Returns:
            Dictionary with all non-zero metrics.
        """
        result: dict[str, Any] = {
            "operation": self.operation,
            "duration_seconds": self.duration_seconds,
        }
        if self.sheets_processed > 0:
            result["sheets_processed"] = self.sheets_processed
        if self.cells_processed > 0:
            result["cells_processed"] = self.cells_processed
        if self.styles_created > 0:
            result["styles_created"] = self.styles_created
        if self.style_fallbacks > 0:
            result["style_fallbacks"] = self.style_fallbacks
        if self.changes_found > 0:
            result["changes_found"] = self.changes_found
        if self.custom_metrics:
            result["custom_metrics"] = self.custom_metrics
        return result


class StructuredLogFormatter(logging.Formatter):
    """Log formatter that includes context variables.

    Adds operation_id and any LogContext values to log records when
    available, creating a consistent structured format for all messages.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with context information.

        Args:
            record: The log record to format.

        Returns:
            Formatted log message string.
        """
        prefix_parts = []
        operation_id = get_operation_id()
        if operation_id:
            prefix_parts.append(f"operation_id={operation_id}")

        for key, value in get_extra_context().items():
            prefix_parts.append(f"{key}={value}")

        prefix = f"[{' '.join(prefix_parts)}] " if prefix_parts else ""

        original_msg = record.msg
        record.msg = f"{prefix}{original_msg}"
        result = super().format(record)
        record.msg = original_msg

        return result


class StructuredLogger:
    """Logger wrapper with structured key-value messages.

    Wraps a standard Python logger with additional methods for:
    - Logging with trailing key=value pairs
    - Performance metrics logging
    - Style fallback reporting
    """

    def __init__(self, name: str) -> None:
        """Initialize the structured logger.

        Args:
            name: Logger name (typically __name__ of the module).
        """
        self._logger = logging.getLogger(name)
        self._name = name

    @property
    def logger(self) -> logging.Logger:
        """Access the underlying Python logger."""
        return self._logger

    def _build_message(self, message: str, **kwargs: Any) -> str:
        if not kwargs:
            return message

        parts = [f"{k}={v}" for k, v in kwargs.items()]
        return f"{message} | {', '.join(parts)}"

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log a debug message."""
        if self._logger.isEnabledFor(logging.DEBUG):
            self._logger.debug(self._build_message(message, **kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        """Log an info message."""
        self._logger.info(self._build_message(message, **kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log a warning message."""
        self._logger.warning(self._build_message(message, **kwargs))

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        """Log an error message.

        Args:
            message: Log message.
            exc_info: Whether to include exception info.
            **kwargs: Additional structured data.
        """
        self._logger.error(self._build_message(message, **kwargs), exc_info=exc_info)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log an exception with traceback."""
        self._logger.exception(self._build_message(message, **kwargs))

    def log_performance(self, metrics: PerformanceMetrics) -> None:
        """Log performance metrics.

        Args:
            metrics: Performance metrics to log.
        """
        self.info(f"Performance: {metrics.operation}", **metrics.to_dict())

    def log_style_fallback(
        self,
        attribute: str,
        value: Any,
        default: Any,
        location: str | None = None,
    ) -> None:
        """Log a style attribute that could not be mapped and was defaulted.

        Args:
            attribute: Style attribute name.
            value: Raw value that was rejected.
            default: Value substituted for it.
            location: Optional cell or sheet reference.
        """
        kwargs: dict[str, Any] = {
            "attribute": attribute,
            "value": repr(value),
            "default": default,
        }
        if location:
            kwargs["location"] = location
        self.debug("Style value fell back to default", **kwargs)


class LogContext:
    """Context manager for adding temporary context to logs.

    Usage:
        with LogContext(operation_id="123", file_name="budget.xlsx"):
            logger.info("Decoding...")  # Will include operation_id and file_name
    """

    def __init__(self, **kwargs: Any) -> None:
        """Initialize with context values.

        Args:
            **kwargs: Key-value pairs to add to log context.
        """
        self._new_context = kwargs
        self._old_context: dict[str, Any] = {}
        self._old_operation_id: str | None = None

    def __enter__(self) -> "LogContext":
        """Enter the context, saving old values and setting new ones."""
        self._old_context = get_extra_context().copy()
        self._old_operation_id = get_operation_id()

        new_context = dict(self._new_context)
        operation_id = new_context.pop("operation_id", None)
        if operation_id is not None:
            set_operation_id(operation_id)

        merged = self._old_context.copy()
        merged.update(new_context)
        set_extra_context(merged)

        return self

    def __exit__(self, *args: Any) -> None:
        """Exit the context, restoring old values."""
        set_extra_context(self._old_context)
        set_operation_id(self._old_operation_id)


@contextmanager
def timed_operation(
    logger: StructuredLogger,
    operation: str,
) -> Generator[PerformanceMetrics, None, None]:
    """Context manager for timing operations.

    Usage:
        with timed_operation(logger, "encode") as metrics:
            metrics.cells_processed = 10

        # Automatically logs: "Performance: encode | duration_seconds=..."

    Args:
        logger: Logger to use for output.
        operation: Name of the operation.

    Yields:
        PerformanceMetrics instance for tracking.
    """
    metrics = PerformanceMetrics(operation=operation)
    try:
        yield metrics
    finally:
        metrics.finish()
        logger.log_performance(metrics)


def configure_logging(
    level: int | str = logging.INFO,
    format_string: str | None = None,
    use_structured_formatter: bool = True,
) -> None:
    """Configure logging for applications embedding the package.

    Args:
        level: Log level (int or string like "INFO").
        format_string: Custom format string (uses default if None).
        use_structured_formatter: Whether to use the structured formatter.
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper())

    if format_string is None:
        format_string = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setLevel(level)

    formatter: logging.Formatter
    if use_structured_formatter:
        formatter = StructuredLogFormatter(format_string)
    else:
        formatter = logging.Formatter(format_string)

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger for a module.

    Args:
        name: Logger name (typically __name__).

    Returns:
        StructuredLogger instance.

    Example:
        logger = get_logger(__name__)
        logger.info("Decoded workbook", sheets=2, cells=140)
    """
    return StructuredLogger(name)
