"""Utilities package for spreadsheet diffing.

This package provides:
- Centralized exception classes (exceptions.py)
- Structured logging utilities (logging.py)
"""

from spreadsheet_diff.utils.exceptions import (
    ErrorCode,
    FormatError,
    SafetyGuardError,
    SpreadsheetDiffError,
    UnsupportedStyleValue,
)
from spreadsheet_diff.utils.logging import (
    LogContext,
    StructuredLogger,
    get_logger,
    get_operation_id,
    set_operation_id,
    timed_operation,
)

__all__ = [
    # Exceptions
    "ErrorCode",
    "FormatError",
    "SafetyGuardError",
    "SpreadsheetDiffError",
    "UnsupportedStyleValue",
    # Logging
    "LogContext",
    "StructuredLogger",
    "get_logger",
    "get_operation_id",
    "set_operation_id",
    "timed_operation",
]
