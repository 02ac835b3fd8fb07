"""Centralized exception classes for spreadsheet diffing.

This module provides a hierarchy of custom exceptions with error codes
and structured error details for consistent error handling across the
codecs and the diff engine.

Exception Hierarchy:
    SpreadsheetDiffError (base)
    ├── FormatError
    ├── SafetyGuardError
    └── UnsupportedStyleValue (non-fatal, always recovered locally)

Error Codes:
    All errors have a unique error code (e.g., "E1001") that can be used
    for programmatic error handling and documentation.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Enumeration of all error codes used in the package.

    Error codes are grouped by category:
    - E1xxx: Spreadsheet/canonical document format errors
    - E2xxx: Input safety errors
    - E3xxx: Style vocabulary errors
    - E9xxx: Internal/unexpected errors
    """

    # Format errors (E1xxx)
    INVALID_SPREADSHEET = "E1001"
    INVALID_CANONICAL_DOCUMENT = "E1002"
    SPREADSHEET_WRITE_FAILED = "E1003"

    # Safety errors (E2xxx)
    INFLATE_RATIO_EXCEEDED = "E2001"
    ENTRY_TOO_LARGE = "E2002"

    # Style errors (E3xxx)
    UNSUPPORTED_STYLE_VALUE = "E3001"

    # Internal errors (E9xxx)
    INTERNAL_ERROR = "E9001"


class SpreadsheetDiffError(Exception):
    """Base exception for all spreadsheet diff errors.

    All custom exceptions in the package inherit from this class.
    It provides:
    - Unique error codes for programmatic handling
    - Structured error details for logging and debugging

    Attributes:
        message: Human-readable error message.
        error_code: Unique error code from ErrorCode enum.
        details: Optional dictionary with additional error details.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            error_code: Error code from ErrorCode enum.
            details: Optional additional details about the error.
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert the exception to a dictionary for callers that report it.

        Returns:
            Dictionary with error information.
        """
        result: dict[str, Any] = {
            "error_code": self.error_code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result

    def __str__(self) -> str:
        """Return string representation with error code."""
        return f"[{self.error_code.value}] {self.message}"


# =============================================================================
# Format Errors (E1xxx)
# =============================================================================


class FormatError(SpreadsheetDiffError):
    """Raised when input cannot be read as a spreadsheet or canonical document.

    Always fatal for the whole call: no partial Document is returned.
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.INVALID_SPREADSHEET,
        source: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the name of the offending input.

        Args:
            message: Error message.
            error_code: Error code.
            source: Optional name of the file or blob being read.
            details: Additional details.
        """
        details = details or {}
        if source:
            details["source"] = source
        super().__init__(message, error_code, details)
        self.source = source


# =============================================================================
# Safety Errors (E2xxx)
# =============================================================================


class SafetyGuardError(SpreadsheetDiffError):
    """Raised when an archive looks like a decompression bomb."""

    def __init__(
        self,
        message: str,
        entry_name: str,
        compressed_size: int,
        uncompressed_size: int,
        error_code: ErrorCode = ErrorCode.INFLATE_RATIO_EXCEEDED,
        threshold: float | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the sizes of the rejected entry.

        Args:
            message: Error message.
            entry_name: Archive member that failed the check.
            compressed_size: Compressed size in bytes.
            uncompressed_size: Declared uncompressed size in bytes.
            error_code: Error code.
            threshold: The limit that was violated.
            details: Additional details.
        """
        details = details or {}
        details["entry_name"] = entry_name
        details["compressed_size_bytes"] = compressed_size
        details["uncompressed_size_bytes"] = uncompressed_size
        if threshold is not None:
            details["threshold"] = threshold
        super().__init__(message, error_code, details)
        self.entry_name = entry_name
        self.compressed_size = compressed_size
        self.uncompressed_size = uncompressed_size
        self.threshold = threshold

    @property
    def ratio(self) -> float:
        """Compressed-to-uncompressed ratio of the rejected entry."""
        if self.uncompressed_size <= 0:
            return 1.0
        return self.compressed_size / self.uncompressed_size


# =============================================================================
# Style Errors (E3xxx)
# =============================================================================


class UnsupportedStyleValue(SpreadsheetDiffError):
    """Raised by strict vocabulary parsers for unknown style tokens.

    Never propagated out of a codec or diff call: the tolerant wrappers
    catch it and substitute the default token.
    """

    def __init__(
        self,
        attribute: str,
        value: Any,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the attribute and the rejected value.

        Args:
            attribute: Style attribute name (e.g. "alignment").
            value: The raw value that could not be mapped.
            details: Additional details.
        """
        details = details or {}
        details["attribute"] = attribute
        details["value"] = repr(value)
        super().__init__(
            f"Unsupported {attribute} value: {value!r}",
            ErrorCode.UNSUPPORTED_STYLE_VALUE,
            details,
        )
        self.attribute = attribute
        self.value = value
