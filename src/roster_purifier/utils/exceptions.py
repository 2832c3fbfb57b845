"""Centralized exception classes for the roster purifier.

This module provides a hierarchy of custom exceptions with error codes,
HTTP status code mapping, and structured error details for consistent
error handling throughout the application.

Exception Hierarchy:
    RosterError (base)
    ├── FileError
    │   ├── RosterFileNotFoundError
    │   ├── FileTooLargeError
    │   ├── UnsupportedFormatError
    │   └── RosterLoadError
    ├── ExportError
    ├── ProcessingError
    ├── SessionError
    │   ├── SessionNotFoundError
    │   └── SessionExpiredError
    └── ValidationError
        └── CellEditError

Error Codes:
    All errors have a unique error code (e.g., "E1001") that can be used
    for programmatic error handling and documentation.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Enumeration of all error codes used in the application.

    Error codes are grouped by category:
    - E1xxx: File/workbook errors
    - E2xxx: Input validation errors
    - E3xxx: Review session errors
    - E4xxx: Pipeline outcome errors
    - E9xxx: Internal/unexpected errors
    """

    # File errors (E1xxx)
    FILE_NOT_FOUND = "E1001"
    FILE_TOO_LARGE = "E1002"
    UNSUPPORTED_FORMAT = "E1003"
    FILE_READ_ERROR = "E1004"
    FILE_WRITE_ERROR = "E1005"

    # Validation errors (E2xxx)
    INVALID_INPUT = "E2001"
    INVALID_CELL_EDIT = "E2002"

    # Session errors (E3xxx)
    SESSION_NOT_FOUND = "E3001"
    SESSION_EXPIRED = "E3002"

    # Pipeline outcome errors (E4xxx)
    NO_ROSTER_TABS = "E4001"
    NO_MAJORITY_MONTH = "E4002"
    EMPTY_AFTER_CLEANING = "E4003"

    # Internal errors (E9xxx)
    INTERNAL_ERROR = "E9001"


class HTTPStatusMixin:
    """Mixin that provides HTTP status code for exceptions.

    Subclasses should set the `http_status` class attribute.
    """

    http_status: int = 500

    def get_http_status(self) -> int:
        """Get the HTTP status code for this exception.

        Returns:
            HTTP status code appropriate for this error.
        """
        return self.http_status


class RosterError(Exception, HTTPStatusMixin):
    """Base exception for all roster purifier errors.

    Attributes:
        message: Human-readable error message.
        error_code: Unique error code from ErrorCode enum.
        details: Optional dictionary with additional error details.
        http_status: HTTP status code for API responses (default 500).
    """

    http_status: int = 500

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
        """Convert the exception to a dictionary for API responses.

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
# File Errors (E1xxx)
# =============================================================================


class FileError(RosterError):
    """Base class for file-related errors."""

    http_status: int = 400

    def __init__(
        self,
        message: str,
        error_code: ErrorCode = ErrorCode.FILE_READ_ERROR,
        filename: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with file name information.

        Args:
            message: Error message.
            error_code: Error code.
            filename: Name or path of the problematic file.
            details: Additional details.
        """
        details = details or {}
        if filename:
            details["filename"] = filename
        super().__init__(message, error_code, details)
        self.filename = filename


class RosterFileNotFoundError(FileError):
    """Raised when an input workbook is not found on disk."""

    http_status: int = 404

    def __init__(
        self,
        filename: str,
        message: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        message = message or f"File not found: {filename}"
        super().__init__(
            message=message,
            error_code=ErrorCode.FILE_NOT_FOUND,
            filename=filename,
            details=details,
        )


class FileTooLargeError(FileError):
    """Raised when an upload exceeds the maximum allowed size."""

    http_status: int = 413

    def __init__(
        self,
        file_size: int,
        max_size: int,
        filename: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with size information.

        Args:
            file_size: Actual file size in bytes.
            max_size: Maximum allowed size in bytes.
            filename: Optional file name.
            details: Additional details.
        """
        details = details or {}
        details["file_size_bytes"] = file_size
        details["max_size_bytes"] = max_size
        message = (
            f"File size ({file_size} bytes) exceeds maximum "
            f"allowed size ({max_size} bytes)"
        )
        super().__init__(
            message=message,
            error_code=ErrorCode.FILE_TOO_LARGE,
            filename=filename,
            details=details,
        )
        self.file_size = file_size
        self.max_size = max_size


class UnsupportedFormatError(FileError):
    """Raised when a file extension is not a supported spreadsheet format."""

    def __init__(
        self,
        message: str,
        extension: str | None = None,
        filename: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if extension:
            details["extension"] = extension
        super().__init__(
            message=message,
            error_code=ErrorCode.UNSUPPORTED_FORMAT,
            filename=filename,
            details=details,
        )
        self.extension = extension


class RosterLoadError(FileError):
    """Raised when workbook or CSV bytes cannot be decoded.

    Load failures are fatal for the file and are never retried.
    """

    def __init__(
        self,
        message: str,
        filename: str | None = None,
        cause: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the decoding failure.

        Args:
            message: Error message.
            filename: Name of the file that failed to load.
            cause: Short description of the underlying codec error.
            details: Additional details.
        """
        details = details or {}
        if cause:
            details["cause"] = cause
        super().__init__(
            message=message,
            error_code=ErrorCode.FILE_READ_ERROR,
            filename=filename,
            details=details,
        )


class ExportError(RosterError):
    """Raised when the processed workbook cannot be written."""

    http_status: int = 500

    def __init__(
        self,
        message: str,
        filename: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if filename:
            details["filename"] = filename
        super().__init__(message, ErrorCode.FILE_WRITE_ERROR, details)


# =============================================================================
# Pipeline Outcome Errors (E4xxx)
# =============================================================================


class ProcessingError(RosterError):
    """Raised when the pipeline finishes without a reviewable roster.

    The pipeline itself reports these outcomes as statuses; this exception
    is how the API surfaces them to clients.
    """

    http_status: int = 422

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with the pipeline status.

        Args:
            message: User-facing explanation.
            error_code: One of the E4xxx codes.
            status: Pipeline status value.
            details: Additional details.
        """
        details = details or {}
        if status:
            details["status"] = status
        super().__init__(message, error_code, details)
        self.status = status


# =============================================================================
# Session Errors (E3xxx)
# =============================================================================


class SessionError(RosterError):
    """Base class for review session errors."""

    http_status: int = 400

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        session_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if session_id:
            details["session_id"] = session_id
        super().__init__(message, error_code, details)
        self.session_id = session_id


class SessionNotFoundError(SessionError):
    """Raised when a review session does not exist."""

    http_status: int = 404

    def __init__(self, session_id: str, message: str | None = None) -> None:
        message = message or f"Review session not found: {session_id}"
        super().__init__(
            message=message,
            error_code=ErrorCode.SESSION_NOT_FOUND,
            session_id=session_id,
        )


class SessionExpiredError(SessionError):
    """Raised when a review session has outlived its TTL."""

    http_status: int = 410

    def __init__(
        self,
        session_id: str,
        ttl_minutes: int | None = None,
        message: str | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if ttl_minutes:
            details["ttl_minutes"] = ttl_minutes
        message = message or f"Review session has expired: {session_id}"
        super().__init__(
            message=message,
            error_code=ErrorCode.SESSION_EXPIRED,
            session_id=session_id,
            details=details,
        )


# =============================================================================
# Validation Errors (E2xxx)
# =============================================================================


class ValidationError(RosterError):
    """General validation error for input data."""

    http_status: int = 400

    def __init__(
        self,
        message: str,
        field: str | None = None,
        errors: list[str] | None = None,
        error_code: ErrorCode = ErrorCode.INVALID_INPUT,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Initialize with validation details.

        Args:
            message: Main error message.
            field: Field that failed validation.
            errors: List of validation errors.
            error_code: Error code.
            details: Additional details.
        """
        details = details or {}
        if field:
            details["field"] = field
        if errors:
            details["validation_errors"] = errors
        super().__init__(message=message, error_code=error_code, details=details)


class CellEditError(ValidationError):
    """Raised when a review edit targets a cell outside the roster."""

    def __init__(
        self,
        message: str,
        sheet: str | None = None,
        row: int | None = None,
        column: int | None = None,
    ) -> None:
        details: dict[str, Any] = {}
        if sheet is not None:
            details["sheet"] = sheet
        if row is not None:
            details["row"] = row
        if column is not None:
            details["column"] = column
        super().__init__(
            message=message,
            error_code=ErrorCode.INVALID_CELL_EDIT,
            details=details,
        )
