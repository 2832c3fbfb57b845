"""Utilities package for the roster purifier.

This package provides:
- Centralized exception classes (exceptions.py)
- Structured logging utilities (logging.py)
"""

from roster_purifier.utils.exceptions import (
    CellEditError,
    ErrorCode,
    ExportError,
    FileError,
    HTTPStatusMixin,
    ProcessingError,
    RosterError,
    RosterLoadError,
    SessionError,
    UnsupportedFormatError,
    ValidationError,
)
from roster_purifier.utils.logging import (
    LogContext,
    StructuredLogger,
    get_logger,
    get_request_id,
    set_request_id,
)

__all__ = [
    # Exceptions
    "CellEditError",
    "ErrorCode",
    "ExportError",
    "FileError",
    "HTTPStatusMixin",
    "ProcessingError",
    "RosterError",
    "RosterLoadError",
    "SessionError",
    "UnsupportedFormatError",
    "ValidationError",
    # Logging
    "LogContext",
    "StructuredLogger",
    "get_logger",
    "get_request_id",
    "set_request_id",
]
