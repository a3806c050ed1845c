"""
Error hierarchy for PinReel.

Every failure that crosses a module boundary is a ``PinReelError`` subclass
carrying an ``ErrorType``, a stable ``code`` and optional ``details``. The web
layer maps these onto HTTP status codes with ``http_status_for``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class ErrorType(str, Enum):
    """Broad error categories."""

    NETWORK_ERROR = "NETWORK_ERROR"
    PARSE_ERROR = "PARSE_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    DOWNLOAD_ERROR = "DOWNLOAD_ERROR"
    FILE_ERROR = "FILE_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class PinReelError(Exception):
    """Base class for all PinReel errors."""

    error_type: ErrorType = ErrorType.UNKNOWN_ERROR

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details: Dict[str, Any] = details or {}
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.error_type.value,
            "message": self.message,
            "code": self.code,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class NetworkError(PinReelError):
    """Fetch, timeout or connection failure."""

    error_type = ErrorType.NETWORK_ERROR


class ParseError(PinReelError):
    """Malformed page data or no video found after every strategy."""

    error_type = ErrorType.PARSE_ERROR


class ValidationError(PinReelError):
    """Bad or unsupported input, naming the offending field and value."""

    error_type = ErrorType.VALIDATION_ERROR

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Any = None,
        code: str = "VALIDATION_FAILED",
    ) -> None:
        details = {"field": field, "value": value} if field else None
        super().__init__(message, code, details)
        self.field = field
        self.value = value


class DownloadError(PinReelError):
    """The video stream could not be transferred."""

    error_type = ErrorType.DOWNLOAD_ERROR


class FileError(PinReelError):
    """Disk write, permission or space failure."""

    error_type = ErrorType.FILE_ERROR

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        operation: Optional[str] = None,
        code: str = "FILE_OPERATION_FAILED",
    ) -> None:
        super().__init__(message, code, {"file_path": file_path, "operation": operation})
        self.file_path = file_path
        self.operation = operation


# Codes that mean "the page was fetched but held no usable video".
NOT_FOUND_CODES = frozenset({"EXTRACTION_FAILED", "NO_VIDEO_URLS"})


def http_status_for(error: BaseException) -> int:
    """Map an error onto the HTTP status the API answers with."""
    if isinstance(error, ValidationError):
        return 400
    if isinstance(error, ParseError) and error.code in NOT_FOUND_CODES:
        return 404
    if isinstance(error, NetworkError):
        return 408 if error.code == "TIMEOUT" else 503
    return 500
