"""Error handling utilities."""

from enum import Enum
from typing import Optional, Any, Dict
import logging


logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Error code enumeration."""

    # File errors
    FILE_NOT_FOUND = "FILE_NOT_FOUND"
    FILE_SIZE_EXCEEDED = "FILE_SIZE_EXCEEDED"
    INVALID_FILE_FORMAT = "INVALID_FILE_FORMAT"
    FILE_SAVE_FAILED = "FILE_SAVE_FAILED"
    FILE_READ_FAILED = "FILE_READ_FAILED"
    FILE_ACCESS_CANCELLED = "FILE_ACCESS_CANCELLED"

    # Document errors
    UNSAVED_CHANGES = "UNSAVED_CHANGES"
    NO_RECOVERY_DRAFT = "NO_RECOVERY_DRAFT"

    # Data validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"

    # Resource errors
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"

    # Processing errors
    EXPORT_FAILED = "EXPORT_FAILED"

    # Server errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


ERROR_MESSAGES: Dict[ErrorCode, str] = {
    # File errors
    ErrorCode.FILE_NOT_FOUND: "File not found",
    ErrorCode.FILE_SIZE_EXCEEDED: "File exceeds the maximum allowed size",
    ErrorCode.INVALID_FILE_FORMAT: "Invalid file format, expected an FF&E budget document",
    ErrorCode.FILE_SAVE_FAILED: "Failed to save document. Please try again.",
    ErrorCode.FILE_READ_FAILED: "Failed to open document",
    ErrorCode.FILE_ACCESS_CANCELLED: "File operation cancelled",

    # Document errors
    ErrorCode.UNSAVED_CHANGES: "You have unsaved changes. Confirm to discard them.",
    ErrorCode.NO_RECOVERY_DRAFT: "No recoverable draft found",

    # Data validation errors
    ErrorCode.VALIDATION_ERROR: "Validation failed",
    ErrorCode.INVALID_REQUEST: "Invalid request",

    # Resource errors
    ErrorCode.RESOURCE_NOT_FOUND: "Requested resource not found",

    # Processing errors
    ErrorCode.EXPORT_FAILED: "Export failed",

    # Server errors
    ErrorCode.INTERNAL_ERROR: "Internal server error",
}


class APIError(Exception):
    """Custom API error exception."""

    def __init__(
        self,
        error_code: ErrorCode,
        message: Optional[str] = None,
        status_code: int = 400,
        details: Optional[Any] = None,
    ):
        """
        Initialize APIError.

        Args:
            error_code: Error code from ErrorCode enum
            message: Custom error message (overrides default)
            status_code: HTTP status code
            details: Additional error details
        """
        self.error_code = error_code
        self.message = message or ERROR_MESSAGES.get(error_code, "An error occurred")
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        """String representation."""
        return self.message


class DocumentFormatError(APIError):
    """Raised when a document file cannot be loaded at all."""

    def __init__(self, message: str, details: Optional[Any] = None):
        super().__init__(
            error_code=ErrorCode.INVALID_FILE_FORMAT,
            message=message,
            status_code=422,
            details=details,
        )


class FileAccessCancelled(APIError):
    """Raised when the user abandons a file pick; never changes state."""

    def __init__(self, message: Optional[str] = None):
        super().__init__(
            error_code=ErrorCode.FILE_ACCESS_CANCELLED,
            message=message,
            status_code=409,
        )


def raise_error(
    error_code: ErrorCode,
    message: Optional[str] = None,
    status_code: int = 400,
    details: Optional[Any] = None,
) -> None:
    """
    Raise an API error.

    Args:
        error_code: Error code from ErrorCode enum
        message: Custom error message (overrides default)
        status_code: HTTP status code
        details: Additional error details

    Raises:
        APIError: Always raises APIError with provided parameters
    """
    raise APIError(
        error_code=error_code,
        message=message,
        status_code=status_code,
        details=details,
    )


def log_error(error: Exception, context: str = "") -> None:
    """
    Log an error with context.

    Args:
        error: Exception to log
        context: Context description
    """
    if isinstance(error, APIError):
        logger.error(
            f"APIError [{context}]: {error.error_code} - {error.message}",
            extra={"details": error.details},
        )
    else:
        logger.error(f"Error [{context}]: {str(error)}", exc_info=True)
