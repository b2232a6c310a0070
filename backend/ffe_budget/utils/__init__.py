"""Utils package."""

from .errors import (
    APIError,
    DocumentFormatError,
    ErrorCode,
    FileAccessCancelled,
    raise_error,
    log_error,
)
from .file_manager import FileManager
from .validators import FileValidator, AttachmentValidator

__all__ = [
    "APIError",
    "DocumentFormatError",
    "ErrorCode",
    "FileAccessCancelled",
    "raise_error",
    "log_error",
    "FileManager",
    "FileValidator",
    "AttachmentValidator",
]
