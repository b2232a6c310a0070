"""Input validation utilities."""

import logging
import os
from typing import Optional

from .errors import ErrorCode, raise_error


logger = logging.getLogger(__name__)


class FileValidator:
    """Validates budget documents opened from uploads or disk."""

    ALLOWED_EXTENSIONS = {".ffe", ".json"}
    ALLOWED_MIME_TYPES = {"application/json", "application/octet-stream", "text/plain"}

    def __init__(self, max_file_size_mb: int = 50):
        """
        Initialize FileValidator.

        Args:
            max_file_size_mb: Maximum file size in MB
        """
        self.max_file_size_bytes = max_file_size_mb * 1024 * 1024

    def validate_file(
        self,
        filename: str,
        file_size: int,
        mime_type: Optional[str] = None,
    ) -> bool:
        """
        Validate a single document file.

        Args:
            filename: Original filename
            file_size: File size in bytes
            mime_type: MIME type of file

        Returns:
            True if valid

        Raises:
            APIError: If validation fails
        """
        if not filename:
            raise_error(ErrorCode.INVALID_REQUEST, "Filename must not be empty")

        _, ext = os.path.splitext(filename.lower())
        if ext not in self.ALLOWED_EXTENSIONS:
            raise_error(
                ErrorCode.INVALID_FILE_FORMAT,
                f"Unsupported file type: {ext or '(none)'}, expected .ffe",
            )

        if mime_type and mime_type not in self.ALLOWED_MIME_TYPES:
            raise_error(
                ErrorCode.INVALID_FILE_FORMAT,
                f"Invalid MIME type: {mime_type}",
            )

        if file_size > self.max_file_size_bytes:
            raise_error(
                ErrorCode.FILE_SIZE_EXCEEDED,
                f"File too large ({file_size / (1024*1024):.1f}MB > {self.max_file_size_bytes / (1024*1024):.0f}MB)",
                status_code=413,
            )

        if file_size == 0:
            raise_error(ErrorCode.INVALID_REQUEST, "File is empty")

        logger.info(f"File validation passed: {filename} ({file_size} bytes)")
        return True


class AttachmentValidator:
    """Validates specification attachments before they are embedded."""

    def __init__(self, max_attachment_size_mb: int = 10):
        self.max_size_bytes = max_attachment_size_mb * 1024 * 1024

    def validate_attachment(self, filename: str, size: int) -> bool:
        """
        Validate an uploaded attachment.

        Raises:
            APIError: If the attachment is empty or too large
        """
        if not filename:
            raise_error(ErrorCode.INVALID_REQUEST, "Attachment filename must not be empty")

        if size == 0:
            raise_error(ErrorCode.INVALID_REQUEST, "Attachment is empty")

        if size > self.max_size_bytes:
            raise_error(
                ErrorCode.FILE_SIZE_EXCEEDED,
                f"Attachment too large ({size / (1024*1024):.1f}MB > {self.max_size_bytes / (1024*1024):.0f}MB)",
                status_code=413,
            )

        return True
