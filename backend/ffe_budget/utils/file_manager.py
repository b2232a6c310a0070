"""File management utilities.

The file-access collaborator for explicit save/open: targets are picked by
name inside the documents directory, writes are atomic, reads are size
checked.
"""

import os
import tempfile
from pathlib import Path
from typing import List, Optional
import logging

from .errors import ErrorCode, FileAccessCancelled, raise_error


logger = logging.getLogger(__name__)


class FileManager:
    """Manages budget document files on disk."""

    def __init__(self, documents_dir: Path, extension: str = ".ffe", max_file_size_bytes: Optional[int] = None):
        """
        Initialize FileManager.

        Args:
            documents_dir: Directory holding .ffe documents
            extension: Document file extension
            max_file_size_bytes: Reject reads of larger files (None for no limit)
        """
        self.documents_dir = Path(documents_dir)
        self.extension = extension
        self.max_file_size_bytes = max_file_size_bytes

        # Create directory if it doesn't exist
        self.documents_dir.mkdir(parents=True, exist_ok=True)

    def pick_target(self, filename: Optional[str]) -> Path:
        """
        Resolve a save target from a user-chosen file name.

        Only the base name is used, so targets always stay inside the
        documents directory; the extension is added when missing.

        Args:
            filename: Chosen name; None or blank means the picker was dismissed

        Returns:
            Absolute target path

        Raises:
            FileAccessCancelled: If no name was chosen
        """
        name = Path(filename or "").name.strip()
        if not name or name in (".", ".."):
            raise FileAccessCancelled("Save cancelled: no file name chosen")
        if not name.lower().endswith(self.extension):
            name = f"{name}{self.extension}"
        return self.documents_dir / name

    def pick_source(self, filename: Optional[str]) -> Path:
        """
        Resolve an existing document to open.

        Raises:
            FileAccessCancelled: If no name was chosen
            APIError: If the file does not exist
        """
        name = Path(filename or "").name.strip()
        if not name:
            raise FileAccessCancelled("Open cancelled: no file chosen")
        path = self.documents_dir / name
        if not path.is_file():
            raise_error(ErrorCode.FILE_NOT_FOUND, f"File not found: {name}", status_code=404)
        return path

    def write_document(self, target: Path, content: bytes) -> Path:
        """
        Write a document atomically (temp file + replace).

        A failed write leaves any previous file at ``target`` untouched.

        Args:
            target: Destination path
            content: Serialized document

        Returns:
            Path written

        Raises:
            APIError: If the write fails
        """
        target = Path(target)
        tmp_path = None
        try:
            fd, tmp_path = tempfile.mkstemp(dir=str(target.parent), prefix=".", suffix=".tmp")
            with os.fdopen(fd, "wb") as tmp:
                tmp.write(content)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_path, target)
            logger.info(f"Document written: {target} ({len(content)} bytes)")
            return target
        except OSError as e:
            logger.error(f"Failed to write document: {e}")
            if tmp_path and os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise_error(
                ErrorCode.FILE_SAVE_FAILED,
                f"Failed to save document: {e.strerror or e}",
                status_code=500,
            )

    def read_document(self, path: Path) -> bytes:
        """
        Read a document file.

        Raises:
            APIError: If the file is missing, too large or unreadable
        """
        path = Path(path)
        try:
            size = path.stat().st_size
            if self.max_file_size_bytes is not None and size > self.max_file_size_bytes:
                raise_error(
                    ErrorCode.FILE_SIZE_EXCEEDED,
                    f"File too large: {size} bytes",
                    status_code=413,
                )
            return path.read_bytes()
        except FileNotFoundError:
            raise_error(ErrorCode.FILE_NOT_FOUND, f"File not found: {path.name}", status_code=404)
        except OSError as e:
            logger.error(f"Failed to read document {path}: {e}")
            raise_error(
                ErrorCode.FILE_READ_FAILED,
                f"Failed to open document: {e.strerror or e}",
                status_code=500,
            )

    def list_documents(self) -> List[dict]:
        """
        List saved documents, newest first.

        Returns:
            List of {"filename", "size", "modified"} dicts
        """
        entries = []
        for path in self.documents_dir.glob(f"*{self.extension}"):
            if path.is_file():
                stat = path.stat()
                entries.append({
                    "filename": path.name,
                    "size": stat.st_size,
                    "modified": stat.st_mtime,
                })
        entries.sort(key=lambda entry: entry["modified"], reverse=True)
        return entries
