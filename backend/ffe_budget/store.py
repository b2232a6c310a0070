"""Recovery snapshot stores for auto-save."""

import logging
import os
import re
import tempfile
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol

from .config import settings
from .utils import ErrorCode, raise_error


logger = logging.getLogger(__name__)

_SLOT_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class SnapshotStore(Protocol):
    """Keyed storage for the latest recovery snapshot."""

    def read_snapshot(self, slot: str) -> Optional[str]: ...

    def write_snapshot(self, slot: str, content: str) -> None: ...

    def clear_snapshot(self, slot: str) -> None: ...


class InMemorySnapshotStore:
    """In-memory snapshot storage (tests, ephemeral sessions)."""

    def __init__(self):
        self._snapshots: Dict[str, str] = {}
        self._lock = threading.Lock()
        logger.info("InMemorySnapshotStore initialized")

    def read_snapshot(self, slot: str) -> Optional[str]:
        """
        Get the snapshot stored in a slot.

        Args:
            slot: Slot name

        Returns:
            Snapshot JSON text, or None if the slot is empty
        """
        with self._lock:
            return self._snapshots.get(slot)

    def write_snapshot(self, slot: str, content: str) -> None:
        """
        Replace the snapshot in a slot.

        Args:
            slot: Slot name
            content: Snapshot JSON text
        """
        with self._lock:
            self._snapshots[slot] = content
        logger.debug(f"Snapshot written: {slot} ({len(content)} chars)")

    def clear_snapshot(self, slot: str) -> None:
        with self._lock:
            self._snapshots.pop(slot, None)
        logger.info(f"Snapshot cleared: {slot}")

    def get_stats(self) -> Dict[str, int]:
        return {"slots": len(self._snapshots)}


class FileSnapshotStore:
    """Snapshot storage as one JSON file per slot in the recovery directory."""

    def __init__(self, directory: Path):
        """
        Initialize FileSnapshotStore.

        Args:
            directory: Recovery directory (created if missing)
        """
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        logger.info(f"FileSnapshotStore initialized: {self.directory}")

    def _path(self, slot: str) -> Path:
        if not _SLOT_PATTERN.match(slot):
            raise_error(ErrorCode.INVALID_REQUEST, f"Invalid snapshot slot: {slot!r}")
        return self.directory / f"{slot}.json"

    def read_snapshot(self, slot: str) -> Optional[str]:
        path = self._path(slot)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def write_snapshot(self, slot: str, content: str) -> None:
        """Write atomically so a crash mid-write keeps the previous snapshot."""
        path = self._path(slot)
        with self._lock:
            fd, tmp_path = tempfile.mkstemp(dir=str(self.directory), prefix=f".{slot}", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                    tmp.write(content)
                os.replace(tmp_path, path)
            except OSError:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise
        logger.debug(f"Snapshot written: {path}")

    def clear_snapshot(self, slot: str) -> None:
        path = self._path(slot)
        with self._lock:
            if path.exists():
                path.unlink()
        logger.info(f"Snapshot cleared: {slot}")

    def get_stats(self) -> Dict[str, int]:
        return {"slots": sum(1 for _ in self.directory.glob("*.json"))}


# Global store instance (singleton pattern)
_store: Optional[FileSnapshotStore] = None


def get_snapshot_store() -> FileSnapshotStore:
    """
    Get or create global snapshot store instance.

    Returns:
        FileSnapshotStore rooted at settings.recovery_dir
    """
    global _store
    if _store is None:
        _store = FileSnapshotStore(settings.recovery_dir_path)
    return _store
