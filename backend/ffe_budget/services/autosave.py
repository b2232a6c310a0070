"""Debounced auto-save and draft recovery.

Every change to the session restarts a short timer; when it fires, the whole
document is written to a single snapshot slot. At start-up the slot is
checked for a draft worth offering back to the user; until it is resumed or
discarded, new snapshots are held back so the draft is not overwritten.
"""

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Tuple

from ..models.document import Document
from ..utils.errors import DocumentFormatError, log_error
from .document_service import DocumentSession
from .id_generator import IdGenerator
from .persistence import deserialize_with_metadata, dumps_document, serialize_document
from .scheduling import ScheduledCall, Scheduler, ThreadingScheduler

logger = logging.getLogger(__name__)


@dataclass
class DraftInfo:
    """Summary of a recoverable draft shown in the resume prompt."""

    project_name: str
    saved_at: Optional[datetime]
    categories: int
    items: int


class AutoSaveService:
    """Writes a recovery snapshot after a quiet period following each change."""

    def __init__(
        self,
        session: DocumentSession,
        store,
        scheduler: Optional[Scheduler] = None,
        delay: float = 1.0,
        slot: str = "ffe_autosave",
        id_generator: Optional[IdGenerator] = None,
    ):
        """
        Initialize AutoSaveService.

        Args:
            session: Session to watch
            store: SnapshotStore holding the recovery slot
            scheduler: Delayed-call scheduler (default: ThreadingScheduler)
            delay: Quiet period in seconds before a snapshot is written
            slot: Snapshot slot name
            id_generator: Id source used when loading a draft
        """
        self.session = session
        self.store = store
        self.scheduler = scheduler or ThreadingScheduler()
        self.delay = delay
        self.slot = slot
        self.id_generator = id_generator or IdGenerator()
        self.last_autosave_at: Optional[datetime] = None
        # Draft found at start-up; snapshots are held back until it is resumed or discarded
        self.startup_draft: Optional[DraftInfo] = None
        self._held = False
        self._pending: Optional[ScheduledCall] = None
        self._lock = threading.Lock()
        self._started = False

    def start(self) -> None:
        """Subscribe to the session, protecting any draft left in the slot."""
        if not self._started:
            self.startup_draft = self.find_recovery_draft()
            if self.startup_draft is not None:
                logger.info(
                    f"Recovery draft found: {self.startup_draft.project_name!r}; "
                    f"auto-save held until it is resumed or discarded"
                )
            self.session.subscribe(self._on_change)
            self._started = True
            logger.info(f"Auto-save started (delay={self.delay}s, slot={self.slot})")

    def stop(self) -> None:
        """Unsubscribe and drop any pending snapshot."""
        if self._started:
            self.session.unsubscribe(self._on_change)
            self._started = False
        self._cancel_pending()
        logger.info("Auto-save stopped")

    def _cancel_pending(self) -> None:
        with self._lock:
            if self._pending is not None:
                self._pending.cancel()
                self._pending = None

    def _on_change(self, _session: DocumentSession) -> None:
        # 重新計時：只有最後一次變更後的快照會被寫入
        with self._lock:
            if self._pending is not None:
                self._pending.cancel()
            self._pending = self.scheduler.call_later(self.delay, self._scheduled_flush)

    def _scheduled_flush(self) -> None:
        """Timer callback: failures are logged, there is no caller to raise to."""
        try:
            self.flush()
        except Exception as e:
            log_error(e, context="Auto-save")

    @property
    def has_pending(self) -> bool:
        return self._pending is not None

    @property
    def draft_unresolved(self) -> bool:
        return self.startup_draft is not None

    def flush(self) -> Optional[datetime]:
        """
        Write the current document to the snapshot slot now.

        Returns:
            Snapshot timestamp, or None while an unresolved start-up draft
            occupies the slot
        """
        with self._lock:
            self._pending = None
        if self.draft_unresolved:
            self._held = True
            logger.info("Auto-save held: recovery draft not yet resumed or discarded")
            return None
        document_file = serialize_document(self.session.snapshot())
        self.store.write_snapshot(self.slot, dumps_document(document_file))
        self.last_autosave_at = document_file.saved_at
        logger.debug(f"Auto-saved snapshot at {self.last_autosave_at.isoformat()}")
        return self.last_autosave_at

    # ===== Recovery =====

    def _load_draft(self) -> Tuple[Optional[Document], Optional[datetime]]:
        text = self.store.read_snapshot(self.slot)
        if text is None:
            return None, None
        try:
            loaded = deserialize_with_metadata(text, self.id_generator)
        except DocumentFormatError as e:
            logger.warning(f"Ignoring unreadable recovery snapshot: {e.message}")
            return None, None
        return loaded.document, loaded.saved_at

    def find_recovery_draft(self) -> Optional[DraftInfo]:
        """
        Check the snapshot slot for a draft worth offering.

        Returns:
            DraftInfo, or None when the slot is empty, unreadable or holds
            only an untouched template
        """
        document, saved_at = self._load_draft()
        if document is None or not document.has_meaningful_content():
            return None
        return DraftInfo(
            project_name=document.project_info.name,
            saved_at=saved_at,
            categories=len(document.categories),
            items=sum(len(category.items) for category in document.categories),
        )

    def resume_draft(self) -> Optional[Document]:
        """
        Load the draft into the session.

        The draft never came from the user's file, so the session is left
        dirty. Held snapshots resume from the loaded draft.
        """
        document, _ = self._load_draft()
        if document is None:
            return None
        self.startup_draft = None
        self._held = False
        self.session.load_document(document, dirty=True)
        logger.info(f"Recovery draft resumed: {document.project_info.name!r}")
        return document

    def discard_draft(self) -> None:
        """Clear the slot; edits made while the draft was held are snapshotted next."""
        self.store.clear_snapshot(self.slot)
        self.startup_draft = None
        held, self._held = self._held, False
        logger.info("Recovery draft discarded")
        if held and self._started:
            self._on_change(self.session)
