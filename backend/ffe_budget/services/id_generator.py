"""Unique id generation for line items and categories."""

import threading
import time
from typing import Callable, Collection, Optional


class IdGenerator:
    """Monotonic id source.

    Item ids keep the timestamp-in-milliseconds convention of existing files
    but never repeat: each id is greater than the previous one and skips any
    id already taken in the document.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        """
        Initialize IdGenerator.

        Args:
            clock: Returns seconds since the epoch (default time.time)
        """
        self._clock = clock or time.time
        self._last = 0
        self._lock = threading.Lock()

    def next_item_id(self, taken: Collection[int] = ()) -> int:
        """Return a fresh item id not in ``taken``."""
        with self._lock:
            candidate = max(int(self._clock() * 1000), self._last + 1)
            while candidate in taken:
                candidate += 1
            self._last = candidate
            return candidate

    def next_category_id(self, taken: Collection[str] = ()) -> str:
        """Return a fresh ``cat_<n>`` id not in ``taken``."""
        while True:
            candidate = f"cat_{self.next_item_id()}"
            if candidate not in taken:
                return candidate
