"""Delayed-call schedulers used by the auto-save debounce.

ThreadingScheduler runs callbacks on timer threads. ManualScheduler keeps a
virtual clock that tests advance explicitly.
"""

import threading
from dataclasses import dataclass, field
from typing import Callable, List, Protocol


class ScheduledCall(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> ScheduledCall: ...


class ThreadingScheduler:
    """Scheduler backed by threading.Timer (daemon threads)."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


@dataclass(eq=False)
class _ManualCall:
    due: float
    callback: Callable[[], None]
    cancelled: bool = field(default=False)

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Scheduler driven by a virtual clock.

    Usage:
        scheduler = ManualScheduler()
        scheduler.call_later(1.0, flush)
        scheduler.advance(0.5)   # nothing runs
        scheduler.advance(0.5)   # flush runs
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._calls: List[_ManualCall] = []

    def call_later(self, delay: float, callback: Callable[[], None]) -> _ManualCall:
        call = _ManualCall(due=self.now + delay, callback=callback)
        self._calls.append(call)
        return call

    @property
    def pending(self) -> int:
        return sum(1 for call in self._calls if not call.cancelled)

    def advance(self, seconds: float) -> int:
        """
        Move the clock forward and run every call that became due.

        Returns:
            Number of callbacks run
        """
        self.now += seconds
        ran = 0
        due = sorted(
            (call for call in self._calls if not call.cancelled and call.due <= self.now),
            key=lambda call: call.due,
        )
        for call in due:
            if call.cancelled:
                continue
            self._calls.remove(call)
            call.callback()
            ran += 1
        self._calls = [call for call in self._calls if not call.cancelled]
        return ran
