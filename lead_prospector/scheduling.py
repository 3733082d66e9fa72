"""Cancellable delayed-call scheduling used by the acquisition engine."""
from __future__ import annotations

import heapq
import itertools
import logging
import threading
from typing import Callable, List, Optional, Protocol, Tuple

LOGGER = logging.getLogger(__name__)

Callback = Callable[[], None]


class ScheduledTask:
    """Handle for a callback that will run after a delay unless revoked."""

    def __init__(self, callback: Callback, delay: float, due: float = 0.0) -> None:
        self.callback = callback
        self.delay = delay
        self.due = due
        self._cancelled = threading.Event()
        self._timer: Optional[threading.Timer] = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        self._cancelled.set()
        if self._timer is not None:
            self._timer.cancel()

    def run(self) -> None:
        if self.cancelled:
            return
        try:
            self.callback()
        except Exception:  # pragma: no cover - defensive programming
            LOGGER.exception("Scheduled callback %r failed", self.callback)


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callback) -> ScheduledTask:  # pragma: no cover - runtime protocol
        """Run ``callback`` after ``delay`` seconds."""


class ThreadingScheduler:
    """Runs callbacks on daemon :class:`threading.Timer` threads."""

    def call_later(self, delay: float, callback: Callback) -> ScheduledTask:
        task = ScheduledTask(callback, delay)
        timer = threading.Timer(max(0.0, delay), task.run)
        timer.daemon = True
        task._timer = timer
        timer.start()
        return task


class ManualScheduler:
    """Deterministic scheduler driven by a virtual clock.

    Nothing runs until :meth:`advance` or :meth:`run_next` is called.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self._counter = itertools.count()
        self._queue: List[Tuple[float, int, ScheduledTask]] = []

    def call_later(self, delay: float, callback: Callback) -> ScheduledTask:
        task = ScheduledTask(callback, delay, due=self.now + max(0.0, delay))
        heapq.heappush(self._queue, (task.due, next(self._counter), task))
        return task

    @property
    def pending(self) -> List[ScheduledTask]:
        """Live tasks in firing order."""

        return [task for _, _, task in sorted(self._queue) if not task.cancelled]

    def run_next(self) -> bool:
        """Jump to the next live task and run it. Return ``False`` if none."""

        while self._queue:
            due, _, task = heapq.heappop(self._queue)
            if task.cancelled:
                continue
            self.now = max(self.now, due)
            task.run()
            return True
        return False

    def advance(self, seconds: float) -> int:
        """Move the clock forward, running every task that falls due."""

        target = self.now + seconds
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, task = heapq.heappop(self._queue)
            if task.cancelled:
                continue
            self.now = max(self.now, due)
            task.run()
            ran += 1
        self.now = target
        return ran
