"""Bounded, append-only log of what the engine has been doing."""
from __future__ import annotations

import logging
import threading
import time
from collections import deque
from datetime import datetime
from typing import Callable, Deque, List

from .models import ActivityEntry

LOGGER = logging.getLogger(__name__)

_LEVELS = {
    "info": logging.INFO,
    "success": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class ActivityLog:
    """Keeps the most recent ``capacity`` entries, dropping the oldest first."""

    def __init__(self, capacity: int = 30, *, clock: Callable[[], float] = time.time) -> None:
        if capacity < 1:
            raise ValueError("Activity log capacity must be positive")
        self._entries: Deque[ActivityEntry] = deque(maxlen=capacity)
        self._clock = clock
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or 0

    def add(self, message: str, kind: str = "info") -> ActivityEntry:
        if kind not in _LEVELS:
            raise ValueError(f"Unknown activity kind '{kind}'")
        entry = ActivityEntry(timestamp=self._clock(), kind=kind, message=message)
        with self._lock:
            self._entries.append(entry)
        LOGGER.log(_LEVELS[kind], message)
        return entry

    def info(self, message: str) -> ActivityEntry:
        return self.add(message, "info")

    def success(self, message: str) -> ActivityEntry:
        return self.add(message, "success")

    def warning(self, message: str) -> ActivityEntry:
        return self.add(message, "warning")

    def error(self, message: str) -> ActivityEntry:
        return self.add(message, "error")

    def entries(self) -> List[ActivityEntry]:
        with self._lock:
            return list(self._entries)

    def lines(self) -> List[str]:
        return [format_entry(entry) for entry in self.entries()]

    def __len__(self) -> int:
        return len(self._entries)


def format_entry(entry: ActivityEntry) -> str:
    stamp = datetime.fromtimestamp(entry.timestamp).strftime("%H:%M:%S")
    return f"[{stamp}] {entry.message}"
