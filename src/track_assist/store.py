"""Repository interface for the append-only activity event log."""

from __future__ import annotations

import bisect
import threading
from datetime import datetime
from typing import Protocol

from .models import ActivityEvent


class StoreError(RuntimeError):
    """Raised when the event log cannot be read or written."""


class EventStore(Protocol):
    def append(self, event: ActivityEvent) -> None: ...

    def query_range(self, start: datetime, end: datetime) -> list[ActivityEvent]:
        """Events with ``start <= timestamp < end``, oldest first."""
        ...

    def delete_older_than(self, cutoff: datetime) -> int: ...


class MemoryEventStore:
    """Event log kept in a list; used by tests and throwaway sessions."""

    def __init__(self) -> None:
        self._events: list[ActivityEvent] = []
        self._lock = threading.Lock()

    def append(self, event: ActivityEvent) -> None:
        with self._lock:
            # Insert after any equal timestamps so ties keep insertion order.
            keys = [item.timestamp for item in self._events]
            index = bisect.bisect_right(keys, event.timestamp)
            self._events.insert(index, event)

    def query_range(self, start: datetime, end: datetime) -> list[ActivityEvent]:
        with self._lock:
            return [event for event in self._events if start <= event.timestamp < end]

    def delete_older_than(self, cutoff: datetime) -> int:
        with self._lock:
            kept = [event for event in self._events if event.timestamp >= cutoff]
            removed = len(self._events) - len(kept)
            self._events = kept
        return removed

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)
