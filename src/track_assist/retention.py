"""Periodic pruning of old activity events."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Callable

from .store import EventStore

logger = logging.getLogger(__name__)


def next_midnight(now: datetime) -> datetime:
    return now.replace(hour=0, minute=0, second=0, microsecond=0) + timedelta(days=1)


class RetentionScheduler:
    """Deletes events older than ``retention`` at start and every local midnight."""

    def __init__(
        self,
        store: EventStore,
        retention: timedelta = timedelta(days=7),
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self.retention = retention
        self._clock = clock

    def prune_once(self) -> int:
        cutoff = self._clock() - self.retention
        try:
            removed = self._store.delete_older_than(cutoff)
        except Exception:
            logger.exception("Failed to prune events older than %s.", cutoff)
            return 0
        logger.info("Pruned %d events recorded before %s.", removed, cutoff)
        return removed

    def seconds_until_next_run(self) -> float:
        now = self._clock()
        return max((next_midnight(now) - now).total_seconds(), 1.0)

    def run_until_stopped(self, stop_event: threading.Event) -> None:
        self.prune_once()
        while not stop_event.wait(self.seconds_until_next_run()):
            self.prune_once()
