"""Read side: timeline and summary for a calendar day."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Callable, Optional, Union

from .aggregation import build_day_report
from .config import TrackerSettings
from .models import ActivityEvent, DayReport, TimelineSegment
from .segmentation import build_timeline
from .store import EventStore


DATE_FMT = "%Y-%m-%d"


def parse_day(value: Optional[str], today: date) -> date:
    """Parse ``YYYY-MM-DD``; anything missing or malformed means ``today``."""
    if not value:
        return today
    try:
        return datetime.strptime(value.strip(), DATE_FMT).date()
    except ValueError:
        return today


def day_bounds(day: Union[date, datetime]) -> tuple[datetime, datetime]:
    if isinstance(day, datetime):
        day = day.date()
    start = datetime(day.year, day.month, day.day)
    return start, start + timedelta(days=1)


class ActivityQueries:
    """Recomputes the timeline from the event log on every call.

    Store failures propagate as :class:`~track_assist.store.StoreError`; no
    partial results are produced.
    """

    def __init__(
        self,
        store: EventStore,
        settings: Optional[TrackerSettings] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self._settings = settings or TrackerSettings()
        self._clock = clock

    def today(self) -> date:
        return self._clock().date()

    def events(self, day: date) -> list[ActivityEvent]:
        start, end = day_bounds(day)
        return self._store.query_range(start, end)

    def segments(self, day: date) -> list[TimelineSegment]:
        return build_timeline(
            self.events(day),
            now=self._clock,
            tail_pad=self._settings.open_tail_pad,
        )

    def summary(self, day: date) -> DayReport:
        return build_day_report(self.segments(day))
