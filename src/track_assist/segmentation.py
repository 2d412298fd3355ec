"""Turn an ordered day of activity events into timeline segments."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Iterable, Optional

from .colors import color_for_app
from .models import IDLE_APP_NAME, IDLE_COLOR, ActivityEvent, EventType, TimelineSegment


DEFAULT_TAIL_PAD = timedelta(seconds=60)


@dataclass(slots=True)
class _OpenSegment:
    start: datetime
    app_name: str
    bundle_id: Optional[str]
    titles: set[str] = field(default_factory=set)

    def add_title(self, title: Optional[str]) -> None:
        if title:
            self.titles.add(title)

    def close(self, end: datetime) -> TimelineSegment:
        return TimelineSegment(
            start_time=self.start,
            end_time=end,
            app_name=self.app_name,
            bundle_id=self.bundle_id,
            window_titles=tuple(sorted(self.titles)),
            color=color_for_app(self.app_name),
            is_idle=False,
        )


def _idle_segment(start: datetime, end: datetime) -> TimelineSegment:
    return TimelineSegment(
        start_time=start,
        end_time=end,
        app_name=IDLE_APP_NAME,
        color=IDLE_COLOR,
        is_idle=True,
    )


def build_timeline(
    events: Iterable[ActivityEvent],
    *,
    now: Optional[Callable[[], datetime]] = None,
    tail_pad: timedelta = DEFAULT_TAIL_PAD,
) -> list[TimelineSegment]:
    """Build the segments for one day of events.

    ``events`` must already be ordered by timestamp. Consecutive events for the
    same application collapse into one segment whose window titles are merged;
    a later return to the same application starts a new segment. Idle windows
    bounded by ``idle_start``/``idle_end`` become segments of their own.

    Two tails depend on the current time: a segment still open after the last
    event is padded by ``tail_pad``, and an idle window that never ended is
    closed at ``now()``. Calling this again later may therefore extend the last
    segment.
    """
    clock = now or datetime.now
    segments: list[TimelineSegment] = []

    def emit(segment: TimelineSegment) -> None:
        if segment.duration_seconds > 0:
            segments.append(segment)

    current: Optional[_OpenSegment] = None
    idle_since: Optional[datetime] = None
    last_timestamp: Optional[datetime] = None

    for event in events:
        last_timestamp = event.timestamp

        if event.event_type is EventType.IDLE_START:
            if current is not None:
                emit(current.close(event.timestamp))
                current = None
            idle_since = event.timestamp
            continue

        if event.event_type is EventType.IDLE_END:
            if idle_since is not None:
                emit(_idle_segment(idle_since, event.timestamp))
                idle_since = None
            continue

        if idle_since is not None or event.is_idle:
            continue

        if current is None:
            current = _OpenSegment(event.timestamp, event.app_name, event.bundle_id)
            current.add_title(event.window_title)
        elif current.app_name == event.app_name:
            current.add_title(event.window_title)
        else:
            emit(current.close(event.timestamp))
            current = _OpenSegment(event.timestamp, event.app_name, event.bundle_id)
            current.add_title(event.window_title)

    if current is not None and last_timestamp is not None:
        emit(current.close(last_timestamp + tail_pad))
    if idle_since is not None:
        emit(_idle_segment(idle_since, clock()))

    segments.sort(key=lambda segment: segment.start_time)
    return segments
