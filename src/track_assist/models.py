"""Domain models for recorded activity."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


IDLE_APP_NAME = "Idle"
IDLE_COLOR = "#6B7280"


class EventType(str, Enum):
    CHANGE = "change"
    HEARTBEAT = "heartbeat"
    IDLE_START = "idle_start"
    IDLE_END = "idle_end"


@dataclass(frozen=True, slots=True)
class ActivityEvent:
    """A single observation written by the recorder. Never mutated."""

    timestamp: datetime
    app_name: str
    event_type: EventType
    bundle_id: Optional[str] = None
    window_title: Optional[str] = None
    is_idle: bool = False


@dataclass(frozen=True, slots=True)
class TimelineSegment:
    """A contiguous span of time attributed to one application or to idleness."""

    start_time: datetime
    end_time: datetime
    app_name: str
    color: str
    bundle_id: Optional[str] = None
    window_titles: tuple[str, ...] = ()
    is_idle: bool = False

    @property
    def duration_seconds(self) -> int:
        return int((self.end_time - self.start_time).total_seconds())


@dataclass(frozen=True, slots=True)
class DailySummary:
    app_name: str
    total_seconds: int
    percentage: float
    color: str


@dataclass(frozen=True, slots=True)
class DayReport:
    """Summary rows for one day together with their grand total."""

    total_seconds: int
    apps: list[DailySummary] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class TrackerStatus:
    is_tracking: bool
    is_idle: bool
    current_app: Optional[str] = None
    current_window_title: Optional[str] = None
