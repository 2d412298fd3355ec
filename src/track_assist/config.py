"""Configuration models and helpers for the activity tracker."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from platformdirs import PlatformDirs


APP_NAME = "TrackAssist"
DB_FILENAME = "activities.sqlite3"


@dataclass(slots=True)
class TrackerSettings:
    """Runtime configuration for the event recorder and timeline queries."""

    window_poll_interval: timedelta = timedelta(seconds=3)
    heartbeat_interval: timedelta = timedelta(seconds=60)
    idle_poll_interval: timedelta = timedelta(seconds=10)
    app_poll_interval: timedelta = timedelta(seconds=1)
    idle_threshold: timedelta = timedelta(minutes=5)
    retention: timedelta = timedelta(days=7)
    open_tail_pad: timedelta = timedelta(seconds=60)

    @classmethod
    def from_intervals(
        cls,
        idle_minutes: float,
        window_poll_seconds: float | None = None,
        heartbeat_seconds: float | None = None,
        retention_days: float | None = None,
    ) -> "TrackerSettings":
        defaults = cls()
        heartbeat = (
            timedelta(seconds=heartbeat_seconds)
            if heartbeat_seconds is not None
            else defaults.heartbeat_interval
        )
        return cls(
            window_poll_interval=(
                timedelta(seconds=window_poll_seconds)
                if window_poll_seconds is not None
                else defaults.window_poll_interval
            ),
            heartbeat_interval=heartbeat,
            idle_threshold=timedelta(minutes=idle_minutes),
            retention=(
                timedelta(days=retention_days)
                if retention_days is not None
                else defaults.retention
            ),
            # The open tail of a timeline approximates one missed heartbeat.
            open_tail_pad=heartbeat,
        )


def default_db_path() -> Path:
    """Location of the event database inside the per-user data directory."""
    dirs = PlatformDirs(appname=APP_NAME, appauthor=APP_NAME, roaming=True)
    data_dir = Path(dirs.user_data_path)
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir / DB_FILENAME
