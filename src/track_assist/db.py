"""SQLite database layer for activity events."""

from __future__ import annotations

import logging
import sqlite3
import threading
from datetime import datetime
from pathlib import Path

from .models import ActivityEvent, EventType
from .store import StoreError


DATETIME_FMT = "%Y-%m-%d %H:%M:%S.%f"

logger = logging.getLogger(__name__)


def open_database(path: Path, *, check_same_thread: bool = True) -> sqlite3.Connection:
    """Open (and initialize) the SQLite database."""
    conn = sqlite3.connect(
        path,
        isolation_level=None,
        check_same_thread=check_same_thread,
    )
    conn.row_factory = sqlite3.Row
    configure_connection(conn)
    initialize_schema(conn)
    return conn


def configure_connection(conn: sqlite3.Connection) -> None:
    # The recorder thread writes while request handlers read.
    conn.execute("PRAGMA journal_mode = WAL;")
    conn.execute("PRAGMA busy_timeout = 5000;")


def initialize_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS activity_records (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            timestamp TEXT NOT NULL,
            app_name TEXT NOT NULL,
            app_bundle_id TEXT,
            window_title TEXT,
            is_idle INTEGER NOT NULL DEFAULT 0,
            event_type TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_activity_timestamp
            ON activity_records(timestamp);
        CREATE INDEX IF NOT EXISTS idx_activity_app
            ON activity_records(app_name);
        """
    )


def insert_event(conn: sqlite3.Connection, event: ActivityEvent) -> int:
    cur = conn.execute(
        """
        INSERT INTO activity_records (
            timestamp,
            app_name,
            app_bundle_id,
            window_title,
            is_idle,
            event_type
        ) VALUES (?, ?, ?, ?, ?, ?)
        """,
        (
            event.timestamp.strftime(DATETIME_FMT),
            event.app_name,
            event.bundle_id,
            event.window_title,
            1 if event.is_idle else 0,
            event.event_type.value,
        ),
    )
    return int(cur.lastrowid)


def fetch_events_between(
    conn: sqlite3.Connection, start: datetime, end: datetime
) -> list[ActivityEvent]:
    """Fetch events in ``[start, end)`` ordered by time, then insertion."""
    rows = conn.execute(
        """
        SELECT
            id,
            timestamp,
            app_name,
            app_bundle_id,
            window_title,
            is_idle,
            event_type
        FROM activity_records
        WHERE timestamp >= ? AND timestamp < ?
        ORDER BY timestamp, id;
        """,
        (start.strftime(DATETIME_FMT), end.strftime(DATETIME_FMT)),
    )
    return [row_to_event(row) for row in rows]


def delete_events_before(conn: sqlite3.Connection, cutoff: datetime) -> int:
    cur = conn.execute(
        "DELETE FROM activity_records WHERE timestamp < ?",
        (cutoff.strftime(DATETIME_FMT),),
    )
    return cur.rowcount


def row_to_event(row: sqlite3.Row) -> ActivityEvent:
    return ActivityEvent(
        timestamp=datetime.strptime(row["timestamp"], DATETIME_FMT),
        app_name=row["app_name"],
        event_type=EventType(row["event_type"]),
        bundle_id=row["app_bundle_id"],
        window_title=row["window_title"],
        is_idle=bool(row["is_idle"]),
    )


class SQLiteEventStore:
    """Event log backed by a single shared SQLite connection."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self._lock = threading.Lock()
        try:
            self._conn = open_database(self.db_path, check_same_thread=False)
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot open activity database at {self.db_path}") from exc

    def append(self, event: ActivityEvent) -> None:
        with self._lock:
            try:
                insert_event(self._conn, event)
            except sqlite3.Error as exc:
                raise StoreError("Failed to append activity event") from exc

    def query_range(self, start: datetime, end: datetime) -> list[ActivityEvent]:
        with self._lock:
            try:
                return fetch_events_between(self._conn, start, end)
            except (sqlite3.Error, ValueError) as exc:
                raise StoreError("Failed to read activity events") from exc

    def delete_older_than(self, cutoff: datetime) -> int:
        with self._lock:
            try:
                removed = delete_events_before(self._conn, cutoff)
            except sqlite3.Error as exc:
                raise StoreError("Failed to prune activity events") from exc
        logger.debug("Deleted %d events older than %s.", removed, cutoff)
        return removed

    def close(self) -> None:
        with self._lock:
            self._conn.close()
