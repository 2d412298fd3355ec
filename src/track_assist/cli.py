"""Command-line interface for the activity tracker."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import NoReturn, Optional

import typer

from .config import TrackerSettings, default_db_path
from .db import SQLiteEventStore
from .server_runner import run_dashboard
from .store import StoreError

app = typer.Typer(help="Local-first application activity timeline.")

logger = logging.getLogger(__name__)


@app.callback(no_args_is_help=True)
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logs.")) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def _open_store(db_path: Optional[Path]) -> SQLiteEventStore:
    try:
        return SQLiteEventStore(db_path or default_db_path())
    except StoreError as exc:
        _fail(exc)


def _fail(exc: StoreError) -> NoReturn:
    cause = f" ({exc.__cause__})" if exc.__cause__ else ""
    typer.echo(f"Error: {exc}{cause}", err=True)
    raise typer.Exit(1)


def _settings(idle_minutes: float, heartbeat_seconds: float, retention_days: float) -> TrackerSettings:
    return TrackerSettings.from_intervals(
        idle_minutes=idle_minutes,
        heartbeat_seconds=heartbeat_seconds,
        retention_days=retention_days,
    )


@app.command()
def record(
    db_path: Optional[Path] = typer.Option(
        None,
        "--db",
        path_type=Path,
        help="Location of the activity SQLite database.",
    ),
    idle_minutes: float = typer.Option(
        5.0,
        "--idle-threshold",
        min=0.5,
        help="Minutes without input before the user counts as idle.",
    ),
    heartbeat_seconds: float = typer.Option(
        60.0,
        "--heartbeat",
        min=5.0,
        help="Seconds between heartbeat events while active.",
    ),
    retention_days: float = typer.Option(
        7.0,
        "--retention",
        min=1.0,
        help="Days of events to keep before pruning.",
    ),
) -> None:
    """Record activity events until interrupted."""
    from .recorder import EventRecorder, RecorderService
    from .retention import RetentionScheduler
    from .sampler import default_sampler

    settings = _settings(idle_minutes, heartbeat_seconds, retention_days)
    store = _open_store(db_path)
    sampler = default_sampler()
    service = RecorderService(
        EventRecorder(sampler, store, settings),
        sampler,
        retention=RetentionScheduler(store, settings.retention),
    )
    logger.info("Writing events to %s", store.db_path)
    try:
        service.run_forever()
    finally:
        store.close()


@app.command()
def timeline(
    date: Optional[str] = typer.Option(
        None,
        "--date",
        help="Date (YYYY-MM-DD) to show. Defaults to today.",
    ),
    db_path: Optional[Path] = typer.Option(
        None,
        "--db",
        path_type=Path,
        help="Location of the activity SQLite database.",
    ),
) -> None:
    """Print the timeline segments for a specific day."""
    from .queries import ActivityQueries, parse_day
    from .reporting import print_lines, render_timeline

    store = _open_store(db_path)
    try:
        queries = ActivityQueries(store)
        day = parse_day(date, queries.today())
        print_lines(render_timeline(day, queries.segments(day)), echo=typer.echo)
    except StoreError as exc:
        _fail(exc)
    finally:
        store.close()


@app.command()
def summary(
    date: Optional[str] = typer.Option(
        None,
        "--date",
        help="Date (YYYY-MM-DD) to summarize. Defaults to today.",
    ),
    db_path: Optional[Path] = typer.Option(
        None,
        "--db",
        path_type=Path,
        help="Location of the activity SQLite database.",
    ),
) -> None:
    """Print per-application totals for a specific day."""
    from .queries import ActivityQueries, parse_day
    from .reporting import print_lines, render_summary

    store = _open_store(db_path)
    try:
        queries = ActivityQueries(store)
        day = parse_day(date, queries.today())
        print_lines(render_summary(day, queries.summary(day)), echo=typer.echo)
    except StoreError as exc:
        _fail(exc)
    finally:
        store.close()


@app.command()
def prune(
    db_path: Optional[Path] = typer.Option(
        None,
        "--db",
        path_type=Path,
        help="Location of the activity SQLite database.",
    ),
    retention_days: float = typer.Option(
        7.0,
        "--retention",
        min=1.0,
        help="Days of events to keep.",
    ),
) -> None:
    """Delete events older than the retention window."""
    from datetime import timedelta

    from .retention import RetentionScheduler

    store = _open_store(db_path)
    try:
        removed = RetentionScheduler(store, timedelta(days=retention_days)).prune_once()
    except StoreError as exc:
        _fail(exc)
    finally:
        store.close()
    typer.echo(f"Removed {removed} events.")


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", "--host", help="Interface to bind the dashboard."),
    port: int = typer.Option(
        8080, "--port", min=1, max=65535, help="TCP port for the dashboard."
    ),
    db_path: Optional[Path] = typer.Option(
        None, "--db", path_type=Path, help="Location of the activity SQLite database."
    ),
    idle_minutes: float = typer.Option(
        5.0,
        "--idle-threshold",
        min=0.5,
        help="Minutes without input before the user counts as idle.",
    ),
    heartbeat_seconds: float = typer.Option(
        60.0,
        "--heartbeat",
        min=5.0,
        help="Seconds between heartbeat events while active.",
    ),
    retention_days: float = typer.Option(
        7.0,
        "--retention",
        min=1.0,
        help="Days of events to keep before pruning.",
    ),
    record_activity: bool = typer.Option(
        True,
        "--record/--no-record",
        help="Record activity in the background while serving.",
    ),
    open_browser: bool = typer.Option(
        True,
        "--open-browser/--no-open-browser",
        help="Automatically launch the dashboard in your default browser.",
    ),
) -> None:
    """Start the local dashboard with the background recorder."""
    run_dashboard(
        host=host,
        port=port,
        db_path=db_path or default_db_path(),
        settings=_settings(idle_minutes, heartbeat_seconds, retention_days),
        open_browser=open_browser,
        record=record_activity,
    )
