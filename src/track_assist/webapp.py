"""FastAPI application that exposes the dashboard and the activity API."""

from __future__ import annotations

import logging
import threading
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from .config import TrackerSettings, default_db_path
from .db import SQLiteEventStore
from .models import TrackerStatus
from .queries import DATE_FMT, ActivityQueries, parse_day
from .recorder import EventRecorder, RecorderService
from .retention import RetentionScheduler
from .sampler import Sampler, default_sampler
from .schemas import (
    ActivitiesResponse,
    ActivityEventOut,
    DailySummaryOut,
    StatusResponse,
    SummaryResponse,
    TimelineResponse,
    TimelineSegmentOut,
)
from .store import EventStore, StoreError

logger = logging.getLogger(__name__)


class RecorderRunner:
    """Manage the event recorder and event pruning in background threads.

    Pruning runs whether or not recording is enabled.
    """

    def __init__(
        self,
        store: EventStore,
        settings: TrackerSettings,
        sampler_factory: Callable[[], Sampler] = default_sampler,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._store = store
        self._settings = settings
        self._sampler_factory = sampler_factory
        self._clock = clock
        self._lock = threading.Lock()
        self._threads: list[threading.Thread] = []
        self._stop_event = threading.Event()
        self._service: Optional[RecorderService] = None
        self._retention_started = False

    def start_retention(self) -> None:
        with self._lock:
            if self._retention_started:
                return
            scheduler = RetentionScheduler(self._store, self._settings.retention, self._clock)
            self._spawn("retention", scheduler.run_until_stopped)
            self._retention_started = True
            logger.info("Retention background thread started.")

    def start(self) -> None:
        with self._lock:
            if self._service is not None:
                return
            sampler = self._sampler_factory()
            service = RecorderService(EventRecorder(sampler, self._store, self._settings), sampler)
            self._spawn("recorder", service.run_until_stopped)
            self._service = service
            logger.info("Recorder background thread started.")

    def stop(self) -> None:
        with self._lock:
            self._stop_event.set()
            threads = self._threads
            self._threads = []
        for thread in threads:
            thread.join(timeout=10)
        if threads:
            logger.info("Background threads stopped.")

    def status(self) -> TrackerStatus:
        with self._lock:
            service = self._service
        if service is None:
            return TrackerStatus(is_tracking=False, is_idle=False)
        return service.status()

    def _spawn(self, name: str, target: Callable[[threading.Event], None]) -> None:
        thread = threading.Thread(target=target, args=(self._stop_event,), name=name, daemon=True)
        self._threads.append(thread)
        thread.start()


def create_app(
    *,
    db_path: Optional[Path] = None,
    settings: Optional[TrackerSettings] = None,
    store: Optional[EventStore] = None,
    sampler_factory: Callable[[], Sampler] = default_sampler,
    start_recorder: bool = True,
    clock: Callable[[], datetime] = datetime.now,
) -> FastAPI:
    """Instantiate the FastAPI application."""
    resolved_settings = settings or TrackerSettings()
    resolved_store = (
        store if store is not None else SQLiteEventStore(Path(db_path or default_db_path()))
    )
    runner = RecorderRunner(resolved_store, resolved_settings, sampler_factory, clock)
    queries = ActivityQueries(resolved_store, resolved_settings, clock)

    app = FastAPI(title="Track Assist", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.recorder_runner = runner
    app.state.queries = queries

    static_dir = Path(__file__).parent / "static"
    if static_dir.exists():
        app.mount("/static", StaticFiles(directory=static_dir), name="static")

    @app.on_event("startup")
    async def _startup() -> None:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )
        runner.start_retention()
        if start_recorder:
            runner.start()

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        runner.stop()

    @app.get("/api/status")
    def status(request: Request) -> StatusResponse:
        return StatusResponse.model_validate(request.app.state.recorder_runner.status())

    @app.get("/api/activities")
    def activities(
        request: Request,
        date: Optional[str] = Query(
            default=None,
            description="Target date in YYYY-MM-DD format. Defaults to today.",
        ),
    ) -> ActivitiesResponse:
        queries: ActivityQueries = request.app.state.queries
        target_day = parse_day(date, queries.today())
        try:
            events = queries.events(target_day)
        except StoreError as exc:
            raise _store_failure("activities", exc) from exc
        return ActivitiesResponse(
            date=target_day.strftime(DATE_FMT),
            activities=[ActivityEventOut.model_validate(event) for event in events],
        )

    @app.get("/api/timeline")
    def timeline(
        request: Request,
        date: Optional[str] = Query(
            default=None,
            description="Target date in YYYY-MM-DD format. Defaults to today.",
        ),
    ) -> TimelineResponse:
        queries: ActivityQueries = request.app.state.queries
        target_day = parse_day(date, queries.today())
        try:
            segments = queries.segments(target_day)
        except StoreError as exc:
            raise _store_failure("timeline", exc) from exc
        return TimelineResponse(
            date=target_day.strftime(DATE_FMT),
            segments=[TimelineSegmentOut.model_validate(segment) for segment in segments],
        )

    @app.get("/api/summary")
    def summary(
        request: Request,
        date: Optional[str] = Query(
            default=None,
            description="Target date in YYYY-MM-DD format. Defaults to today.",
        ),
    ) -> SummaryResponse:
        queries: ActivityQueries = request.app.state.queries
        target_day = parse_day(date, queries.today())
        try:
            report = queries.summary(target_day)
        except StoreError as exc:
            raise _store_failure("summary", exc) from exc
        return SummaryResponse(
            date=target_day.strftime(DATE_FMT),
            total_seconds=report.total_seconds,
            apps=[DailySummaryOut.model_validate(row) for row in report.apps],
        )

    @app.get("/")
    def index(request: Request):
        index_path = (static_dir / "index.html").resolve()
        if not index_path.exists():
            raise HTTPException(status_code=404, detail="UI not found")
        return FileResponse(index_path)

    return app


def _store_failure(what: str, exc: StoreError) -> HTTPException:
    logger.error("Failed to load %s: %s", what, exc)
    return HTTPException(status_code=500, detail=f"Failed to load {what}: {exc}")
