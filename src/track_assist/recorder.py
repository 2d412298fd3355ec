"""Event recorder: turns sampler readings into activity events."""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from .config import TrackerSettings
from .models import ActivityEvent, EventType, TrackerStatus
from .retention import RetentionScheduler
from .sampler import AppChangeWatcher, AppInfo, Sampler
from .store import EventStore

logger = logging.getLogger(__name__)


class Trigger(str, Enum):
    STARTUP = "startup"
    APP_ACTIVATED = "app_activated"
    WINDOW_POLL = "window_poll"
    HEARTBEAT = "heartbeat"
    IDLE_POLL = "idle_poll"


@dataclass(frozen=True, slots=True)
class TriggerMessage:
    trigger: Trigger
    app: Optional[AppInfo] = None


@dataclass(slots=True)
class RecorderState:
    current_app: Optional[str] = None
    current_bundle_id: Optional[str] = None
    current_window_title: Optional[str] = None
    is_idle: bool = False


class EventRecorder:
    """Idle/active state machine.

    Every trigger goes through :meth:`handle`, which holds the state lock for
    the whole transition, so triggers never interleave. Appending to the store
    is fire-and-forget: failures are logged and the state still advances.
    """

    def __init__(
        self,
        sampler: Sampler,
        store: EventStore,
        settings: Optional[TrackerSettings] = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._sampler = sampler
        self._store = store
        self.settings = settings or TrackerSettings()
        self._clock = clock
        self._state = RecorderState()
        self._lock = threading.Lock()

    def handle(self, message: TriggerMessage) -> list[ActivityEvent]:
        """Apply one trigger and return the events it emitted."""
        with self._lock:
            if message.trigger is Trigger.STARTUP:
                return self._record_initial_state()
            if message.trigger is Trigger.APP_ACTIVATED:
                if message.app is None:
                    return []
                return self._on_app_activated(message.app)
            if message.trigger is Trigger.WINDOW_POLL:
                return self._check_window_title()
            if message.trigger is Trigger.HEARTBEAT:
                return self._record_heartbeat()
            if message.trigger is Trigger.IDLE_POLL:
                return self._check_idle_state()
        raise ValueError(f"Unknown trigger: {message.trigger!r}")

    def snapshot(self) -> RecorderState:
        with self._lock:
            return replace(self._state)

    def _record_initial_state(self) -> list[ActivityEvent]:
        app = self._sampler.frontmost_app()
        if app is None:
            logger.info("No foreground application at startup; waiting for a change.")
            return []
        self._state.current_app = app.name
        self._state.current_bundle_id = app.bundle_id
        self._state.current_window_title = self._sampler.window_title(app.handle)
        return self._emit(EventType.CHANGE)

    def _on_app_activated(self, app: AppInfo) -> list[ActivityEvent]:
        if app.name == self._state.current_app:
            return []
        self._state.current_app = app.name
        self._state.current_bundle_id = app.bundle_id
        self._state.current_window_title = self._sampler.window_title(app.handle)

        emitted: list[ActivityEvent] = []
        if self._state.is_idle:
            self._state.is_idle = False
            emitted += self._emit(EventType.IDLE_END)
        emitted += self._emit(EventType.CHANGE)
        return emitted

    def _check_window_title(self) -> list[ActivityEvent]:
        app = self._sampler.frontmost_app()
        if app is None:
            return []
        title = self._sampler.window_title(app.handle)
        if title is None:
            return []
        if title == self._state.current_window_title or app.name != self._state.current_app:
            return []
        self._state.current_window_title = title
        return self._emit(EventType.CHANGE)

    def _record_heartbeat(self) -> list[ActivityEvent]:
        if self._state.is_idle:
            return []
        return self._emit(EventType.HEARTBEAT)

    def _check_idle_state(self) -> list[ActivityEvent]:
        idle_seconds = self._sampler.idle_seconds()
        if idle_seconds is None:
            return []
        now_idle = idle_seconds >= self.settings.idle_threshold.total_seconds()
        if now_idle and not self._state.is_idle:
            self._state.is_idle = True
            logger.info("User idle for %.0f seconds.", idle_seconds)
            return self._emit(EventType.IDLE_START)
        if not now_idle and self._state.is_idle:
            self._state.is_idle = False
            logger.info("User active again.")
            return self._emit(EventType.IDLE_END)
        return []

    def _emit(self, event_type: EventType) -> list[ActivityEvent]:
        state = self._state
        if state.current_app is None:
            return []
        event = ActivityEvent(
            timestamp=self._clock(),
            app_name=state.current_app,
            event_type=event_type,
            bundle_id=state.current_bundle_id,
            window_title=state.current_window_title,
            is_idle=state.is_idle,
        )
        try:
            self._store.append(event)
        except Exception:
            logger.exception("Failed to store %s event for %s.", event_type.value, event.app_name)
        else:
            logger.debug(
                "Event recorded: type=%s app=%s title=%s idle=%s",
                event_type.value,
                event.app_name,
                event.window_title,
                event.is_idle,
            )
        return [event]


class RecorderService:
    """Runs an :class:`EventRecorder` as the single owner of its state.

    Tickers and the app-change watcher only put :class:`TriggerMessage` objects
    on a queue; the thread that calls :meth:`run_until_stopped` is the only one
    that applies them.
    """

    def __init__(
        self,
        recorder: EventRecorder,
        sampler: Sampler,
        *,
        retention: Optional[RetentionScheduler] = None,
    ) -> None:
        self.recorder = recorder
        self.settings = recorder.settings
        self._sampler = sampler
        self._retention = retention
        self._messages: "queue.Queue[TriggerMessage]" = queue.Queue()
        self._running = threading.Event()

    def submit(self, message: TriggerMessage) -> None:
        self._messages.put(message)

    def process_pending(self) -> int:
        """Apply every queued message on the calling thread."""
        processed = 0
        while True:
            try:
                message = self._messages.get_nowait()
            except queue.Empty:
                return processed
            self._apply(message)
            processed += 1

    def is_running(self) -> bool:
        return self._running.is_set()

    def status(self) -> TrackerStatus:
        state = self.recorder.snapshot()
        return TrackerStatus(
            is_tracking=self.is_running(),
            is_idle=state.is_idle,
            current_app=state.current_app,
            current_window_title=state.current_window_title,
        )

    def run_forever(self) -> None:
        stop_event = threading.Event()
        try:
            self.run_until_stopped(stop_event)
        except KeyboardInterrupt:
            logger.info("Recorder interrupted.")
            stop_event.set()

    def run_until_stopped(self, stop_event: threading.Event) -> None:
        """Run the recorder until the provided event is set."""
        self.submit(TriggerMessage(Trigger.STARTUP))
        workers = self._start_workers(stop_event)
        self._running.set()
        logger.info("Activity recording started.")
        try:
            while not stop_event.is_set():
                try:
                    message = self._messages.get(timeout=0.5)
                except queue.Empty:
                    continue
                self._apply(message)
        finally:
            stop_event.set()
            self._running.clear()
            for worker in workers:
                worker.join(timeout=5)
            logger.info("Activity recording stopped.")

    def _apply(self, message: TriggerMessage) -> None:
        try:
            self.recorder.handle(message)
        except Exception:
            logger.exception("Recorder failed to handle %s.", message.trigger.value)

    def _start_workers(self, stop_event: threading.Event) -> list[threading.Thread]:
        settings = self.settings
        watcher = AppChangeWatcher(
            self._sampler,
            on_change=lambda app: self.submit(TriggerMessage(Trigger.APP_ACTIVATED, app)),
            interval_seconds=settings.app_poll_interval.total_seconds(),
        )
        targets: list[tuple[str, Callable[..., None], tuple]] = [
            ("app-watcher", watcher.run_until_stopped, (stop_event,)),
            (
                "window-poll",
                self._tick,
                (Trigger.WINDOW_POLL, settings.window_poll_interval.total_seconds(), stop_event),
            ),
            (
                "heartbeat",
                self._tick,
                (Trigger.HEARTBEAT, settings.heartbeat_interval.total_seconds(), stop_event),
            ),
            (
                "idle-poll",
                self._tick,
                (Trigger.IDLE_POLL, settings.idle_poll_interval.total_seconds(), stop_event),
            ),
        ]
        if self._retention is not None:
            targets.append(("retention", self._retention.run_until_stopped, (stop_event,)))

        workers = []
        for name, target, args in targets:
            thread = threading.Thread(target=target, args=args, name=f"recorder-{name}", daemon=True)
            thread.start()
            workers.append(thread)
        return workers

    def _tick(self, trigger: Trigger, interval: float, stop_event: threading.Event) -> None:
        # Sleep in an interruptible manner.
        while not stop_event.wait(interval):
            self.submit(TriggerMessage(trigger))
