"""Foreground application sampling and app-change notifications."""

from __future__ import annotations

import ctypes
import logging
import sys
import threading
from ctypes import wintypes
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

import psutil

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class AppInfo:
    """The application currently holding input focus."""

    name: str
    bundle_id: Optional[str]
    handle: int


class Sampler(Protocol):
    """Pull interface polled by the recorder. ``None`` means no observation."""

    def frontmost_app(self) -> Optional[AppInfo]: ...

    def window_title(self, handle: int) -> Optional[str]: ...

    def idle_seconds(self) -> Optional[float]: ...


class WindowsSampler:
    """Reads the foreground window and last-input time through Win32 APIs."""

    class LASTINPUTINFO(ctypes.Structure):
        _fields_ = [("cbSize", wintypes.UINT), ("dwTime", wintypes.DWORD)]

    def __init__(self) -> None:
        if sys.platform != "win32":
            raise RuntimeError("WindowsSampler is only available on Windows.")
        self._user32 = ctypes.windll.user32  # type: ignore[attr-defined]
        self._kernel32 = ctypes.windll.kernel32  # type: ignore[attr-defined]

    def frontmost_app(self) -> Optional[AppInfo]:
        hwnd = self._user32.GetForegroundWindow()
        if not hwnd:
            return None

        pid = wintypes.DWORD()
        self._user32.GetWindowThreadProcessId(hwnd, ctypes.byref(pid))
        if not pid.value:
            return None
        try:
            process = psutil.Process(pid.value)
            name = process.name()
            executable: Optional[str] = process.exe() or None
        except (psutil.Error, ProcessLookupError):
            return None
        if name.lower().endswith(".exe"):
            name = name[:-4]
        return AppInfo(name=name, bundle_id=executable, handle=int(hwnd))

    def window_title(self, handle: int) -> Optional[str]:
        length = self._user32.GetWindowTextLengthW(handle)
        if length <= 0:
            return None
        buffer = ctypes.create_unicode_buffer(length + 1)
        self._user32.GetWindowTextW(handle, buffer, length + 1)
        return buffer.value.strip() or None

    def idle_seconds(self) -> Optional[float]:
        last_input = self.LASTINPUTINFO()
        last_input.cbSize = ctypes.sizeof(last_input)
        if not self._user32.GetLastInputInfo(ctypes.byref(last_input)):
            logger.debug("GetLastInputInfo failed; idle time unknown this cycle.")
            return None
        # dwTime is a 32-bit tick count, so compare against the low 32 bits.
        now_ticks = self._kernel32.GetTickCount64() & 0xFFFFFFFF
        elapsed_ms = (now_ticks - last_input.dwTime) & 0xFFFFFFFF
        return elapsed_ms / 1000.0


def default_sampler() -> Sampler:
    if sys.platform == "win32":
        return WindowsSampler()
    raise RuntimeError(f"No activity sampler is available for platform {sys.platform!r}.")


class AppChangeWatcher:
    """Polls the foreground application and reports name changes.

    Stands in for an OS "application activated" notification on platforms that
    do not deliver one. The callback runs on the watcher thread and should only
    hand the update off, never mutate recorder state directly.
    """

    def __init__(
        self,
        sampler: Sampler,
        on_change: Callable[[AppInfo], None],
        interval_seconds: float = 1.0,
    ) -> None:
        self._sampler = sampler
        self._on_change = on_change
        self._interval = interval_seconds
        self._last_name: Optional[str] = None

    def poll_once(self) -> None:
        app = self._sampler.frontmost_app()
        if app is None or app.name == self._last_name:
            return
        self._last_name = app.name
        self._on_change(app)

    def run_until_stopped(self, stop_event: threading.Event) -> None:
        while not stop_event.is_set():
            try:
                self.poll_once()
            except Exception:
                logger.exception("Foreground application poll failed.")
            stop_event.wait(self._interval)
