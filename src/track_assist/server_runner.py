"""Serve the dashboard with uvicorn."""

from __future__ import annotations

import logging
import threading
import webbrowser
from pathlib import Path
from typing import Optional

import uvicorn

from .config import TrackerSettings, default_db_path
from .webapp import create_app

logger = logging.getLogger(__name__)

BROWSER_DELAY_SECONDS = 1.0


def dashboard_url(host: str, port: int) -> str:
    # A wildcard bind is reachable locally through the loopback address.
    if host in ("0.0.0.0", "::", ""):
        host = "127.0.0.1"
    return f"http://{host}:{port}/"


def run_dashboard(
    *,
    host: str = "127.0.0.1",
    port: int = 8080,
    db_path: Optional[Path] = None,
    settings: Optional[TrackerSettings] = None,
    open_browser: bool = True,
    record: bool = True,
    log_level: str = "info",
) -> None:
    """Serve the dashboard, recording in the background unless ``record`` is off."""
    db_path = db_path or default_db_path()
    app = create_app(
        db_path=db_path,
        settings=settings or TrackerSettings(),
        start_recorder=record,
    )
    logger.info("Dashboard for %s at %s", db_path, dashboard_url(host, port))

    if open_browser:
        timer = threading.Timer(
            BROWSER_DELAY_SECONDS, _open_in_browser, args=(dashboard_url(host, port),)
        )
        timer.daemon = True
        timer.start()

    logging.getLogger("uvicorn.error").setLevel(log_level.upper())
    uvicorn.run(app, host=host, port=port, log_level=log_level)


def _open_in_browser(url: str) -> None:
    try:
        webbrowser.open(url)
    except webbrowser.Error:
        logger.exception("Failed to launch browser for %s", url)
