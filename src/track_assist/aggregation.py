"""Per-application totals for a day's timeline."""

from __future__ import annotations

from collections import defaultdict
from typing import Iterable

from .colors import color_for_app
from .models import IDLE_APP_NAME, IDLE_COLOR, DailySummary, DayReport, TimelineSegment


def summarize_segments(segments: Iterable[TimelineSegment]) -> list[DailySummary]:
    """Group segments by application name and compute each share of the day.

    Idle segments are grouped under their own pseudo-application. Applications
    are keyed by display name only, so two apps sharing a name share a row.
    """
    totals: defaultdict[str, int] = defaultdict(int)
    for segment in segments:
        totals[segment.app_name] += segment.duration_seconds

    grand_total = sum(totals.values())
    if grand_total <= 0:
        return []

    rows = [
        DailySummary(
            app_name=app_name,
            total_seconds=seconds,
            percentage=seconds / grand_total * 100,
            color=IDLE_COLOR if app_name == IDLE_APP_NAME else color_for_app(app_name),
        )
        for app_name, seconds in totals.items()
    ]
    rows.sort(key=lambda row: row.total_seconds, reverse=True)
    return rows


def build_day_report(segments: Iterable[TimelineSegment]) -> DayReport:
    apps = summarize_segments(segments)
    return DayReport(total_seconds=sum(row.total_seconds for row in apps), apps=apps)
