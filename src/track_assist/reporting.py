"""Console rendering of timelines and daily summaries."""

from __future__ import annotations

from datetime import date
from typing import Callable, Iterable

from .models import DayReport, TimelineSegment


def format_duration(seconds: float) -> str:
    total_seconds = int(round(seconds))
    hours, remainder = divmod(total_seconds, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def render_summary(day: date, report: DayReport) -> list[str]:
    if not report.apps:
        return ["No activity recorded for the selected day."]

    lines = [
        f"Summary for {day.isoformat()}",
        "-" * 48,
        f"Tracked time: {format_duration(report.total_seconds)}",
        "",
    ]
    for row in report.apps:
        lines.append(
            f"  {row.app_name[:28]:<28} {format_duration(row.total_seconds)} {row.percentage:6.1f}%"
        )
    return lines


def render_timeline(day: date, segments: Iterable[TimelineSegment]) -> list[str]:
    segments = list(segments)
    if not segments:
        return ["No activity recorded for the selected day."]

    lines = [f"Timeline for {day.isoformat()}", "-" * 48]
    for segment in segments:
        span = f"{segment.start_time:%H:%M:%S}-{segment.end_time:%H:%M:%S}"
        lines.append(
            f"  {span} {segment.app_name[:24]:<24} {format_duration(segment.duration_seconds)}"
        )
        for title in segment.window_titles[:3]:
            lines.append(f"      {title[:60]}")
    return lines


def print_lines(lines: Iterable[str], echo: Callable[[str], None] = print) -> None:
    for line in lines:
        echo(line)
