"""Response models for the HTTP API."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .models import EventType


class ActivityEventOut(BaseModel):
    timestamp: datetime
    app_name: str
    bundle_id: Optional[str] = None
    window_title: Optional[str] = None
    is_idle: bool
    event_type: EventType

    model_config = ConfigDict(from_attributes=True)


class TimelineSegmentOut(BaseModel):
    start_time: datetime
    end_time: datetime
    app_name: str
    bundle_id: Optional[str] = None
    window_titles: list[str]
    color: str
    duration_seconds: int
    is_idle: bool

    model_config = ConfigDict(from_attributes=True)


class DailySummaryOut(BaseModel):
    app_name: str
    total_seconds: int
    percentage: float
    color: str

    model_config = ConfigDict(from_attributes=True)


class ActivitiesResponse(BaseModel):
    date: str
    activities: list[ActivityEventOut]


class TimelineResponse(BaseModel):
    date: str
    segments: list[TimelineSegmentOut]


class SummaryResponse(BaseModel):
    date: str
    total_seconds: int
    apps: list[DailySummaryOut]


class StatusResponse(BaseModel):
    is_tracking: bool
    is_idle: bool
    current_app: Optional[str] = None
    current_window_title: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
