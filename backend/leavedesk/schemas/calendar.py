# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel


class CalendarSegment(BaseModel):
    """A run of consecutive weekdays, half-open: [start, end_exclusive)."""

    start: date
    end_exclusive: date

    @property
    def days(self) -> int:
        return (self.end_exclusive - self.start).days


class CalendarEvent(BaseModel):
    """One visual block on the leave calendar, one per segment of a leave."""

    leave_id: uuid.UUID
    employee_id: uuid.UUID
    employee_name: str
    note: str | None
    color: str
    start: date
    end_exclusive: date


class CalendarResponse(BaseModel):
    """Calendar events intersecting the requested window."""

    start: date
    end: date
    items: list[CalendarEvent]
    total: int


class SegmentPreviewResponse(BaseModel):
    """Segments a leave of ``days`` business days starting at ``start_date`` would render as."""

    start_date: date
    days: int
    segments: list[CalendarSegment]
