"""Calendar segmenter: expands business-day leaves into weekend-free calendar blocks."""

from __future__ import annotations

from datetime import date, timedelta
from typing import TYPE_CHECKING

from sqlalchemy import func, select
from sqlmodel import col

from leavedesk.exceptions import InvalidInputError
from leavedesk.models.employee import Employee
from leavedesk.models.leave import Leave
from leavedesk.schemas.calendar import CalendarEvent, CalendarResponse, CalendarSegment
from leavedesk.services.dates import next_weekday

if TYPE_CHECKING:
    import uuid
    from collections.abc import Iterable, Mapping

    from sqlalchemy.ext.asyncio import AsyncSession

_WORKWEEK_DAYS = 5
_HUE_MASK = 0xFFFFFFFF
_WEEK_DAYS = 7
_WEEKEND_DAYS = 2

# ---------------------------------------------------------------------------
# Pure computation helpers (no DB)
# ---------------------------------------------------------------------------


def segment_leave(start_date: date, business_days: int) -> list[CalendarSegment]:
    """Split ``business_days`` weekdays from the first weekday at/after ``start_date`` into Mon-Fri runs.

    No segment ever covers a Saturday or Sunday, and the segment lengths
    always sum to ``business_days``. Non-positive input yields no segments.
    """
    if business_days <= 0:
        return []

    segments: list[CalendarSegment] = []
    cursor = next_weekday(start_date)
    remaining = business_days

    while remaining > 0:
        left_in_week = _WORKWEEK_DAYS - cursor.isoweekday() + 1
        take = min(remaining, left_in_week)
        end_exclusive = cursor + timedelta(days=take)
        segments.append(CalendarSegment(start=cursor, end_exclusive=end_exclusive))
        remaining -= take
        cursor = next_weekday(end_exclusive)

    return segments


def business_day_span(start_date: date, business_days: int) -> tuple[date, date]:
    """Return the first and last business day (inclusive) covered by a leave."""
    segments = segment_leave(start_date, business_days)
    if not segments:
        raise InvalidInputError("Leave must cover at least one business day")
    return segments[0].start, segments[-1].end_exclusive - timedelta(days=1)


def calendar_reach(business_days: int) -> int:
    """Upper bound on the calendar days from a leave's start_date to its last segment's end_exclusive.

    A start on Saturday loses the weekend, then every started work week takes
    at most seven calendar days.
    """
    if business_days <= 0:
        return 0
    weeks = -(-business_days // _WORKWEEK_DAYS)
    return _WEEKEND_DAYS + weeks * _WEEK_DAYS


def color_for_employee(employee_id: uuid.UUID | str) -> str:
    """Deterministic, well-spread HSL color for an employee's calendar blocks."""
    h = 0
    for ch in str(employee_id):
        h = (h * 31 + ord(ch)) & _HUE_MASK
    return f"hsl({h % 360} 70% 45%)"


def build_calendar_events(
    leaves: Iterable[Leave],
    employees: Mapping[uuid.UUID, Employee],
    window_start: date | None = None,
    window_end: date | None = None,
) -> list[CalendarEvent]:
    """One event per segment of each leave, optionally clipped to a half-open window.

    A segment is kept when it intersects [window_start, window_end); segments
    are never cut, so a block partially inside the window is returned whole.
    """
    events: list[CalendarEvent] = []
    for leave in leaves:
        employee = employees.get(leave.employee_id)
        if employee is None:
            continue
        color = color_for_employee(employee.id)
        for segment in segment_leave(leave.start_date, leave.days):
            if window_end is not None and segment.start >= window_end:
                continue
            if window_start is not None and segment.end_exclusive <= window_start:
                continue
            events.append(
                CalendarEvent(
                    leave_id=leave.id,
                    employee_id=employee.id,
                    employee_name=employee.name,
                    note=leave.note,
                    color=color,
                    start=segment.start,
                    end_exclusive=segment.end_exclusive,
                )
            )
    events.sort(key=lambda e: (e.start, e.employee_name, e.leave_id))
    return events


# ---------------------------------------------------------------------------
# DB-backed
# ---------------------------------------------------------------------------


async def load_leaves_in_window(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_ids: list[uuid.UUID],
    start: date,
    end: date,
) -> list[Leave]:
    """Leaves that can reach into [start, end).

    The lower bound comes from the longest leave on record for these
    employees, so history outside the window is never loaded.
    """
    scope = [col(Leave.company_id) == company_id, col(Leave.employee_id).in_(employee_ids)]
    longest_result = await session.execute(select(func.max(Leave.days)).where(*scope))
    longest = longest_result.scalar_one()
    if longest is None:
        return []

    earliest_start = start - timedelta(days=calendar_reach(longest))
    result = await session.execute(
        select(Leave)
        .where(
            *scope,
            col(Leave.start_date) > earliest_start,
            col(Leave.start_date) < end,
        )
        .order_by(col(Leave.start_date))
    )
    return list(result.scalars().all())


async def list_calendar_events(
    session: AsyncSession,
    company_id: uuid.UUID,
    start: date,
    end: date,
    employee_ids: list[uuid.UUID] | None = None,
) -> CalendarResponse:
    """Calendar events for the half-open window [start, end)."""
    if end <= start:
        raise InvalidInputError("end must be after start")

    employee_filter = [col(Employee.company_id) == company_id]
    if employee_ids:
        employee_filter.append(col(Employee.id).in_(employee_ids))
    employees_result = await session.execute(select(Employee).where(*employee_filter))
    employees = {e.id: e for e in employees_result.scalars().all()}
    if not employees:
        return CalendarResponse(start=start, end=end, items=[], total=0)

    leaves = await load_leaves_in_window(session, company_id, list(employees), start, end)
    items = build_calendar_events(leaves, employees, start, end)
    return CalendarResponse(start=start, end=end, items=items, total=len(items))
