# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query

from leavedesk.api.deps import AuthDep, validate_company_scope
from leavedesk.db import SessionDep
from leavedesk.schemas.calendar import CalendarResponse, SegmentPreviewResponse
from leavedesk.services import calendar as calendar_service

calendar_router = APIRouter(
    prefix="/companies/{company_id}/calendar",
    tags=["calendar"],
    dependencies=[Depends(validate_company_scope)],
)


@calendar_router.get("", response_model=CalendarResponse)
async def list_calendar_events(
    session: SessionDep,
    auth: AuthDep,
    start: date = Query(),
    end: date = Query(description="Exclusive"),
    employee_id: list[uuid.UUID] | None = Query(default=None),
) -> CalendarResponse:
    """One event per weekday segment of every leave intersecting [start, end)."""
    return await calendar_service.list_calendar_events(session, auth.company_id, start, end, employee_id)


@calendar_router.get("/segments", response_model=SegmentPreviewResponse)
async def preview_segments(
    auth: AuthDep,
    start_date: date = Query(),
    days: int = Query(le=366),
) -> SegmentPreviewResponse:
    """How a leave of ``days`` business days starting at ``start_date`` would render."""
    return SegmentPreviewResponse(
        start_date=start_date,
        days=days,
        segments=calendar_service.segment_leave(start_date, days),
    )
