# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, Response, status

from leavedesk.api.deps import AuthDep, TodayDep, validate_company_scope
from leavedesk.db import SessionDep
from leavedesk.schemas.leave import (
    LeaveListResponse,
    LeaveMutationResponse,
    LeaveRequest,
    LeaveValidationResponse,
    UpdateLeaveRequest,
)
from leavedesk.services import leave as leave_service

employee_leaves_router = APIRouter(
    prefix="/companies/{company_id}/employees/{employee_id}/leaves",
    tags=["leaves"],
    dependencies=[Depends(validate_company_scope)],
)

leaves_router = APIRouter(
    prefix="/companies/{company_id}/leaves",
    tags=["leaves"],
    dependencies=[Depends(validate_company_scope)],
)


@employee_leaves_router.get("", response_model=LeaveListResponse)
async def list_leaves(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    year: int | None = Query(default=None, ge=1900, le=9999),
) -> LeaveListResponse:
    return await leave_service.list_leaves(session, auth.company_id, employee_id, year)


@employee_leaves_router.post("/validate", response_model=LeaveValidationResponse)
async def validate_leave(
    employee_id: uuid.UUID,
    payload: LeaveRequest,
    session: SessionDep,
    auth: AuthDep,
    today: TodayDep,
) -> LeaveValidationResponse:
    """Check a leave request without saving it."""
    return await leave_service.validate_leave(session, auth.company_id, employee_id, payload, today)


@employee_leaves_router.post(
    "",
    response_model=LeaveMutationResponse,
    status_code=status.HTTP_201_CREATED,
    responses={status.HTTP_400_BAD_REQUEST: {"model": LeaveMutationResponse}},
)
async def create_leave(
    employee_id: uuid.UUID,
    payload: LeaveRequest,
    response: Response,
    session: SessionDep,
    auth: AuthDep,
    today: TodayDep,
) -> LeaveMutationResponse:
    """Submit a leave. Rejections come back as 400 with the violated rule."""
    result = await leave_service.create_leave(session, auth, employee_id, payload, today)
    if not result.decision.accepted:
        response.status_code = status.HTTP_400_BAD_REQUEST
    return result


@leaves_router.put(
    "/{leave_id}",
    response_model=LeaveMutationResponse,
    responses={status.HTTP_400_BAD_REQUEST: {"model": LeaveMutationResponse}},
)
async def update_leave(
    leave_id: uuid.UUID,
    payload: UpdateLeaveRequest,
    response: Response,
    session: SessionDep,
    auth: AuthDep,
    today: TodayDep,
) -> LeaveMutationResponse:
    result = await leave_service.update_leave(session, auth, leave_id, payload, today)
    if not result.decision.accepted:
        response.status_code = status.HTTP_400_BAD_REQUEST
    return result


@leaves_router.delete("/{leave_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_leave(
    leave_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> Response:
    await leave_service.delete_leave(session, auth, leave_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
