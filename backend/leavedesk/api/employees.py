# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, Response, status

from leavedesk.api.deps import AdminDep, AuthDep, TodayDep, validate_company_scope
from leavedesk.db import SessionDep
from leavedesk.schemas.employee import (
    CreateEmployeeRequest,
    EmployeeListResponse,
    EmployeeResponse,
    PolicyOverridePayload,
    UpdateEmployeeRequest,
)
from leavedesk.services import employee as employee_service

employees_router = APIRouter(
    prefix="/companies/{company_id}/employees",
    tags=["employees"],
    dependencies=[Depends(validate_company_scope)],
)


@employees_router.post("", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED)
async def create_employee(
    payload: CreateEmployeeRequest,
    session: SessionDep,
    auth: AdminDep,
    today: TodayDep,
) -> EmployeeResponse:
    return await employee_service.create_employee(session, auth, payload, today)


@employees_router.get("", response_model=EmployeeListResponse)
async def list_employees(
    session: SessionDep,
    auth: AuthDep,
    today: TodayDep,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=100, ge=1, le=500),
) -> EmployeeListResponse:
    return await employee_service.list_employees(session, auth.company_id, today, offset, limit)


@employees_router.get("/{employee_id}", response_model=EmployeeResponse)
async def get_employee(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    today: TodayDep,
) -> EmployeeResponse:
    """Employee with tenure and age as of today."""
    return await employee_service.get_employee(session, auth.company_id, employee_id, today)


@employees_router.put("/{employee_id}", response_model=EmployeeResponse)
async def update_employee(
    employee_id: uuid.UUID,
    payload: UpdateEmployeeRequest,
    session: SessionDep,
    auth: AdminDep,
    today: TodayDep,
) -> EmployeeResponse:
    return await employee_service.update_employee(session, auth, employee_id, payload, today)


@employees_router.delete("/{employee_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_employee(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> Response:
    """Delete an employee and all of their leaves."""
    await employee_service.delete_employee(session, auth, employee_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@employees_router.put("/{employee_id}/policy-override", response_model=EmployeeResponse)
async def upsert_policy_override(
    employee_id: uuid.UUID,
    payload: PolicyOverridePayload,
    session: SessionDep,
    auth: AdminDep,
    today: TodayDep,
) -> EmployeeResponse:
    """Set the employee's policy override. Fields left null inherit the company policy."""
    return await employee_service.upsert_policy_override(session, auth, employee_id, payload, today)


@employees_router.delete("/{employee_id}/policy-override", status_code=status.HTTP_204_NO_CONTENT)
async def delete_policy_override(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> Response:
    await employee_service.delete_policy_override(session, auth, employee_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
