# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query

from leavedesk.api.deps import AuthDep, TodayDep, validate_company_scope
from leavedesk.db import SessionDep
from leavedesk.schemas.balance import BalanceListResponse, EmployeeBalanceResponse
from leavedesk.services import balance as balance_service

balances_router = APIRouter(
    prefix="/companies/{company_id}",
    tags=["balances"],
    dependencies=[Depends(validate_company_scope)],
)


@balances_router.get("/employees/{employee_id}/balance", response_model=EmployeeBalanceResponse)
async def get_employee_balance(
    employee_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
    today: TodayDep,
    year: int | None = Query(default=None, ge=1900, le=9999),
    as_of: date | None = Query(default=None),
) -> EmployeeBalanceResponse:
    """Balance for one policy year. ``as_of`` overrides ``year``; both default to today."""
    return await balance_service.get_employee_balance(
        session, auth.company_id, employee_id, today=today, year=year, as_of=as_of
    )


@balances_router.get("/balances", response_model=BalanceListResponse)
async def list_employee_balances(
    session: SessionDep,
    auth: AuthDep,
    today: TodayDep,
    year: int | None = Query(default=None, ge=1900, le=9999),
    as_of: date | None = Query(default=None),
) -> BalanceListResponse:
    return await balance_service.list_employee_balances(
        session, auth.company_id, today=today, year=year, as_of=as_of
    )
