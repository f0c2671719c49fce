# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

from pydantic import BaseModel


class LeaveBalance(BaseModel):
    """Derived leave balance for one employee and one policy year."""

    year: int
    as_of: date
    annual_entitlement: int
    accrued: int
    carried_over: int
    taken: int
    shutdown_days: int
    voluntary_days: int
    remaining: int
    negative_floor: int
    carryover_expires_on: date | None = None


class EmployeeBalanceResponse(LeaveBalance):
    """Balance for a single employee, as rendered by the balance UI."""

    employee_id: uuid.UUID
    employee_name: str


class BalanceListResponse(BaseModel):
    """Balances for every employee of a company."""

    items: list[EmployeeBalanceResponse]
    total: int
