# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from leavedesk.models.enums import AccrualMethod, RoundingMethod


class PolicyOverridePayload(BaseModel):
    """Per-employee replacements for policy fields. Null fields inherit the policy value."""

    model_config = ConfigDict(from_attributes=True)

    base_annual_days: int | None = Field(default=None, ge=0)
    seniority_step_years: int | None = Field(default=None, gt=0)
    bonus_per_step: int | None = Field(default=None, ge=0)
    accrual_method: AccrualMethod | None = None
    rounding_method: RoundingMethod | None = None
    allow_carryover: bool | None = None
    max_carryover_days: int | None = Field(default=None, ge=0)
    max_negative_balance: int | None = Field(default=None, le=0)
    max_consecutive_days: int | None = Field(default=None, gt=0)


class PolicyOverrideResponse(PolicyOverridePayload):
    id: uuid.UUID
    employee_id: uuid.UUID
    updated_at: datetime


class CreateEmployeeRequest(BaseModel):
    """Request body for creating an employee."""

    name: str = Field(min_length=1, max_length=255)
    hired_at: date
    birth_date: date | None = None
    carryover_override_days: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _validate_dates(self) -> Self:
        if self.birth_date is not None and self.birth_date >= self.hired_at:
            msg = "birth_date must precede hired_at"
            raise ValueError(msg)
        return self


class UpdateEmployeeRequest(BaseModel):
    """Partial update of an employee. Send ``carryover_override_days: null`` to clear it."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    hired_at: date | None = None
    birth_date: date | None = None
    carryover_override_days: int | None = Field(default=None, ge=0)


class TenureResponse(BaseModel):
    years: int
    months: int
    days: int
    total_days: int


class EmployeeResponse(BaseModel):
    """Employee with tenure and age derived as of today."""

    id: uuid.UUID
    company_id: uuid.UUID
    name: str
    hired_at: date
    birth_date: date | None
    carryover_override_days: int | None
    tenure: TenureResponse
    age: int | None
    policy_override: PolicyOverrideResponse | None = None
    created_at: datetime
    updated_at: datetime


class EmployeeListResponse(BaseModel):
    items: list[EmployeeResponse]
    total: int
