# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from leavedesk.models.enums import AccrualMethod, RoundingMethod

# ---------------------------------------------------------------------------
# Core inputs
# ---------------------------------------------------------------------------


class LeavePolicySettings(BaseModel):
    """Entitlement and scheduling rules, validated at save time.

    The accrual, balance and constraint functions assume an instance of this
    model is already valid and never re-check it.
    """

    model_config = ConfigDict(from_attributes=True)

    base_annual_days: int = Field(ge=0)
    seniority_step_years: int = Field(gt=0)
    bonus_per_step: int = Field(default=0, ge=0)
    accrual_method: AccrualMethod = AccrualMethod.AT_YEAR_START
    rounding_method: RoundingMethod = RoundingMethod.FLOOR
    allow_carryover: bool = False
    max_carryover_days: int | None = Field(default=None, ge=0)
    carryover_expiry_month: int | None = Field(default=None, ge=1, le=12)
    carryover_expiry_day: int | None = Field(default=None, ge=1, le=31)
    max_negative_balance: int = Field(default=0, le=0, description="Lowest permitted balance; 0 forbids going negative")
    max_consecutive_days: int | None = Field(default=None, gt=0)
    min_notice_days: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _validate_expiry(self) -> Self:
        if (self.carryover_expiry_month is None) != (self.carryover_expiry_day is None):
            msg = "carryover_expiry_month and carryover_expiry_day must be set together"
            raise ValueError(msg)
        return self


class BlackoutWindow(BaseModel):
    """A blackout period as seen by the constraint validator."""

    model_config = ConfigDict(from_attributes=True)

    start_date: date
    end_date: date
    reason: str = Field(min_length=1, max_length=500)
    allow_exceptions: bool = False

    @model_validator(mode="after")
    def _validate_range(self) -> Self:
        if self.end_date < self.start_date:
            msg = "end_date must not precede start_date"
            raise ValueError(msg)
        return self


class ShutdownWindow(BaseModel):
    """A company shutdown as seen by the balance ledger and validator."""

    model_config = ConfigDict(from_attributes=True)

    start_date: date
    end_date: date
    days: int = Field(ge=0, description="Business days consumed within the range")
    reason: str = Field(min_length=1, max_length=500)
    deduct_from_allowance: bool = True

    @model_validator(mode="after")
    def _validate_range(self) -> Self:
        if self.end_date < self.start_date:
            msg = "end_date must not precede start_date"
            raise ValueError(msg)
        if self.days > (self.end_date - self.start_date).days + 1:
            msg = "days cannot exceed the calendar span of the shutdown"
            raise ValueError(msg)
        return self


# ---------------------------------------------------------------------------
# API request schemas
# ---------------------------------------------------------------------------


class CreatePolicyRequest(LeavePolicySettings):
    """Request body for creating a leave policy."""

    name: str = Field(min_length=1, max_length=255)
    is_company_default: bool = False
    active: bool = True


class UpdatePolicyRequest(BaseModel):
    """Partial update of a leave policy. Omitted fields keep their value."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    base_annual_days: int | None = None
    seniority_step_years: int | None = None
    bonus_per_step: int | None = None
    accrual_method: AccrualMethod | None = None
    rounding_method: RoundingMethod | None = None
    allow_carryover: bool | None = None
    max_carryover_days: int | None = None
    carryover_expiry_month: int | None = None
    carryover_expiry_day: int | None = None
    max_negative_balance: int | None = None
    max_consecutive_days: int | None = None
    min_notice_days: int | None = None
    active: bool | None = None


class BlackoutPeriodPayload(BlackoutWindow):
    """Request body for creating a blackout period."""


class UpdateBlackoutPeriodRequest(BaseModel):
    """Partial update of a blackout period."""

    start_date: date | None = None
    end_date: date | None = None
    reason: str | None = Field(default=None, min_length=1, max_length=500)
    allow_exceptions: bool | None = None


class CompanyShutdownPayload(BaseModel):
    """Request body for creating a company shutdown.

    When ``days`` is omitted it defaults to the number of weekdays in the range.
    """

    start_date: date
    end_date: date
    days: int | None = Field(default=None, ge=0)
    reason: str = Field(min_length=1, max_length=500)
    deduct_from_allowance: bool = True


class UpdateCompanyShutdownRequest(BaseModel):
    """Partial update of a company shutdown."""

    start_date: date | None = None
    end_date: date | None = None
    days: int | None = Field(default=None, ge=0)
    reason: str | None = Field(default=None, min_length=1, max_length=500)
    deduct_from_allowance: bool | None = None


# ---------------------------------------------------------------------------
# API response schemas
# ---------------------------------------------------------------------------


class BlackoutPeriodResponse(BlackoutWindow):
    """Response schema for a blackout period."""

    id: uuid.UUID
    policy_id: uuid.UUID
    created_at: datetime


class CompanyShutdownResponse(ShutdownWindow):
    """Response schema for a company shutdown."""

    id: uuid.UUID
    policy_id: uuid.UUID
    created_at: datetime


class PolicyResponse(LeavePolicySettings):
    """Response schema for a leave policy with its blackout and shutdown children."""

    id: uuid.UUID
    company_id: uuid.UUID
    name: str
    is_company_default: bool
    active: bool
    created_at: datetime
    updated_at: datetime
    blackout_periods: list[BlackoutPeriodResponse] = []
    company_shutdowns: list[CompanyShutdownResponse] = []


class PolicyListResponse(BaseModel):
    """Paginated list of leave policies."""

    items: list[PolicyResponse]
    total: int
