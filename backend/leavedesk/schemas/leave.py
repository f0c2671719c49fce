# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from leavedesk.models.enums import ConstraintViolationCode, ConstraintWarningCode
from leavedesk.schemas.balance import LeaveBalance

# ---------------------------------------------------------------------------
# Validation outcome
# ---------------------------------------------------------------------------


class ConstraintViolation(BaseModel):
    """The first rule a leave request failed."""

    code: ConstraintViolationCode
    message: str


class ConstraintWarning(BaseModel):
    """A condition that does not block the request but should be surfaced."""

    code: ConstraintWarningCode
    message: str


class LeaveDecision(BaseModel):
    """Outcome of validating a leave request against policy and balance."""

    accepted: bool
    violation: ConstraintViolation | None = None
    warnings: list[ConstraintWarning] = []
    needs_review: bool = False
    span_start: date | None = None
    span_end: date | None = None


# ---------------------------------------------------------------------------
# API request schemas
# ---------------------------------------------------------------------------


class LeaveRequest(BaseModel):
    """Request body for validating or creating a leave."""

    start_date: date
    days: int = Field(gt=0, description="Business days")
    note: str | None = Field(default=None, max_length=1000)
    expected_remaining: int | None = Field(
        default=None,
        description="Remaining balance the client validated against; a mismatch is a conflict",
    )


class UpdateLeaveRequest(BaseModel):
    """Partial update of a leave. Omitted fields keep their value."""

    start_date: date | None = None
    days: int | None = Field(default=None, gt=0)
    note: str | None = Field(default=None, max_length=1000)
    expected_remaining: int | None = None


# ---------------------------------------------------------------------------
# API response schemas
# ---------------------------------------------------------------------------


class LeaveResponse(BaseModel):
    """Response schema for a persisted leave."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    company_id: uuid.UUID
    employee_id: uuid.UUID
    start_date: date
    days: int
    note: str | None
    needs_review: bool
    created_at: datetime
    updated_at: datetime


class LeaveListResponse(BaseModel):
    """Leaves of one employee for one policy year."""

    items: list[LeaveResponse]
    total: int


class LeaveValidationResponse(BaseModel):
    """Dry-run result: the decision and the balance it was checked against."""

    decision: LeaveDecision
    balance: LeaveBalance


class LeaveMutationResponse(BaseModel):
    """Result of creating or updating a leave. ``leave`` is null on rejection."""

    decision: LeaveDecision
    leave: LeaveResponse | None = None
    balance: LeaveBalance
