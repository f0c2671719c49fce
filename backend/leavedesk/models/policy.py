# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

import sqlalchemy as sa
from sqlmodel import Field

from leavedesk.models.base import TimestampMixin, UUIDBase
from leavedesk.models.enums import AccrualMethod, RoundingMethod


class LeavePolicy(UUIDBase, TimestampMixin, table=True):
    """Organization-wide paid-leave rules. Exactly one per company is the default."""

    __tablename__ = "leave_policy"
    __table_args__ = (
        sa.Index(
            "uq_leave_policy_company_default",
            "company_id",
            unique=True,
            postgresql_where=sa.text("is_company_default"),
            sqlite_where=sa.text("is_company_default"),
        ),
    )

    company_id: uuid.UUID = Field(index=True)
    name: str = Field(max_length=255)
    is_company_default: bool = Field(default=False)
    base_annual_days: int
    seniority_step_years: int
    bonus_per_step: int = 0
    accrual_method: str = Field(default=AccrualMethod.AT_YEAR_START, max_length=50)
    rounding_method: str = Field(default=RoundingMethod.FLOOR, max_length=50)
    allow_carryover: bool = False
    max_carryover_days: int | None = None
    carryover_expiry_month: int | None = None
    carryover_expiry_day: int | None = None
    max_negative_balance: int = 0
    max_consecutive_days: int | None = None
    min_notice_days: int | None = None
    active: bool = True


class BlackoutPeriod(UUIDBase, TimestampMixin, table=True):
    """Date range in which leave is disallowed, or allowed only by exception."""

    __tablename__ = "blackout_period"

    company_id: uuid.UUID = Field(index=True)
    policy_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("leave_policy.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    start_date: date
    end_date: date
    reason: str = Field(max_length=500)
    allow_exceptions: bool = False


class CompanyShutdown(UUIDBase, TimestampMixin, table=True):
    """Organization-wide closure that may consume every employee's allowance."""

    __tablename__ = "company_shutdown"

    company_id: uuid.UUID = Field(index=True)
    policy_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("leave_policy.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    start_date: date
    end_date: date
    days: int
    reason: str = Field(max_length=500)
    deduct_from_allowance: bool = True
