# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

import sqlalchemy as sa
from sqlmodel import Field

from leavedesk.models.base import TimestampMixin, UUIDBase


class Employee(UUIDBase, TimestampMixin, table=True):
    """A person who earns and takes paid leave. Entitlement is always derived."""

    __tablename__ = "employee"

    company_id: uuid.UUID = Field(index=True)
    name: str = Field(max_length=255)
    hired_at: date
    birth_date: date | None = None
    carryover_override_days: int | None = None


class EmployeePolicyOverride(UUIDBase, TimestampMixin, table=True):
    """Per-employee replacements for individual policy fields. NULL means inherit."""

    __tablename__ = "employee_policy_override"

    company_id: uuid.UUID = Field(index=True)
    employee_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("employee.id", ondelete="CASCADE"), nullable=False, unique=True),
    )
    base_annual_days: int | None = None
    seniority_step_years: int | None = None
    bonus_per_step: int | None = None
    accrual_method: str | None = Field(default=None, max_length=50)
    rounding_method: str | None = Field(default=None, max_length=50)
    allow_carryover: bool | None = None
    max_carryover_days: int | None = None
    max_negative_balance: int | None = None
    max_consecutive_days: int | None = None
