# ruff: noqa: TC003
from __future__ import annotations

import uuid
from datetime import date

import sqlalchemy as sa
from sqlmodel import Field

from leavedesk.models.base import TimestampMixin, UUIDBase


class Leave(UUIDBase, TimestampMixin, table=True):
    """A block of paid leave counted in business days from start_date."""

    __tablename__ = "leave"
    __table_args__ = (sa.Index("ix_leave_employee_start", "employee_id", "start_date"),)

    company_id: uuid.UUID = Field(index=True)
    employee_id: uuid.UUID = Field(
        sa_column=sa.Column(sa.Uuid, sa.ForeignKey("employee.id", ondelete="CASCADE"), nullable=False, index=True),
    )
    start_date: date
    days: int
    note: str | None = Field(default=None, max_length=1000)
    needs_review: bool = False
