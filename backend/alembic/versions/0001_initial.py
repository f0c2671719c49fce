"""Initial leave schema

Revision ID: 0001
Revises:
Create Date: 2026-03-02 00:00:00
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:  # type: ignore[type-arg]
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "leave_policy",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("company_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("is_company_default", sa.Boolean(), nullable=False),
        sa.Column("base_annual_days", sa.Integer(), nullable=False),
        sa.Column("seniority_step_years", sa.Integer(), nullable=False),
        sa.Column("bonus_per_step", sa.Integer(), nullable=False),
        sa.Column("accrual_method", sa.String(length=50), nullable=False),
        sa.Column("rounding_method", sa.String(length=50), nullable=False),
        sa.Column("allow_carryover", sa.Boolean(), nullable=False),
        sa.Column("max_carryover_days", sa.Integer(), nullable=True),
        sa.Column("carryover_expiry_month", sa.Integer(), nullable=True),
        sa.Column("carryover_expiry_day", sa.Integer(), nullable=True),
        sa.Column("max_negative_balance", sa.Integer(), nullable=False),
        sa.Column("max_consecutive_days", sa.Integer(), nullable=True),
        sa.Column("min_notice_days", sa.Integer(), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_leave_policy_company_id", "leave_policy", ["company_id"])
    op.create_index(
        "uq_leave_policy_company_default",
        "leave_policy",
        ["company_id"],
        unique=True,
        postgresql_where=sa.text("is_company_default"),
    )

    for table in ("blackout_period", "company_shutdown"):
        extra = (
            [sa.Column("allow_exceptions", sa.Boolean(), nullable=False)]
            if table == "blackout_period"
            else [
                sa.Column("days", sa.Integer(), nullable=False),
                sa.Column("deduct_from_allowance", sa.Boolean(), nullable=False),
            ]
        )
        op.create_table(
            table,
            sa.Column("id", sa.Uuid(), primary_key=True),
            sa.Column("company_id", sa.Uuid(), nullable=False),
            sa.Column("policy_id", sa.Uuid(), sa.ForeignKey("leave_policy.id", ondelete="CASCADE"), nullable=False),
            sa.Column("start_date", sa.Date(), nullable=False),
            sa.Column("end_date", sa.Date(), nullable=False),
            sa.Column("reason", sa.String(length=500), nullable=False),
            *extra,
            *_timestamps(),
        )
        op.create_index(f"ix_{table}_company_id", table, ["company_id"])
        op.create_index(f"ix_{table}_policy_id", table, ["policy_id"])

    op.create_table(
        "employee",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("company_id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("hired_at", sa.Date(), nullable=False),
        sa.Column("birth_date", sa.Date(), nullable=True),
        sa.Column("carryover_override_days", sa.Integer(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_employee_company_id", "employee", ["company_id"])

    op.create_table(
        "employee_policy_override",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("company_id", sa.Uuid(), nullable=False),
        sa.Column(
            "employee_id",
            sa.Uuid(),
            sa.ForeignKey("employee.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        ),
        sa.Column("base_annual_days", sa.Integer(), nullable=True),
        sa.Column("seniority_step_years", sa.Integer(), nullable=True),
        sa.Column("bonus_per_step", sa.Integer(), nullable=True),
        sa.Column("accrual_method", sa.String(length=50), nullable=True),
        sa.Column("rounding_method", sa.String(length=50), nullable=True),
        sa.Column("allow_carryover", sa.Boolean(), nullable=True),
        sa.Column("max_carryover_days", sa.Integer(), nullable=True),
        sa.Column("max_negative_balance", sa.Integer(), nullable=True),
        sa.Column("max_consecutive_days", sa.Integer(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_employee_policy_override_company_id", "employee_policy_override", ["company_id"])

    op.create_table(
        "leave",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("company_id", sa.Uuid(), nullable=False),
        sa.Column("employee_id", sa.Uuid(), sa.ForeignKey("employee.id", ondelete="CASCADE"), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("days", sa.Integer(), nullable=False),
        sa.Column("note", sa.String(length=1000), nullable=True),
        sa.Column("needs_review", sa.Boolean(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_leave_company_id", "leave", ["company_id"])
    op.create_index("ix_leave_employee_id", "leave", ["employee_id"])
    op.create_index("ix_leave_employee_start", "leave", ["employee_id", "start_date"])

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("company_id", sa.Uuid(), nullable=False),
        sa.Column("actor_id", sa.Uuid(), nullable=False),
        sa.Column("actor_role", sa.String(length=50), nullable=False),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.Uuid(), nullable=False),
        sa.Column("action", sa.String(length=50), nullable=False),
        sa.Column("before_json", sa.JSON(), nullable=True),
        sa.Column("after_json", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("ix_audit_log_company_id", "audit_log", ["company_id"])
    op.create_index("ix_audit_log_created_at", "audit_log", ["created_at"])
    op.create_index("ix_audit_entity", "audit_log", ["entity_type", "entity_id"])


def downgrade() -> None:
    for table in ("audit_log", "leave", "employee_policy_override", "employee", "company_shutdown", "blackout_period"):
        op.drop_table(table)
    op.drop_index("uq_leave_policy_company_default", table_name="leave_policy")
    op.drop_table("leave_policy")
