# ruff: noqa: TC003
"""Leave service: dry-run validation, and creation/update serialized per employee.

Create and update follow the same sequence inside one transaction:

1. Lock the employee row (SELECT ... FOR UPDATE).
2. Recompute the balance from committed leaves.
3. If the caller sent ``expected_remaining`` and it differs, raise a conflict.
4. Run the constraint validator.
5. On acceptance, write the leave and the audit entry, then commit.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from leavedesk.exceptions import AppError, ConcurrencyConflictError
from leavedesk.models.enums import AuditAction, AuditEntityType
from leavedesk.models.leave import Leave
from leavedesk.schemas.leave import (
    LeaveDecision,
    LeaveListResponse,
    LeaveMutationResponse,
    LeaveResponse,
    LeaveValidationResponse,
)
from leavedesk.services.audit import model_to_audit_dict, write_audit_log
from leavedesk.services.balance import compute_employee_balance, effective_policy_for, resolve_reference_date
from leavedesk.services.constraints import validate_leave_request
from leavedesk.services.dates import year_bounds
from leavedesk.services.employee import get_employee_or_404

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leavedesk.models.employee import Employee
    from leavedesk.schemas.auth import AuthContext
    from leavedesk.schemas.balance import LeaveBalance
    from leavedesk.schemas.leave import LeaveRequest, UpdateLeaveRequest
    from leavedesk.services.policy import EffectivePolicy

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


async def _get_leave_or_404(session: AsyncSession, company_id: uuid.UUID, leave_id: uuid.UUID) -> Leave:
    result = await session.execute(
        select(Leave).where(
            col(Leave.id) == leave_id,
            col(Leave.company_id) == company_id,
        )
    )
    leave = result.scalar_one_or_none()
    if leave is None:
        raise AppError("Leave not found", status_code=404)
    return leave


async def _decide(
    session: AsyncSession,
    employee: Employee,
    effective: EffectivePolicy,
    start_date: date,
    days: int,
    today: date,
    exclude_leave_id: uuid.UUID | None = None,
) -> tuple[LeaveDecision, LeaveBalance]:
    """Validate a request against the balance of the policy year it starts in."""
    reference_date = resolve_reference_date(today, start_date.year)
    balance = await compute_employee_balance(session, employee, effective, reference_date, exclude_leave_id)
    decision = validate_leave_request(
        policy=effective.settings,
        blackouts=effective.blackouts,
        shutdowns=effective.shutdowns,
        start_date=start_date,
        days=days,
        remaining=balance.remaining,
        today=today,
    )
    return decision, balance


def _check_expected_remaining(expected: int | None, balance: LeaveBalance) -> None:
    if expected is not None and expected != balance.remaining:
        raise ConcurrencyConflictError(
            f"Balance changed since validation (expected {expected} remaining, found {balance.remaining}); "
            "re-validate and retry"
        )


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def list_leaves(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
    year: int | None = None,
) -> LeaveListResponse:
    """Leaves of an employee, optionally limited to those starting in ``year``."""
    employee = await get_employee_or_404(session, company_id, employee_id)
    filters = [col(Leave.employee_id) == employee.id]
    if year is not None:
        year_start, year_end = year_bounds(year)
        filters.extend([col(Leave.start_date) >= year_start, col(Leave.start_date) <= year_end])

    result = await session.execute(select(Leave).where(*filters).order_by(col(Leave.start_date)))
    leaves = list(result.scalars().all())
    return LeaveListResponse(items=[LeaveResponse.model_validate(lv) for lv in leaves], total=len(leaves))


async def validate_leave(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
    payload: LeaveRequest,
    today: date,
) -> LeaveValidationResponse:
    """Dry run: what would happen if this leave were submitted now. Writes nothing."""
    employee = await get_employee_or_404(session, company_id, employee_id)
    effective = await effective_policy_for(session, company_id, employee.id)
    decision, balance = await _decide(session, employee, effective, payload.start_date, payload.days, today)
    return LeaveValidationResponse(decision=decision, balance=balance)


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------


async def create_leave(
    session: AsyncSession,
    auth: AuthContext,
    employee_id: uuid.UUID,
    payload: LeaveRequest,
    today: date,
) -> LeaveMutationResponse:
    """Validate and persist a leave. A rejection is returned, not raised."""
    employee = await get_employee_or_404(session, auth.company_id, employee_id, for_update=True)
    effective = await effective_policy_for(session, auth.company_id, employee.id)
    decision, balance = await _decide(session, employee, effective, payload.start_date, payload.days, today)
    _check_expected_remaining(payload.expected_remaining, balance)

    if not decision.accepted:
        logger.info(
            "Leave rejected employee=%s start=%s days=%d code=%s",
            employee.id,
            payload.start_date,
            payload.days,
            decision.violation.code if decision.violation else None,
        )
        return LeaveMutationResponse(decision=decision, leave=None, balance=balance)

    leave = Leave(
        company_id=auth.company_id,
        employee_id=employee.id,
        start_date=payload.start_date,
        days=payload.days,
        note=payload.note,
        needs_review=decision.needs_review,
    )
    session.add(leave)
    await session.flush()

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.LEAVE,
        entity_id=leave.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(leave),
    )
    await session.commit()
    await session.refresh(leave)
    logger.info(
        "Leave accepted employee=%s leave=%s start=%s days=%d needs_review=%s",
        employee.id,
        leave.id,
        leave.start_date,
        leave.days,
        leave.needs_review,
    )

    balance_after = await compute_employee_balance(session, employee, effective, balance.as_of)
    return LeaveMutationResponse(
        decision=decision,
        leave=LeaveResponse.model_validate(leave),
        balance=balance_after,
    )


async def update_leave(
    session: AsyncSession,
    auth: AuthContext,
    leave_id: uuid.UUID,
    payload: UpdateLeaveRequest,
    today: date,
) -> LeaveMutationResponse:
    """Change a leave. Moving or resizing it re-validates without counting the leave itself."""
    leave = await _get_leave_or_404(session, auth.company_id, leave_id)
    employee = await get_employee_or_404(session, auth.company_id, leave.employee_id, for_update=True)
    effective = await effective_policy_for(session, auth.company_id, employee.id)

    changes = payload.model_dump(exclude_unset=True, exclude={"expected_remaining"})
    for required in ("start_date", "days"):
        if required in changes and changes[required] is None:
            raise AppError(f"{required} cannot be null", status_code=422)
    start_date = changes.get("start_date", leave.start_date)
    days = changes.get("days", leave.days)

    current = await compute_employee_balance(
        session, employee, effective, resolve_reference_date(today, leave.start_date.year)
    )
    _check_expected_remaining(payload.expected_remaining, current)

    rescheduled = start_date != leave.start_date or days != leave.days
    if rescheduled:
        decision, balance = await _decide(
            session, employee, effective, start_date, days, today, exclude_leave_id=leave.id
        )
        if not decision.accepted:
            logger.info(
                "Leave update rejected leave=%s start=%s days=%d code=%s",
                leave.id,
                start_date,
                days,
                decision.violation.code if decision.violation else None,
            )
            return LeaveMutationResponse(decision=decision, leave=None, balance=balance)
    else:
        # Note-only edits keep the leave as it was accepted.
        decision = LeaveDecision(accepted=True, needs_review=leave.needs_review)
        balance = current

    before = model_to_audit_dict(leave)
    leave.start_date = start_date
    leave.days = days
    if "note" in changes:
        leave.note = changes["note"]
    if rescheduled:
        leave.needs_review = decision.needs_review
    session.add(leave)
    await session.flush()

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.LEAVE,
        entity_id=leave.id,
        action=AuditAction.UPDATE,
        before_json=before,
        after_json=model_to_audit_dict(leave),
    )
    await session.commit()
    await session.refresh(leave)

    balance_after = await compute_employee_balance(session, employee, effective, balance.as_of)
    return LeaveMutationResponse(
        decision=decision,
        leave=LeaveResponse.model_validate(leave),
        balance=balance_after,
    )


async def delete_leave(session: AsyncSession, auth: AuthContext, leave_id: uuid.UUID) -> None:
    leave = await _get_leave_or_404(session, auth.company_id, leave_id)
    before = model_to_audit_dict(leave)
    await session.delete(leave)

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.LEAVE,
        entity_id=leave_id,
        action=AuditAction.DELETE,
        before_json=before,
    )
    await session.commit()
