"""Balance ledger: accrued + carried over - taken, for one employee and one policy year.

Balances are never stored. They are derived from the hire date, the effective
policy, the employee's leaves and the company shutdowns every time they are
read, so policy edits apply retroactively.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlmodel import col

from leavedesk.models.employee import Employee, EmployeePolicyOverride
from leavedesk.models.leave import Leave
from leavedesk.schemas.balance import BalanceListResponse, EmployeeBalanceResponse, LeaveBalance
from leavedesk.services.accrual import annual_entitlement, entitled_days
from leavedesk.services.constraints import negative_floor
from leavedesk.services.dates import ranges_overlap, safe_date, year_bounds
from leavedesk.services.employee import get_employee_or_404, get_policy_override
from leavedesk.services.policy import load_company_policy, with_override

if TYPE_CHECKING:
    import uuid
    from collections.abc import Iterable, Sequence
    from datetime import date

    from sqlalchemy.ext.asyncio import AsyncSession

    from leavedesk.schemas.policy import LeavePolicySettings, ShutdownWindow
    from leavedesk.services.policy import EffectivePolicy

# ---------------------------------------------------------------------------
# Pure computation helpers (no DB)
# ---------------------------------------------------------------------------


def carryover_expiry_date(policy: LeavePolicySettings, year: int) -> date | None:
    """Last day carried-over days may be used in ``year``, or None if they never expire."""
    if policy.carryover_expiry_month is None or policy.carryover_expiry_day is None:
        return None
    return safe_date(year, policy.carryover_expiry_month, policy.carryover_expiry_day)


def compute_carryover(
    policy: LeavePolicySettings,
    prior_year_remaining: int,
    reference_date: date,
    override_days: int | None = None,
) -> int:
    """Days rolled into the year containing ``reference_date``.

    A manual override is taken as-is. The carryover switch, the cap and the
    expiry only shape the computed amount.
    """
    if override_days is not None:
        return override_days
    if not policy.allow_carryover:
        return 0
    amount = max(prior_year_remaining, 0)
    if policy.max_carryover_days is not None:
        amount = min(amount, policy.max_carryover_days)
    expiry = carryover_expiry_date(policy, reference_date.year)
    if expiry is not None and reference_date > expiry:
        return 0
    return amount


def leave_days_in_year(leaves: Iterable[Leave], year: int, exclude_leave_id: uuid.UUID | None = None) -> int:
    """Business days of leaves whose start_date falls in ``year``."""
    return sum(
        leave.days
        for leave in leaves
        if leave.start_date.year == year and (exclude_leave_id is None or leave.id != exclude_leave_id)
    )


def shutdown_days_in_year(shutdowns: Iterable[ShutdownWindow], year: int) -> int:
    """Full ``days`` of every deductible shutdown overlapping the policy year."""
    year_start, year_end = year_bounds(year)
    return sum(
        s.days
        for s in shutdowns
        if s.deduct_from_allowance and ranges_overlap(s.start_date, s.end_date, year_start, year_end)
    )


def compute_leave_balance(
    hired_at: date,
    policy: LeavePolicySettings,
    leaves: Iterable[Leave],
    shutdowns: Iterable[ShutdownWindow],
    reference_date: date,
    *,
    prior_year_remaining: int = 0,
    carryover_override: int | None = None,
    exclude_leave_id: uuid.UUID | None = None,
) -> LeaveBalance:
    """Balance for the policy year containing ``reference_date``. ``remaining`` is not clamped."""
    year = reference_date.year
    accrued = entitled_days(hired_at, policy, reference_date)
    carried_over = compute_carryover(policy, prior_year_remaining, reference_date, carryover_override)
    voluntary = leave_days_in_year(leaves, year, exclude_leave_id)
    shutdown = shutdown_days_in_year(shutdowns, year)
    taken = voluntary + shutdown

    return LeaveBalance(
        year=year,
        as_of=reference_date,
        annual_entitlement=annual_entitlement(hired_at, policy, reference_date),
        accrued=accrued,
        carried_over=carried_over,
        taken=taken,
        shutdown_days=shutdown,
        voluntary_days=voluntary,
        remaining=accrued + carried_over - taken,
        negative_floor=negative_floor(policy),
        carryover_expires_on=carryover_expiry_date(policy, year) if policy.allow_carryover else None,
    )


def prior_year_remaining(
    hired_at: date,
    policy: LeavePolicySettings,
    leaves: Sequence[Leave],
    shutdowns: Sequence[ShutdownWindow],
    year: int,
    exclude_leave_id: uuid.UUID | None = None,
) -> int:
    """Unused days at Dec 31 of the year before ``year``, ignoring that year's own carryover."""
    _, prev_year_end = year_bounds(year - 1)
    if hired_at > prev_year_end:
        return 0
    previous = compute_leave_balance(
        hired_at,
        policy.model_copy(update={"allow_carryover": False}),
        leaves,
        shutdowns,
        prev_year_end,
        exclude_leave_id=exclude_leave_id,
    )
    return max(previous.remaining, 0)


def balance_with_carryover(
    employee: Employee,
    policy: LeavePolicySettings,
    leaves: Sequence[Leave],
    shutdowns: Sequence[ShutdownWindow],
    reference_date: date,
    exclude_leave_id: uuid.UUID | None = None,
) -> LeaveBalance:
    """Full ledger for an employee, including the previous year's carryover."""
    carried = 0
    if policy.allow_carryover and employee.carryover_override_days is None:
        carried = prior_year_remaining(
            employee.hired_at, policy, leaves, shutdowns, reference_date.year, exclude_leave_id
        )
    return compute_leave_balance(
        employee.hired_at,
        policy,
        leaves,
        shutdowns,
        reference_date,
        prior_year_remaining=carried,
        carryover_override=employee.carryover_override_days,
        exclude_leave_id=exclude_leave_id,
    )


def resolve_reference_date(today: date, year: int | None = None, as_of: date | None = None) -> date:
    """Pick the date a balance is computed for.

    ``as_of`` wins. Otherwise a past year is read at its Dec 31, a future year
    at its Jan 1, and the current year at ``today``.
    """
    if as_of is not None:
        return as_of
    if year is None or year == today.year:
        return today
    year_start, year_end = year_bounds(year)
    return year_end if year < today.year else year_start


# ---------------------------------------------------------------------------
# DB-backed
# ---------------------------------------------------------------------------


async def load_leaves_for_balance(
    session: AsyncSession,
    employee_ids: list[uuid.UUID],
    year: int,
) -> dict[uuid.UUID, list[Leave]]:
    """Leaves starting in ``year`` or the year before, grouped by employee."""
    window_start, _ = year_bounds(year - 1)
    _, window_end = year_bounds(year)
    grouped: dict[uuid.UUID, list[Leave]] = {eid: [] for eid in employee_ids}
    if not employee_ids:
        return grouped

    result = await session.execute(
        select(Leave)
        .where(
            col(Leave.employee_id).in_(employee_ids),
            col(Leave.start_date) >= window_start,
            col(Leave.start_date) <= window_end,
        )
        .order_by(col(Leave.start_date))
    )
    for leave in result.scalars().all():
        grouped[leave.employee_id].append(leave)
    return grouped


async def effective_policy_for(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
) -> EffectivePolicy:
    """The company default policy narrowed by the employee's override."""
    company_policy = await load_company_policy(session, company_id)
    override = await get_policy_override(session, employee_id)
    return with_override(company_policy, override)


async def compute_employee_balance(
    session: AsyncSession,
    employee: Employee,
    effective: EffectivePolicy,
    reference_date: date,
    exclude_leave_id: uuid.UUID | None = None,
) -> LeaveBalance:
    """Recompute an employee's balance from committed rows."""
    leaves = await load_leaves_for_balance(session, [employee.id], reference_date.year)
    return balance_with_carryover(
        employee,
        effective.settings,
        leaves[employee.id],
        effective.shutdowns,
        reference_date,
        exclude_leave_id,
    )


def _employee_balance_response(employee: Employee, balance: LeaveBalance) -> EmployeeBalanceResponse:
    return EmployeeBalanceResponse(**balance.model_dump(), employee_id=employee.id, employee_name=employee.name)


async def get_employee_balance(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
    *,
    today: date,
    year: int | None = None,
    as_of: date | None = None,
) -> EmployeeBalanceResponse:
    employee = await get_employee_or_404(session, company_id, employee_id)
    effective = await effective_policy_for(session, company_id, employee.id)
    reference_date = resolve_reference_date(today, year, as_of)
    balance = await compute_employee_balance(session, employee, effective, reference_date)
    return _employee_balance_response(employee, balance)


async def list_employee_balances(
    session: AsyncSession,
    company_id: uuid.UUID,
    *,
    today: date,
    year: int | None = None,
    as_of: date | None = None,
) -> BalanceListResponse:
    """Balances for every employee of the company, in name order."""
    reference_date = resolve_reference_date(today, year, as_of)
    company_policy = await load_company_policy(session, company_id)

    employees_result = await session.execute(
        select(Employee).where(col(Employee.company_id) == company_id).order_by(col(Employee.name))
    )
    employees = list(employees_result.scalars().all())
    employee_ids = [e.id for e in employees]

    overrides: dict[uuid.UUID, EmployeePolicyOverride] = {}
    if employee_ids:
        override_result = await session.execute(
            select(EmployeePolicyOverride).where(col(EmployeePolicyOverride.employee_id).in_(employee_ids))
        )
        overrides = {o.employee_id: o for o in override_result.scalars().all()}

    leaves = await load_leaves_for_balance(session, employee_ids, reference_date.year)

    items: list[EmployeeBalanceResponse] = []
    for employee in employees:
        effective = with_override(company_policy, overrides.get(employee.id))
        balance = balance_with_carryover(
            employee,
            effective.settings,
            leaves[employee.id],
            effective.shutdowns,
            reference_date,
        )
        items.append(_employee_balance_response(employee, balance))

    return BalanceListResponse(items=items, total=len(items))
