# ruff: noqa: TC003
"""Employee store: employees, their manual carryover and their policy overrides."""

from __future__ import annotations

import uuid
from dataclasses import asdict
from datetime import date
from typing import TYPE_CHECKING

from sqlalchemy import delete, func, select
from sqlmodel import col

from leavedesk.exceptions import AppError, InvalidInputError
from leavedesk.models.employee import Employee, EmployeePolicyOverride
from leavedesk.models.enums import AuditAction, AuditEntityType
from leavedesk.models.leave import Leave
from leavedesk.schemas.employee import (
    EmployeeListResponse,
    EmployeeResponse,
    PolicyOverrideResponse,
    TenureResponse,
)
from leavedesk.services.audit import model_to_audit_dict, write_audit_log
from leavedesk.services.dates import age_on, tenure_between

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leavedesk.schemas.auth import AuthContext
    from leavedesk.schemas.employee import CreateEmployeeRequest, PolicyOverridePayload, UpdateEmployeeRequest


def _build_employee_response(
    employee: Employee,
    override: EmployeePolicyOverride | None,
    today: date,
) -> EmployeeResponse:
    return EmployeeResponse(
        id=employee.id,
        company_id=employee.company_id,
        name=employee.name,
        hired_at=employee.hired_at,
        birth_date=employee.birth_date,
        carryover_override_days=employee.carryover_override_days,
        tenure=TenureResponse(**asdict(tenure_between(employee.hired_at, today))),
        age=age_on(employee.birth_date, today),
        policy_override=PolicyOverrideResponse.model_validate(override) if override is not None else None,
        created_at=employee.created_at,
        updated_at=employee.updated_at,
    )


async def get_employee_or_404(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> Employee:
    """Fetch an employee scoped to the company. ``for_update`` takes a row lock."""
    stmt = select(Employee).where(
        col(Employee.id) == employee_id,
        col(Employee.company_id) == company_id,
    )
    if for_update:
        stmt = stmt.with_for_update()
    result = await session.execute(stmt)
    employee = result.scalar_one_or_none()
    if employee is None:
        raise AppError("Employee not found", status_code=404)
    return employee


async def get_policy_override(session: AsyncSession, employee_id: uuid.UUID) -> EmployeePolicyOverride | None:
    result = await session.execute(
        select(EmployeePolicyOverride).where(col(EmployeePolicyOverride.employee_id) == employee_id)
    )
    return result.scalar_one_or_none()


async def get_employee(
    session: AsyncSession,
    company_id: uuid.UUID,
    employee_id: uuid.UUID,
    today: date,
) -> EmployeeResponse:
    employee = await get_employee_or_404(session, company_id, employee_id)
    override = await get_policy_override(session, employee.id)
    return _build_employee_response(employee, override, today)


async def list_employees(
    session: AsyncSession,
    company_id: uuid.UUID,
    today: date,
    offset: int = 0,
    limit: int = 100,
) -> EmployeeListResponse:
    """List employees in name order."""
    count_result = await session.execute(
        select(func.count()).select_from(Employee).where(col(Employee.company_id) == company_id)
    )
    total = count_result.scalar_one()

    result = await session.execute(
        select(Employee)
        .where(col(Employee.company_id) == company_id)
        .order_by(col(Employee.name))
        .offset(offset)
        .limit(limit)
    )
    employees = list(result.scalars().all())

    overrides: dict[uuid.UUID, EmployeePolicyOverride] = {}
    if employees:
        override_result = await session.execute(
            select(EmployeePolicyOverride).where(
                col(EmployeePolicyOverride.employee_id).in_([e.id for e in employees])
            )
        )
        overrides = {o.employee_id: o for o in override_result.scalars().all()}

    return EmployeeListResponse(
        items=[_build_employee_response(e, overrides.get(e.id), today) for e in employees],
        total=total,
    )


async def create_employee(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreateEmployeeRequest,
    today: date,
) -> EmployeeResponse:
    employee = Employee(company_id=auth.company_id, **payload.model_dump())
    session.add(employee)
    await session.flush()

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.EMPLOYEE,
        entity_id=employee.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(employee),
    )
    await session.commit()
    await session.refresh(employee)
    return _build_employee_response(employee, None, today)


async def update_employee(
    session: AsyncSession,
    auth: AuthContext,
    employee_id: uuid.UUID,
    payload: UpdateEmployeeRequest,
    today: date,
) -> EmployeeResponse:
    """Partial update. Balances follow automatically since they are always derived."""
    employee = await get_employee_or_404(session, auth.company_id, employee_id)
    before = model_to_audit_dict(employee)

    changes = payload.model_dump(exclude_unset=True)
    for required in ("name", "hired_at"):
        if required in changes and changes[required] is None:
            raise InvalidInputError(f"{required} cannot be null")
    for key, value in changes.items():
        setattr(employee, key, value)
    if employee.birth_date is not None and employee.birth_date >= employee.hired_at:
        raise InvalidInputError("birth_date must precede hired_at")

    session.add(employee)
    await session.flush()

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.EMPLOYEE,
        entity_id=employee.id,
        action=AuditAction.UPDATE,
        before_json=before,
        after_json=model_to_audit_dict(employee),
    )
    await session.commit()
    await session.refresh(employee)

    override = await get_policy_override(session, employee.id)
    return _build_employee_response(employee, override, today)


async def delete_employee(session: AsyncSession, auth: AuthContext, employee_id: uuid.UUID) -> None:
    """Delete an employee together with their leaves and policy override."""
    employee = await get_employee_or_404(session, auth.company_id, employee_id)
    before = model_to_audit_dict(employee)

    await session.execute(delete(Leave).where(col(Leave.employee_id) == employee.id))
    await session.execute(delete(EmployeePolicyOverride).where(col(EmployeePolicyOverride.employee_id) == employee.id))
    await session.delete(employee)

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.EMPLOYEE,
        entity_id=employee_id,
        action=AuditAction.DELETE,
        before_json=before,
    )
    await session.commit()


# ---------------------------------------------------------------------------
# Policy overrides
# ---------------------------------------------------------------------------


async def upsert_policy_override(
    session: AsyncSession,
    auth: AuthContext,
    employee_id: uuid.UUID,
    payload: PolicyOverridePayload,
    today: date,
) -> EmployeeResponse:
    """Replace the employee's override with ``payload`` (null fields inherit)."""
    employee = await get_employee_or_404(session, auth.company_id, employee_id)
    override = await get_policy_override(session, employee.id)
    data = payload.model_dump(mode="json")

    if override is None:
        override = EmployeePolicyOverride(company_id=auth.company_id, employee_id=employee.id, **data)
        action = AuditAction.CREATE
        before = None
    else:
        before = model_to_audit_dict(override)
        for key, value in data.items():
            setattr(override, key, value)
        action = AuditAction.UPDATE

    session.add(override)
    await session.flush()

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.POLICY_OVERRIDE,
        entity_id=override.id,
        action=action,
        before_json=before,
        after_json=model_to_audit_dict(override),
    )
    await session.commit()
    await session.refresh(override)
    return _build_employee_response(employee, override, today)


async def delete_policy_override(session: AsyncSession, auth: AuthContext, employee_id: uuid.UUID) -> None:
    employee = await get_employee_or_404(session, auth.company_id, employee_id)
    override = await get_policy_override(session, employee.id)
    if override is None:
        raise AppError("Employee has no policy override", status_code=404)

    before = model_to_audit_dict(override)
    await session.delete(override)
    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.POLICY_OVERRIDE,
        entity_id=override.id,
        action=AuditAction.DELETE,
        before_json=before,
    )
    await session.commit()
