# ruff: noqa: TC003
"""Policy store: leave policies per company, their blackout and shutdown children.

Exactly one policy per company is flagged ``is_company_default``; that is the
policy every accrual, balance and constraint computation runs against.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel, ValidationError
from sqlalchemy import delete, func, select, update
from sqlmodel import col

from leavedesk.exceptions import AppError, InvalidInputError
from leavedesk.models.enums import AuditAction, AuditEntityType
from leavedesk.models.policy import BlackoutPeriod, CompanyShutdown, LeavePolicy
from leavedesk.schemas.policy import (
    BlackoutPeriodResponse,
    BlackoutWindow,
    CompanyShutdownResponse,
    LeavePolicySettings,
    PolicyListResponse,
    PolicyResponse,
    ShutdownWindow,
)
from leavedesk.services.audit import model_to_audit_dict, write_audit_log
from leavedesk.services.dates import count_weekdays

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from leavedesk.models.employee import EmployeePolicyOverride
    from leavedesk.schemas.auth import AuthContext
    from leavedesk.schemas.policy import (
        BlackoutPeriodPayload,
        CompanyShutdownPayload,
        CreatePolicyRequest,
        UpdateBlackoutPeriodRequest,
        UpdateCompanyShutdownRequest,
        UpdatePolicyRequest,
    )

logger = logging.getLogger(__name__)

_ModelT = TypeVar("_ModelT", bound=BaseModel)

OVERRIDABLE_FIELDS = (
    "base_annual_days",
    "seniority_step_years",
    "bonus_per_step",
    "accrual_method",
    "rounding_method",
    "allow_carryover",
    "max_carryover_days",
    "max_negative_balance",
    "max_consecutive_days",
)


@dataclass(frozen=True)
class EffectivePolicy:
    """The settings, blackouts and shutdowns that apply to a computation."""

    policy_id: uuid.UUID
    settings: LeavePolicySettings
    blackouts: list[BlackoutWindow]
    shutdowns: list[ShutdownWindow]


# ---------------------------------------------------------------------------
# Pure computation helpers (no DB)
# ---------------------------------------------------------------------------


def merge_policy(settings: LeavePolicySettings, override: EmployeePolicyOverride | None) -> LeavePolicySettings:
    """Apply an employee's non-null override fields on top of the policy settings."""
    if override is None:
        return settings
    updates = {
        field: getattr(override, field) for field in OVERRIDABLE_FIELDS if getattr(override, field) is not None
    }
    if not updates:
        return settings
    return validated(LeavePolicySettings, {**settings.model_dump(), **updates})


def with_override(effective: EffectivePolicy, override: EmployeePolicyOverride | None) -> EffectivePolicy:
    """Narrow a company policy to one employee."""
    return EffectivePolicy(
        policy_id=effective.policy_id,
        settings=merge_policy(effective.settings, override),
        blackouts=effective.blackouts,
        shutdowns=effective.shutdowns,
    )


def validated(model: type[_ModelT], data: dict[str, Any]) -> _ModelT:
    """Validate ``data`` against ``model``, surfacing failures as InvalidInputError."""
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise InvalidInputError(str(exc.errors(include_url=False))) from exc


def _settings_of(policy: LeavePolicy) -> dict[str, Any]:
    return LeavePolicySettings.model_validate(policy).model_dump()


def _build_policy_response(
    policy: LeavePolicy,
    blackouts: list[BlackoutPeriod],
    shutdowns: list[CompanyShutdown],
) -> PolicyResponse:
    return PolicyResponse(
        **_settings_of(policy),
        id=policy.id,
        company_id=policy.company_id,
        name=policy.name,
        is_company_default=policy.is_company_default,
        active=policy.active,
        created_at=policy.created_at,
        updated_at=policy.updated_at,
        blackout_periods=[BlackoutPeriodResponse.model_validate(b) for b in blackouts],
        company_shutdowns=[CompanyShutdownResponse.model_validate(s) for s in shutdowns],
    )


# ---------------------------------------------------------------------------
# DB-backed lookups
# ---------------------------------------------------------------------------


async def _get_policy_or_404(session: AsyncSession, company_id: uuid.UUID, policy_id: uuid.UUID) -> LeavePolicy:
    result = await session.execute(
        select(LeavePolicy).where(
            col(LeavePolicy.id) == policy_id,
            col(LeavePolicy.company_id) == company_id,
        )
    )
    policy = result.scalar_one_or_none()
    if policy is None:
        raise AppError("Leave policy not found", status_code=404)
    return policy


async def _get_default_policy(session: AsyncSession, company_id: uuid.UUID) -> LeavePolicy:
    """The company default, provided it is active. A deactivated default governs nothing."""
    result = await session.execute(
        select(LeavePolicy).where(
            col(LeavePolicy.company_id) == company_id,
            col(LeavePolicy.is_company_default).is_(True),
            col(LeavePolicy.active).is_(True),
        )
    )
    policy = result.scalar_one_or_none()
    if policy is None:
        raise AppError("No active default leave policy is configured for this company", status_code=404)
    return policy


async def _load_children(
    session: AsyncSession,
    policy_ids: list[uuid.UUID],
) -> tuple[dict[uuid.UUID, list[BlackoutPeriod]], dict[uuid.UUID, list[CompanyShutdown]]]:
    blackouts: dict[uuid.UUID, list[BlackoutPeriod]] = {pid: [] for pid in policy_ids}
    shutdowns: dict[uuid.UUID, list[CompanyShutdown]] = {pid: [] for pid in policy_ids}
    if not policy_ids:
        return blackouts, shutdowns

    blackout_result = await session.execute(
        select(BlackoutPeriod)
        .where(col(BlackoutPeriod.policy_id).in_(policy_ids))
        .order_by(col(BlackoutPeriod.start_date))
    )
    for blackout in blackout_result.scalars().all():
        blackouts[blackout.policy_id].append(blackout)

    shutdown_result = await session.execute(
        select(CompanyShutdown)
        .where(col(CompanyShutdown.policy_id).in_(policy_ids))
        .order_by(col(CompanyShutdown.start_date))
    )
    for shutdown in shutdown_result.scalars().all():
        shutdowns[shutdown.policy_id].append(shutdown)

    return blackouts, shutdowns


async def _policy_response(session: AsyncSession, policy: LeavePolicy) -> PolicyResponse:
    blackouts, shutdowns = await _load_children(session, [policy.id])
    return _build_policy_response(policy, blackouts[policy.id], shutdowns[policy.id])


async def get_policy_for_org(session: AsyncSession, company_id: uuid.UUID) -> PolicyResponse:
    """The company's default policy with its blackouts and shutdowns."""
    policy = await _get_default_policy(session, company_id)
    return await _policy_response(session, policy)


async def load_company_policy(session: AsyncSession, company_id: uuid.UUID) -> EffectivePolicy:
    """The default policy in the shape the pure core components consume."""
    policy = await _get_default_policy(session, company_id)
    blackouts, shutdowns = await _load_children(session, [policy.id])
    return EffectivePolicy(
        policy_id=policy.id,
        settings=LeavePolicySettings.model_validate(policy),
        blackouts=[BlackoutWindow.model_validate(b) for b in blackouts[policy.id]],
        shutdowns=[ShutdownWindow.model_validate(s) for s in shutdowns[policy.id]],
    )


async def get_policy(session: AsyncSession, company_id: uuid.UUID, policy_id: uuid.UUID) -> PolicyResponse:
    policy = await _get_policy_or_404(session, company_id, policy_id)
    return await _policy_response(session, policy)


async def list_policies(
    session: AsyncSession,
    company_id: uuid.UUID,
    offset: int = 0,
    limit: int = 50,
) -> PolicyListResponse:
    """List a company's policies, default first."""
    count_result = await session.execute(
        select(func.count()).select_from(LeavePolicy).where(col(LeavePolicy.company_id) == company_id)
    )
    total = count_result.scalar_one()

    result = await session.execute(
        select(LeavePolicy)
        .where(col(LeavePolicy.company_id) == company_id)
        .order_by(col(LeavePolicy.is_company_default).desc(), col(LeavePolicy.created_at))
        .offset(offset)
        .limit(limit)
    )
    policies = list(result.scalars().all())
    blackouts, shutdowns = await _load_children(session, [p.id for p in policies])

    return PolicyListResponse(
        items=[_build_policy_response(p, blackouts[p.id], shutdowns[p.id]) for p in policies],
        total=total,
    )


# ---------------------------------------------------------------------------
# Policy mutations
# ---------------------------------------------------------------------------


async def _demote_defaults(session: AsyncSession, company_id: uuid.UUID, keep_id: uuid.UUID | None = None) -> None:
    """Clear the default flag on every other policy of the company.

    Flushed before the new default is set so the partial unique index never
    sees two defaults at once.
    """
    stmt = update(LeavePolicy).where(
        col(LeavePolicy.company_id) == company_id,
        col(LeavePolicy.is_company_default).is_(True),
    )
    if keep_id is not None:
        stmt = stmt.where(col(LeavePolicy.id) != keep_id)
    await session.execute(stmt.values(is_company_default=False).execution_options(synchronize_session="fetch"))
    await session.flush()


async def create_policy(
    session: AsyncSession,
    auth: AuthContext,
    payload: CreatePolicyRequest,
) -> PolicyResponse:
    """Create a policy. The company's first policy always becomes its default."""
    if payload.is_company_default and not payload.active:
        raise AppError("Cannot make an inactive policy the default; activate it first", status_code=409)
    existing = await session.execute(
        select(func.count()).select_from(LeavePolicy).where(col(LeavePolicy.company_id) == auth.company_id)
    )
    make_default = payload.is_company_default or existing.scalar_one() == 0
    if make_default:
        await _demote_defaults(session, auth.company_id)

    data = payload.model_dump(mode="json", exclude={"is_company_default"})
    policy = LeavePolicy(company_id=auth.company_id, is_company_default=make_default, **data)
    session.add(policy)
    await session.flush()

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.POLICY,
        entity_id=policy.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(policy),
    )

    await session.commit()
    await session.refresh(policy)
    if make_default:
        logger.info("Policy %s is now the default for company %s", policy.id, auth.company_id)

    return _build_policy_response(policy, [], [])


async def update_policy(
    session: AsyncSession,
    auth: AuthContext,
    policy_id: uuid.UUID,
    payload: UpdatePolicyRequest,
) -> PolicyResponse:
    """Apply a partial update. The merged settings are re-validated as a whole."""
    policy = await _get_policy_or_404(session, auth.company_id, policy_id)
    before = model_to_audit_dict(policy)

    changes = payload.model_dump(exclude_unset=True)
    name = changes.pop("name", None)
    active = changes.pop("active", None)
    settings = validated(LeavePolicySettings, {**_settings_of(policy), **changes})

    for key, value in settings.model_dump(mode="json").items():
        setattr(policy, key, value)
    if name is not None:
        policy.name = name
    if active is not None:
        policy.active = active
    session.add(policy)
    await session.flush()

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.POLICY,
        entity_id=policy.id,
        action=AuditAction.UPDATE,
        before_json=before,
        after_json=model_to_audit_dict(policy),
    )

    await session.commit()
    await session.refresh(policy)
    return await _policy_response(session, policy)


async def delete_policy(session: AsyncSession, auth: AuthContext, policy_id: uuid.UUID) -> None:
    """Delete a non-default policy and its blackouts and shutdowns."""
    policy = await _get_policy_or_404(session, auth.company_id, policy_id)
    if policy.is_company_default:
        raise AppError("Cannot delete the default policy; make another policy the default first", status_code=409)

    before = model_to_audit_dict(policy)
    await session.execute(delete(BlackoutPeriod).where(col(BlackoutPeriod.policy_id) == policy.id))
    await session.execute(delete(CompanyShutdown).where(col(CompanyShutdown.policy_id) == policy.id))
    await session.delete(policy)

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.POLICY,
        entity_id=policy_id,
        action=AuditAction.DELETE,
        before_json=before,
    )
    await session.commit()


async def make_default(session: AsyncSession, auth: AuthContext, policy_id: uuid.UUID) -> PolicyResponse:
    """Make a policy the company default, demoting the previous one."""
    policy = await _get_policy_or_404(session, auth.company_id, policy_id)
    if policy.is_company_default:
        return await _policy_response(session, policy)
    if not policy.active:
        raise AppError("Cannot make an inactive policy the default; activate it first", status_code=409)

    before = model_to_audit_dict(policy)
    await _demote_defaults(session, auth.company_id, keep_id=policy.id)
    policy.is_company_default = True
    session.add(policy)
    await session.flush()

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.POLICY,
        entity_id=policy.id,
        action=AuditAction.UPDATE,
        before_json=before,
        after_json=model_to_audit_dict(policy),
    )
    await session.commit()
    await session.refresh(policy)
    logger.info("Policy %s is now the default for company %s", policy.id, auth.company_id)

    return await _policy_response(session, policy)


# ---------------------------------------------------------------------------
# Blackout periods
# ---------------------------------------------------------------------------


async def _get_blackout_or_404(session: AsyncSession, company_id: uuid.UUID, blackout_id: uuid.UUID) -> BlackoutPeriod:
    result = await session.execute(
        select(BlackoutPeriod).where(
            col(BlackoutPeriod.id) == blackout_id,
            col(BlackoutPeriod.company_id) == company_id,
        )
    )
    blackout = result.scalar_one_or_none()
    if blackout is None:
        raise AppError("Blackout period not found", status_code=404)
    return blackout


async def create_blackout_period(
    session: AsyncSession,
    auth: AuthContext,
    policy_id: uuid.UUID,
    payload: BlackoutPeriodPayload,
) -> BlackoutPeriodResponse:
    policy = await _get_policy_or_404(session, auth.company_id, policy_id)
    blackout = BlackoutPeriod(company_id=auth.company_id, policy_id=policy.id, **payload.model_dump())
    session.add(blackout)
    await session.flush()

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.BLACKOUT_PERIOD,
        entity_id=blackout.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(blackout),
    )
    await session.commit()
    await session.refresh(blackout)
    return BlackoutPeriodResponse.model_validate(blackout)


async def update_blackout_period(
    session: AsyncSession,
    auth: AuthContext,
    blackout_id: uuid.UUID,
    payload: UpdateBlackoutPeriodRequest,
) -> BlackoutPeriodResponse:
    blackout = await _get_blackout_or_404(session, auth.company_id, blackout_id)
    before = model_to_audit_dict(blackout)

    current = BlackoutWindow.model_validate(blackout).model_dump()
    merged = validated(BlackoutWindow, {**current, **payload.model_dump(exclude_unset=True)})
    for key, value in merged.model_dump().items():
        setattr(blackout, key, value)
    session.add(blackout)
    await session.flush()

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.BLACKOUT_PERIOD,
        entity_id=blackout.id,
        action=AuditAction.UPDATE,
        before_json=before,
        after_json=model_to_audit_dict(blackout),
    )
    await session.commit()
    await session.refresh(blackout)
    return BlackoutPeriodResponse.model_validate(blackout)


async def delete_blackout_period(session: AsyncSession, auth: AuthContext, blackout_id: uuid.UUID) -> None:
    blackout = await _get_blackout_or_404(session, auth.company_id, blackout_id)
    before = model_to_audit_dict(blackout)
    await session.delete(blackout)

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.BLACKOUT_PERIOD,
        entity_id=blackout_id,
        action=AuditAction.DELETE,
        before_json=before,
    )
    await session.commit()


# ---------------------------------------------------------------------------
# Company shutdowns
# ---------------------------------------------------------------------------


async def _get_shutdown_or_404(session: AsyncSession, company_id: uuid.UUID, shutdown_id: uuid.UUID) -> CompanyShutdown:
    result = await session.execute(
        select(CompanyShutdown).where(
            col(CompanyShutdown.id) == shutdown_id,
            col(CompanyShutdown.company_id) == company_id,
        )
    )
    shutdown = result.scalar_one_or_none()
    if shutdown is None:
        raise AppError("Company shutdown not found", status_code=404)
    return shutdown


async def create_company_shutdown(
    session: AsyncSession,
    auth: AuthContext,
    policy_id: uuid.UUID,
    payload: CompanyShutdownPayload,
) -> CompanyShutdownResponse:
    """Add a shutdown. ``days`` defaults to the weekdays in the range."""
    policy = await _get_policy_or_404(session, auth.company_id, policy_id)
    data = payload.model_dump()
    if data["days"] is None:
        data["days"] = count_weekdays(payload.start_date, payload.end_date)
    window = validated(ShutdownWindow, data)

    shutdown = CompanyShutdown(company_id=auth.company_id, policy_id=policy.id, **window.model_dump())
    session.add(shutdown)
    await session.flush()

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.COMPANY_SHUTDOWN,
        entity_id=shutdown.id,
        action=AuditAction.CREATE,
        after_json=model_to_audit_dict(shutdown),
    )
    await session.commit()
    await session.refresh(shutdown)
    return CompanyShutdownResponse.model_validate(shutdown)


async def update_company_shutdown(
    session: AsyncSession,
    auth: AuthContext,
    shutdown_id: uuid.UUID,
    payload: UpdateCompanyShutdownRequest,
) -> CompanyShutdownResponse:
    """Partial update. Moving the range without giving ``days`` recounts the weekdays."""
    shutdown = await _get_shutdown_or_404(session, auth.company_id, shutdown_id)
    before = model_to_audit_dict(shutdown)

    changes = payload.model_dump(exclude_unset=True)
    data = {**ShutdownWindow.model_validate(shutdown).model_dump(), **changes}
    range_moved = "start_date" in changes or "end_date" in changes
    if data.get("days") is None or (range_moved and "days" not in changes):
        data["days"] = count_weekdays(data["start_date"], data["end_date"])
    window = validated(ShutdownWindow, data)

    for key, value in window.model_dump().items():
        setattr(shutdown, key, value)
    session.add(shutdown)
    await session.flush()

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.COMPANY_SHUTDOWN,
        entity_id=shutdown.id,
        action=AuditAction.UPDATE,
        before_json=before,
        after_json=model_to_audit_dict(shutdown),
    )
    await session.commit()
    await session.refresh(shutdown)
    return CompanyShutdownResponse.model_validate(shutdown)


async def delete_company_shutdown(session: AsyncSession, auth: AuthContext, shutdown_id: uuid.UUID) -> None:
    shutdown = await _get_shutdown_or_404(session, auth.company_id, shutdown_id)
    before = model_to_audit_dict(shutdown)
    await session.delete(shutdown)

    await write_audit_log(
        session,
        auth,
        entity_type=AuditEntityType.COMPANY_SHUTDOWN,
        entity_id=shutdown_id,
        action=AuditAction.DELETE,
        before_json=before,
    )
    await session.commit()
