"""Audit trail for policy, employee and leave mutations."""

from __future__ import annotations

import uuid
from datetime import date, datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, select
from sqlmodel import col

from leavedesk.models.audit import AuditLog
from leavedesk.schemas.audit import AuditLogEntryResponse, AuditLogListResponse

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlmodel import SQLModel

    from leavedesk.models.enums import AuditAction, AuditEntityType
    from leavedesk.schemas.auth import AuthContext


def model_to_audit_dict(model: SQLModel) -> dict[str, Any]:
    """Serialize a SQLModel row to a JSON-safe dict for the before/after snapshots."""
    data: dict[str, Any] = {}
    for key, value in model.model_dump().items():
        if isinstance(value, uuid.UUID):
            data[key] = str(value)
        elif isinstance(value, (datetime, date)):
            data[key] = value.isoformat()
        elif isinstance(value, Enum):
            data[key] = value.value
        else:
            data[key] = value
    return data


async def write_audit_log(
    session: AsyncSession,
    auth: AuthContext,
    *,
    entity_type: AuditEntityType,
    entity_id: uuid.UUID,
    action: AuditAction,
    before_json: dict[str, Any] | None = None,
    after_json: dict[str, Any] | None = None,
) -> AuditLog:
    """Stage an immutable audit entry in the caller's transaction. The caller commits."""
    entry = AuditLog(
        company_id=auth.company_id,
        actor_id=auth.user_id,
        actor_role=auth.role,
        entity_type=entity_type.value,
        entity_id=entity_id,
        action=action.value,
        before_json=before_json,
        after_json=after_json,
    )
    session.add(entry)
    return entry


async def query_audit_log(
    session: AsyncSession,
    company_id: uuid.UUID,
    *,
    entity_type: str | None = None,
    entity_id: uuid.UUID | None = None,
    action: str | None = None,
    actor_id: uuid.UUID | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
    offset: int = 0,
    limit: int = 50,
) -> AuditLogListResponse:
    """Query audit entries with optional filters. Both date bounds are inclusive."""
    filters = [col(AuditLog.company_id) == company_id]

    if entity_type is not None:
        filters.append(col(AuditLog.entity_type) == entity_type)
    if entity_id is not None:
        filters.append(col(AuditLog.entity_id) == entity_id)
    if action is not None:
        filters.append(col(AuditLog.action) == action)
    if actor_id is not None:
        filters.append(col(AuditLog.actor_id) == actor_id)
    if start_date is not None:
        filters.append(col(AuditLog.created_at) >= start_date)
    if end_date is not None:
        filters.append(col(AuditLog.created_at) < end_date + timedelta(days=1))

    count_result = await session.execute(select(func.count()).select_from(AuditLog).where(*filters))
    total = count_result.scalar_one()

    result = await session.execute(
        select(AuditLog).where(*filters).order_by(col(AuditLog.created_at).desc()).offset(offset).limit(limit)
    )
    entries = list(result.scalars().all())

    return AuditLogListResponse(
        items=[AuditLogEntryResponse.model_validate(e) for e in entries],
        total=total,
    )
