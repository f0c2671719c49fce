# ruff: noqa: B008, TC001, TC003
from __future__ import annotations

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query

from leavedesk.api.deps import AdminDep, validate_company_scope
from leavedesk.db import SessionDep
from leavedesk.models.enums import AuditAction, AuditEntityType
from leavedesk.schemas.audit import AuditLogListResponse
from leavedesk.services import audit as audit_service

audit_router = APIRouter(
    prefix="/companies/{company_id}",
    tags=["audit"],
    dependencies=[Depends(validate_company_scope)],
)


@audit_router.get("/audit-log", response_model=AuditLogListResponse)
async def query_audit_log(
    session: SessionDep,
    auth: AdminDep,
    entity_type: AuditEntityType | None = Query(default=None),
    entity_id: uuid.UUID | None = Query(default=None),
    action: AuditAction | None = Query(default=None),
    actor_id: uuid.UUID | None = Query(default=None),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> AuditLogListResponse:
    """Query audit log entries with optional filters (admin only)."""
    return await audit_service.query_audit_log(
        session,
        auth.company_id,
        entity_type=entity_type.value if entity_type else None,
        entity_id=entity_id,
        action=action.value if action else None,
        actor_id=actor_id,
        start_date=start_date,
        end_date=end_date,
        offset=offset,
        limit=limit,
    )
