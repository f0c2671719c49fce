# ruff: noqa: TC001, TC003
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query, Response, status

from leavedesk.api.deps import AdminDep, AuthDep, validate_company_scope
from leavedesk.db import SessionDep
from leavedesk.schemas.policy import (
    BlackoutPeriodPayload,
    BlackoutPeriodResponse,
    CompanyShutdownPayload,
    CompanyShutdownResponse,
    CreatePolicyRequest,
    PolicyListResponse,
    PolicyResponse,
    UpdateBlackoutPeriodRequest,
    UpdateCompanyShutdownRequest,
    UpdatePolicyRequest,
)
from leavedesk.services import policy as policy_service

router = APIRouter(
    prefix="/companies/{company_id}",
    tags=["policies"],
    dependencies=[Depends(validate_company_scope)],
)


@router.get("/leave-policy", response_model=PolicyResponse)
async def get_policy_for_org(
    session: SessionDep,
    auth: AuthDep,
) -> PolicyResponse:
    """The company's default leave policy."""
    return await policy_service.get_policy_for_org(session, auth.company_id)


@router.post("/leave-policies", response_model=PolicyResponse, status_code=status.HTTP_201_CREATED)
async def create_policy(
    payload: CreatePolicyRequest,
    session: SessionDep,
    auth: AdminDep,
) -> PolicyResponse:
    return await policy_service.create_policy(session, auth, payload)


@router.get("/leave-policies", response_model=PolicyListResponse)
async def list_policies(
    session: SessionDep,
    auth: AuthDep,
    offset: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=100),
) -> PolicyListResponse:
    return await policy_service.list_policies(session, auth.company_id, offset, limit)


@router.get("/leave-policies/{policy_id}", response_model=PolicyResponse)
async def get_policy(
    policy_id: uuid.UUID,
    session: SessionDep,
    auth: AuthDep,
) -> PolicyResponse:
    return await policy_service.get_policy(session, auth.company_id, policy_id)


@router.put("/leave-policies/{policy_id}", response_model=PolicyResponse)
async def update_policy(
    policy_id: uuid.UUID,
    payload: UpdatePolicyRequest,
    session: SessionDep,
    auth: AdminDep,
) -> PolicyResponse:
    """Edit a policy in place. Changes apply retroactively to every derived balance."""
    return await policy_service.update_policy(session, auth, policy_id, payload)


@router.delete("/leave-policies/{policy_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_policy(
    policy_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> Response:
    await policy_service.delete_policy(session, auth, policy_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/leave-policies/{policy_id}/make-default", response_model=PolicyResponse)
async def make_default(
    policy_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> PolicyResponse:
    return await policy_service.make_default(session, auth, policy_id)


@router.post(
    "/leave-policies/{policy_id}/blackout-periods",
    response_model=BlackoutPeriodResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_blackout_period(
    policy_id: uuid.UUID,
    payload: BlackoutPeriodPayload,
    session: SessionDep,
    auth: AdminDep,
) -> BlackoutPeriodResponse:
    return await policy_service.create_blackout_period(session, auth, policy_id, payload)


@router.put("/blackout-periods/{blackout_id}", response_model=BlackoutPeriodResponse)
async def update_blackout_period(
    blackout_id: uuid.UUID,
    payload: UpdateBlackoutPeriodRequest,
    session: SessionDep,
    auth: AdminDep,
) -> BlackoutPeriodResponse:
    return await policy_service.update_blackout_period(session, auth, blackout_id, payload)


@router.delete("/blackout-periods/{blackout_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_blackout_period(
    blackout_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> Response:
    await policy_service.delete_blackout_period(session, auth, blackout_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/leave-policies/{policy_id}/company-shutdowns",
    response_model=CompanyShutdownResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_company_shutdown(
    policy_id: uuid.UUID,
    payload: CompanyShutdownPayload,
    session: SessionDep,
    auth: AdminDep,
) -> CompanyShutdownResponse:
    """Add a shutdown. Omitting ``days`` counts the weekdays in the range."""
    return await policy_service.create_company_shutdown(session, auth, policy_id, payload)


@router.put("/company-shutdowns/{shutdown_id}", response_model=CompanyShutdownResponse)
async def update_company_shutdown(
    shutdown_id: uuid.UUID,
    payload: UpdateCompanyShutdownRequest,
    session: SessionDep,
    auth: AdminDep,
) -> CompanyShutdownResponse:
    return await policy_service.update_company_shutdown(session, auth, shutdown_id, payload)


@router.delete("/company-shutdowns/{shutdown_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_company_shutdown(
    shutdown_id: uuid.UUID,
    session: SessionDep,
    auth: AdminDep,
) -> Response:
    await policy_service.delete_company_shutdown(session, auth, shutdown_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
