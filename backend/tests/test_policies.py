"""Integration tests for leave policies, blackout periods, company shutdowns and their audit trail."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import select
from sqlmodel import col

from leavedesk.models.audit import AuditLog
from leavedesk.models.policy import LeavePolicy

if TYPE_CHECKING:
    from httpx import AsyncClient
    from sqlalchemy.ext.asyncio import AsyncSession

COMPANY_ID = uuid.uuid4()
USER_ID = uuid.uuid4()
AUTH_HEADERS = {
    "X-Company-Id": str(COMPANY_ID),
    "X-User-Id": str(USER_ID),
    "X-Role": "admin",
}
EMPLOYEE_HEADERS = {
    "X-Company-Id": str(COMPANY_ID),
    "X-User-Id": str(USER_ID),
    "X-Role": "employee",
}
COMPANY_URL = f"/companies/{COMPANY_ID}"
POLICIES_URL = f"{COMPANY_URL}/leave-policies"


def _policy_payload(name: str = "Site crews", **overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "name": name,
        "base_annual_days": 21,
        "seniority_step_years": 5,
        "bonus_per_step": 1,
        "accrual_method": "AT_YEAR_START",
    }
    payload.update(overrides)
    return payload


async def _create_policy(client: AsyncClient, name: str = "Site crews", **overrides: Any) -> dict[str, Any]:
    resp = await client.post(POLICIES_URL, json=_policy_payload(name, **overrides), headers=AUTH_HEADERS)
    assert resp.status_code == 201, resp.text
    data: dict[str, Any] = resp.json()
    return data


# ---------------------------------------------------------------------------
# Policies
# ---------------------------------------------------------------------------


class TestPolicyCrud:
    async def test_first_policy_becomes_default(self, async_client: AsyncClient) -> None:
        data = await _create_policy(async_client)
        assert data["is_company_default"] is True
        assert data["base_annual_days"] == 21
        assert data["rounding_method"] == "FLOOR"
        assert data["blackout_periods"] == []
        assert data["company_shutdowns"] == []

    async def test_second_policy_not_default(self, async_client: AsyncClient) -> None:
        await _create_policy(async_client)
        second = await _create_policy(async_client, "Office staff")
        assert second["is_company_default"] is False

    async def test_get_default_policy(self, async_client: AsyncClient) -> None:
        first = await _create_policy(async_client)
        await _create_policy(async_client, "Office staff")

        resp = await async_client.get(f"{COMPANY_URL}/leave-policy", headers=EMPLOYEE_HEADERS)
        assert resp.status_code == 200
        assert resp.json()["id"] == first["id"]

    async def test_get_default_policy_missing(self, async_client: AsyncClient) -> None:
        resp = await async_client.get(f"{COMPANY_URL}/leave-policy", headers=AUTH_HEADERS)
        assert resp.status_code == 404

    async def test_list_default_first(self, async_client: AsyncClient) -> None:
        await _create_policy(async_client)
        office = await _create_policy(async_client, "Office staff", is_company_default=True)

        resp = await async_client.get(POLICIES_URL, headers=AUTH_HEADERS)
        assert resp.status_code == 200
        data = resp.json()
        assert data["total"] == 2
        assert data["items"][0]["id"] == office["id"]
        assert [p["is_company_default"] for p in data["items"]] == [True, False]

    async def test_make_default_demotes_previous(self, async_client: AsyncClient, db_session: AsyncSession) -> None:
        first = await _create_policy(async_client)
        second = await _create_policy(async_client, "Office staff")

        resp = await async_client.post(f"{POLICIES_URL}/{second['id']}/make-default", headers=AUTH_HEADERS)
        assert resp.status_code == 200
        assert resp.json()["is_company_default"] is True

        result = await db_session.execute(
            select(LeavePolicy).where(
                col(LeavePolicy.company_id) == COMPANY_ID,
                col(LeavePolicy.is_company_default).is_(True),
            )
        )
        defaults = list(result.scalars().all())
        assert [str(p.id) for p in defaults] == [second["id"]]
        assert first["id"] != second["id"]

    async def test_inactive_policy_cannot_become_default(self, async_client: AsyncClient) -> None:
        first = await _create_policy(async_client)
        second = await _create_policy(async_client, "Office staff")
        resp = await async_client.put(f"{POLICIES_URL}/{second['id']}", json={"active": False}, headers=AUTH_HEADERS)
        assert resp.status_code == 200

        resp = await async_client.post(f"{POLICIES_URL}/{second['id']}/make-default", headers=AUTH_HEADERS)
        assert resp.status_code == 409
        resp = await async_client.get(f"{COMPANY_URL}/leave-policy", headers=AUTH_HEADERS)
        assert resp.json()["id"] == first["id"]

        payload = _policy_payload("Dormant", is_company_default=True, active=False)
        resp = await async_client.post(POLICIES_URL, json=payload, headers=AUTH_HEADERS)
        assert resp.status_code == 409

    async def test_update_merges_and_revalidates(self, async_client: AsyncClient) -> None:
        policy = await _create_policy(async_client)

        resp = await async_client.put(
            f"{POLICIES_URL}/{policy['id']}",
            json={"base_annual_days": 25, "name": "Crews"},
            headers=AUTH_HEADERS,
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["base_annual_days"] == 25
        assert data["name"] == "Crews"
        assert data["seniority_step_years"] == 5

    async def test_update_rejects_half_expiry(self, async_client: AsyncClient) -> None:
        policy = await _create_policy(async_client)

        resp = await async_client.put(
            f"{POLICIES_URL}/{policy['id']}",
            json={"carryover_expiry_month": 3},
            headers=AUTH_HEADERS,
        )
        assert resp.status_code == 422

    async def test_delete_default_conflicts(self, async_client: AsyncClient) -> None:
        policy = await _create_policy(async_client)
        resp = await async_client.delete(f"{POLICIES_URL}/{policy['id']}", headers=AUTH_HEADERS)
        assert resp.status_code == 409

    async def test_delete_non_default(self, async_client: AsyncClient) -> None:
        await _create_policy(async_client)
        office = await _create_policy(async_client, "Office staff")

        resp = await async_client.delete(f"{POLICIES_URL}/{office['id']}", headers=AUTH_HEADERS)
        assert resp.status_code == 204

        resp = await async_client.get(f"{POLICIES_URL}/{office['id']}", headers=AUTH_HEADERS)
        assert resp.status_code == 404


class TestPolicyValidation:
    @pytest.mark.parametrize(
        "overrides",
        [
            {"seniority_step_years": 0},
            {"base_annual_days": -1},
            {"max_negative_balance": 3},
            {"carryover_expiry_month": 13, "carryover_expiry_day": 1},
            {"carryover_expiry_month": 3},
            {"accrual_method": "WEEKLY"},
        ],
    )
    async def test_invalid_settings_rejected(self, async_client: AsyncClient, overrides: dict[str, Any]) -> None:
        resp = await async_client.post(POLICIES_URL, json=_policy_payload(**overrides), headers=AUTH_HEADERS)
        assert resp.status_code == 422

    async def test_requires_admin(self, async_client: AsyncClient) -> None:
        resp = await async_client.post(POLICIES_URL, json=_policy_payload(), headers=EMPLOYEE_HEADERS)
        assert resp.status_code == 403

    async def test_company_mismatch(self, async_client: AsyncClient) -> None:
        resp = await async_client.get(f"/companies/{uuid.uuid4()}/leave-policies", headers=AUTH_HEADERS)
        assert resp.status_code == 403

    async def test_other_company_policy_not_visible(self, async_client: AsyncClient) -> None:
        policy = await _create_policy(async_client)
        other_company = uuid.uuid4()
        headers = {**AUTH_HEADERS, "X-Company-Id": str(other_company)}

        resp = await async_client.get(f"/companies/{other_company}/leave-policies/{policy['id']}", headers=headers)
        assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Blackout periods and company shutdowns
# ---------------------------------------------------------------------------


class TestBlackoutPeriods:
    async def test_create_update_delete(self, async_client: AsyncClient) -> None:
        policy = await _create_policy(async_client)

        resp = await async_client.post(
            f"{POLICIES_URL}/{policy['id']}/blackout-periods",
            json={"start_date": "2026-07-01", "end_date": "2026-07-31", "reason": "Peak season"},
            headers=AUTH_HEADERS,
        )
        assert resp.status_code == 201
        blackout = resp.json()
        assert blackout["allow_exceptions"] is False
        assert blackout["policy_id"] == policy["id"]

        resp = await async_client.get(f"{POLICIES_URL}/{policy['id']}", headers=AUTH_HEADERS)
        assert [b["id"] for b in resp.json()["blackout_periods"]] == [blackout["id"]]

        resp = await async_client.put(
            f"{COMPANY_URL}/blackout-periods/{blackout['id']}",
            json={"allow_exceptions": True},
            headers=AUTH_HEADERS,
        )
        assert resp.status_code == 200
        assert resp.json()["allow_exceptions"] is True
        assert resp.json()["end_date"] == "2026-07-31"

        resp = await async_client.delete(f"{COMPANY_URL}/blackout-periods/{blackout['id']}", headers=AUTH_HEADERS)
        assert resp.status_code == 204

        resp = await async_client.get(f"{POLICIES_URL}/{policy['id']}", headers=AUTH_HEADERS)
        assert resp.json()["blackout_periods"] == []

    async def test_inverted_range_rejected(self, async_client: AsyncClient) -> None:
        policy = await _create_policy(async_client)
        resp = await async_client.post(
            f"{POLICIES_URL}/{policy['id']}/blackout-periods",
            json={"start_date": "2026-07-31", "end_date": "2026-07-01", "reason": "Backwards"},
            headers=AUTH_HEADERS,
        )
        assert resp.status_code == 422

    async def test_update_to_inverted_range_rejected(self, async_client: AsyncClient) -> None:
        policy = await _create_policy(async_client)
        resp = await async_client.post(
            f"{POLICIES_URL}/{policy['id']}/blackout-periods",
            json={"start_date": "2026-07-01", "end_date": "2026-07-31", "reason": "Peak season"},
            headers=AUTH_HEADERS,
        )
        blackout_id = resp.json()["id"]

        resp = await async_client.put(
            f"{COMPANY_URL}/blackout-periods/{blackout_id}",
            json={"start_date": "2026-08-15"},
            headers=AUTH_HEADERS,
        )
        assert resp.status_code == 422


class TestCompanyShutdowns:
    async def test_days_default_to_weekdays(self, async_client: AsyncClient) -> None:
        policy = await _create_policy(async_client)

        resp = await async_client.post(
            f"{POLICIES_URL}/{policy['id']}/company-shutdowns",
            json={"start_date": "2026-12-24", "end_date": "2026-12-31", "reason": "Year end"},
            headers=AUTH_HEADERS,
        )
        assert resp.status_code == 201
        shutdown = resp.json()
        assert shutdown["days"] == 6
        assert shutdown["deduct_from_allowance"] is True

    async def test_explicit_days_kept(self, async_client: AsyncClient) -> None:
        policy = await _create_policy(async_client)

        resp = await async_client.post(
            f"{POLICIES_URL}/{policy['id']}/company-shutdowns",
            json={"start_date": "2026-12-24", "end_date": "2026-12-31", "days": 4, "reason": "Year end"},
            headers=AUTH_HEADERS,
        )
        assert resp.status_code == 201
        assert resp.json()["days"] == 4

    async def test_days_beyond_span_rejected(self, async_client: AsyncClient) -> None:
        policy = await _create_policy(async_client)

        resp = await async_client.post(
            f"{POLICIES_URL}/{policy['id']}/company-shutdowns",
            json={"start_date": "2026-12-28", "end_date": "2026-12-29", "days": 3, "reason": "Too many"},
            headers=AUTH_HEADERS,
        )
        assert resp.status_code == 422

    async def test_moving_range_recounts_days(self, async_client: AsyncClient) -> None:
        policy = await _create_policy(async_client)
        resp = await async_client.post(
            f"{POLICIES_URL}/{policy['id']}/company-shutdowns",
            json={"start_date": "2026-12-24", "end_date": "2026-12-31", "reason": "Year end"},
            headers=AUTH_HEADERS,
        )
        shutdown_id = resp.json()["id"]

        resp = await async_client.put(
            f"{COMPANY_URL}/company-shutdowns/{shutdown_id}",
            json={"start_date": "2026-12-28"},
            headers=AUTH_HEADERS,
        )
        assert resp.status_code == 200
        assert resp.json()["days"] == 4

        resp = await async_client.put(
            f"{COMPANY_URL}/company-shutdowns/{shutdown_id}",
            json={"reason": "Holidays"},
            headers=AUTH_HEADERS,
        )
        assert resp.json()["days"] == 4
        assert resp.json()["reason"] == "Holidays"

    async def test_delete(self, async_client: AsyncClient) -> None:
        policy = await _create_policy(async_client)
        resp = await async_client.post(
            f"{POLICIES_URL}/{policy['id']}/company-shutdowns",
            json={"start_date": "2026-12-24", "end_date": "2026-12-31", "reason": "Year end"},
            headers=AUTH_HEADERS,
        )
        shutdown_id = resp.json()["id"]

        resp = await async_client.delete(f"{COMPANY_URL}/company-shutdowns/{shutdown_id}", headers=AUTH_HEADERS)
        assert resp.status_code == 204

        resp = await async_client.delete(f"{COMPANY_URL}/company-shutdowns/{shutdown_id}", headers=AUTH_HEADERS)
        assert resp.status_code == 404


# ---------------------------------------------------------------------------
# Audit trail
# ---------------------------------------------------------------------------


class TestPolicyAudit:
    async def test_mutations_are_audited(self, async_client: AsyncClient, db_session: AsyncSession) -> None:
        policy = await _create_policy(async_client)
        await async_client.put(f"{POLICIES_URL}/{policy['id']}", json={"base_annual_days": 24}, headers=AUTH_HEADERS)

        result = await db_session.execute(
            select(AuditLog)
            .where(col(AuditLog.entity_id) == uuid.UUID(policy["id"]))
            .order_by(col(AuditLog.created_at))
        )
        entries = list(result.scalars().all())
        assert [e.action for e in entries] == ["CREATE", "UPDATE"]
        assert entries[0].actor_id == USER_ID
        assert entries[0].actor_role == "admin"
        assert entries[1].before_json is not None
        assert entries[1].before_json["base_annual_days"] == 21
        assert entries[1].after_json is not None
        assert entries[1].after_json["base_annual_days"] == 24

    async def test_audit_log_endpoint_filters(self, async_client: AsyncClient) -> None:
        policy = await _create_policy(async_client)
        await async_client.post(
            f"{POLICIES_URL}/{policy['id']}/blackout-periods",
            json={"start_date": "2026-07-01", "end_date": "2026-07-31", "reason": "Peak season"},
            headers=AUTH_HEADERS,
        )

        resp = await async_client.get(f"{COMPANY_URL}/audit-log", headers=AUTH_HEADERS)
        assert resp.status_code == 200
        assert resp.json()["total"] == 2

        resp = await async_client.get(
            f"{COMPANY_URL}/audit-log",
            params={"entity_type": "BLACKOUT_PERIOD"},
            headers=AUTH_HEADERS,
        )
        items = resp.json()["items"]
        assert len(items) == 1
        assert items[0]["action"] == "CREATE"
        assert items[0]["after_json"]["reason"] == "Peak season"

    async def test_audit_log_requires_admin(self, async_client: AsyncClient) -> None:
        resp = await async_client.get(f"{COMPANY_URL}/audit-log", headers=EMPLOYEE_HEADERS)
        assert resp.status_code == 403
