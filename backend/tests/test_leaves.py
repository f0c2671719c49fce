"""Integration tests for leave validation, submission, rescheduling and the balance they consume."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

import pytest
from sqlalchemy import select
from sqlmodel import col

from leavedesk.models.audit import AuditLog
from leavedesk.models.leave import Leave

if TYPE_CHECKING:
    from httpx import AsyncClient, Response
    from sqlalchemy.ext.asyncio import AsyncSession

COMPANY_ID = uuid.uuid4()
ADMIN_ID = uuid.uuid4()
AUTH_HEADERS = {
    "X-Company-Id": str(COMPANY_ID),
    "X-User-Id": str(ADMIN_ID),
    "X-Role": "admin",
}
EMPLOYEE_HEADERS = {**AUTH_HEADERS, "X-User-Id": str(uuid.uuid4()), "X-Role": "employee"}
COMPANY_URL = f"/companies/{COMPANY_ID}"

# Monday 2026-04-06, five weeks after the fixed "today" of 2026-03-02.
APRIL_MONDAY = "2026-04-06"


async def _create_policy(client: AsyncClient, **overrides: Any) -> str:
    payload: dict[str, Any] = {
        "name": "Site crews",
        "base_annual_days": 21,
        "seniority_step_years": 5,
        "bonus_per_step": 1,
        "accrual_method": "AT_YEAR_START",
        "max_negative_balance": 0,
    }
    payload.update(overrides)
    resp = await client.post(f"{COMPANY_URL}/leave-policies", json=payload, headers=AUTH_HEADERS)
    assert resp.status_code == 201, resp.text
    policy_id: str = resp.json()["id"]
    return policy_id


async def _create_employee(client: AsyncClient, hired_at: str = "2019-03-02") -> str:
    resp = await client.post(
        f"{COMPANY_URL}/employees",
        json={"name": "Ana Petrovic", "hired_at": hired_at},
        headers=AUTH_HEADERS,
    )
    assert resp.status_code == 201, resp.text
    employee_id: str = resp.json()["id"]
    return employee_id


def _leaves_url(employee_id: str) -> str:
    return f"{COMPANY_URL}/employees/{employee_id}/leaves"


async def _submit(
    client: AsyncClient, employee_id: str, start_date: str = APRIL_MONDAY, days: int = 3, **extra: Any
) -> Response:
    return await client.post(
        _leaves_url(employee_id),
        json={"start_date": start_date, "days": days, **extra},
        headers=EMPLOYEE_HEADERS,
    )


@pytest.fixture
async def employee_id(async_client: AsyncClient) -> str:
    await _create_policy(async_client)
    return await _create_employee(async_client)


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------


class TestCreateLeave:
    async def test_saturday_start_spans_following_weekdays(self, async_client: AsyncClient, employee_id: str) -> None:
        resp = await _submit(async_client, employee_id, start_date="2026-03-07", days=3)
        assert resp.status_code == 201, resp.text
        data = resp.json()
        assert data["decision"]["accepted"] is True
        assert data["decision"]["span_start"] == "2026-03-09"
        assert data["decision"]["span_end"] == "2026-03-11"
        assert data["leave"]["start_date"] == "2026-03-07"
        assert data["leave"]["days"] == 3
        assert data["balance"]["accrued"] == 22
        assert data["balance"]["remaining"] == 19

    async def test_each_leave_reduces_remaining(self, async_client: AsyncClient, employee_id: str) -> None:
        first = await _submit(async_client, employee_id, days=4)
        second = await _submit(async_client, employee_id, start_date="2026-06-01", days=2)
        assert first.json()["balance"]["remaining"] == 18
        assert second.json()["balance"]["remaining"] == 16

    async def test_whole_balance_then_one_more(self, async_client: AsyncClient, employee_id: str) -> None:
        resp = await _submit(async_client, employee_id, days=22)
        assert resp.status_code == 201
        assert resp.json()["balance"]["remaining"] == 0

        resp = await _submit(async_client, employee_id, start_date="2026-06-01", days=1)
        assert resp.status_code == 400
        data = resp.json()
        assert data["decision"]["violation"]["code"] == "INSUFFICIENT_BALANCE"
        assert data["leave"] is None
        assert data["balance"]["remaining"] == 0

    async def test_rejection_persists_nothing(
        self, async_client: AsyncClient, db_session: AsyncSession, employee_id: str
    ) -> None:
        resp = await _submit(async_client, employee_id, days=30)
        assert resp.status_code == 400

        result = await db_session.execute(select(Leave).where(col(Leave.employee_id) == uuid.UUID(employee_id)))
        assert result.scalars().all() == []

    async def test_non_positive_days_rejected(self, async_client: AsyncClient, employee_id: str) -> None:
        resp = await _submit(async_client, employee_id, days=0)
        assert resp.status_code == 422

    async def test_unknown_employee(self, async_client: AsyncClient) -> None:
        await _create_policy(async_client)
        resp = await _submit(async_client, str(uuid.uuid4()))
        assert resp.status_code == 404

    async def test_no_default_policy(self, async_client: AsyncClient) -> None:
        employee_id = await _create_employee(async_client)
        resp = await _submit(async_client, employee_id)
        assert resp.status_code == 404
        assert "default leave policy" in resp.json()["detail"]

    async def test_inactive_default_policy_governs_nothing(self, async_client: AsyncClient) -> None:
        policy_id = await _create_policy(async_client)
        employee_id = await _create_employee(async_client)
        resp = await async_client.put(
            f"{COMPANY_URL}/leave-policies/{policy_id}", json={"active": False}, headers=AUTH_HEADERS
        )
        assert resp.status_code == 200, resp.text

        resp = await async_client.get(f"{COMPANY_URL}/employees/{employee_id}/balance", headers=AUTH_HEADERS)
        assert resp.status_code == 404
        resp = await _submit(async_client, employee_id)
        assert resp.status_code == 404
        assert "active default leave policy" in resp.json()["detail"]
        resp = await async_client.get(f"{COMPANY_URL}/leave-policy", headers=AUTH_HEADERS)
        assert resp.status_code == 404

        await async_client.put(f"{COMPANY_URL}/leave-policies/{policy_id}", json={"active": True}, headers=AUTH_HEADERS)
        resp = await _submit(async_client, employee_id)
        assert resp.status_code == 201, resp.text

    async def test_creation_audited(
        self, async_client: AsyncClient, db_session: AsyncSession, employee_id: str
    ) -> None:
        resp = await _submit(async_client, employee_id)
        leave_id = uuid.UUID(resp.json()["leave"]["id"])

        result = await db_session.execute(select(AuditLog).where(col(AuditLog.entity_id) == leave_id))
        entry = result.scalar_one()
        assert entry.action == "CREATE"
        assert entry.actor_role == "employee"
        assert entry.after_json is not None
        assert entry.after_json["days"] == 3


class TestPolicyRules:
    async def test_consecutive_limit(self, async_client: AsyncClient) -> None:
        await _create_policy(async_client, max_consecutive_days=10)
        employee_id = await _create_employee(async_client)

        resp = await _submit(async_client, employee_id, days=11)
        assert resp.status_code == 400
        assert resp.json()["decision"]["violation"]["code"] == "CONSECUTIVE_DAYS_EXCEEDED"

        resp = await _submit(async_client, employee_id, days=10)
        assert resp.status_code == 201

    async def test_notice(self, async_client: AsyncClient) -> None:
        await _create_policy(async_client, min_notice_days=7)
        employee_id = await _create_employee(async_client)

        resp = await _submit(async_client, employee_id, start_date="2026-03-05")
        assert resp.status_code == 400
        assert resp.json()["decision"]["violation"]["code"] == "NOTICE_VIOLATION"

        resp = await _submit(async_client, employee_id, start_date="2026-03-09")
        assert resp.status_code == 201

    async def test_negative_allowance(self, async_client: AsyncClient) -> None:
        await _create_policy(async_client, max_negative_balance=-2)
        employee_id = await _create_employee(async_client)

        resp = await _submit(async_client, employee_id, days=24)
        assert resp.status_code == 201
        data = resp.json()
        assert data["balance"]["remaining"] == -2
        assert [w["code"] for w in data["decision"]["warnings"]] == ["NEGATIVE_BALANCE"]

        resp = await _submit(async_client, employee_id, start_date="2026-06-01", days=1)
        assert resp.status_code == 400

    async def test_hard_blackout(self, async_client: AsyncClient) -> None:
        policy_id = await _create_policy(async_client)
        await async_client.post(
            f"{COMPANY_URL}/leave-policies/{policy_id}/blackout-periods",
            json={"start_date": "2026-04-01", "end_date": "2026-04-30", "reason": "Peak season"},
            headers=AUTH_HEADERS,
        )
        employee_id = await _create_employee(async_client)

        resp = await _submit(async_client, employee_id)
        assert resp.status_code == 400
        violation = resp.json()["decision"]["violation"]
        assert violation["code"] == "BLACKOUT_VIOLATION"
        assert "Peak season" in violation["message"]

    async def test_exception_blackout_flags_review(self, async_client: AsyncClient) -> None:
        policy_id = await _create_policy(async_client)
        await async_client.post(
            f"{COMPANY_URL}/leave-policies/{policy_id}/blackout-periods",
            json={
                "start_date": "2026-04-01",
                "end_date": "2026-04-30",
                "reason": "Peak season",
                "allow_exceptions": True,
            },
            headers=AUTH_HEADERS,
        )
        employee_id = await _create_employee(async_client)

        resp = await _submit(async_client, employee_id)
        assert resp.status_code == 201
        data = resp.json()
        assert data["leave"]["needs_review"] is True
        assert [w["code"] for w in data["decision"]["warnings"]] == ["BLACKOUT_EXCEPTION"]

    async def test_shutdown_deducts_and_warns(self, async_client: AsyncClient) -> None:
        policy_id = await _create_policy(async_client)
        await async_client.post(
            f"{COMPANY_URL}/leave-policies/{policy_id}/company-shutdowns",
            json={"start_date": "2026-12-24", "end_date": "2026-12-31", "reason": "Year end"},
            headers=AUTH_HEADERS,
        )
        employee_id = await _create_employee(async_client)

        resp = await _submit(async_client, employee_id, start_date="2026-12-21", days=2)
        assert resp.status_code == 201
        data = resp.json()
        assert data["decision"]["warnings"] == []
        assert data["balance"]["shutdown_days"] == 6
        assert data["balance"]["remaining"] == 14

        resp = await _submit(async_client, employee_id, start_date="2026-12-23", days=2)
        assert resp.status_code == 201
        assert [w["code"] for w in resp.json()["decision"]["warnings"]] == ["COMPANY_SHUTDOWN_OVERLAP"]

    async def test_employee_override_applies(self, async_client: AsyncClient) -> None:
        await _create_policy(async_client)
        employee_id = await _create_employee(async_client)
        await async_client.put(
            f"{COMPANY_URL}/employees/{employee_id}/policy-override",
            json={"max_consecutive_days": 2},
            headers=AUTH_HEADERS,
        )

        resp = await _submit(async_client, employee_id, days=3)
        assert resp.status_code == 400
        assert resp.json()["decision"]["violation"]["code"] == "CONSECUTIVE_DAYS_EXCEEDED"


# ---------------------------------------------------------------------------
# Dry run and optimistic concurrency
# ---------------------------------------------------------------------------


class TestValidateAndConflicts:
    async def test_validate_writes_nothing(self, async_client: AsyncClient, employee_id: str) -> None:
        resp = await async_client.post(
            f"{_leaves_url(employee_id)}/validate",
            json={"start_date": APRIL_MONDAY, "days": 5},
            headers=EMPLOYEE_HEADERS,
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["decision"]["accepted"] is True
        assert data["balance"]["remaining"] == 22

        resp = await async_client.get(_leaves_url(employee_id), headers=EMPLOYEE_HEADERS)
        assert resp.json()["total"] == 0

    async def test_validate_reports_rejection(self, async_client: AsyncClient, employee_id: str) -> None:
        resp = await async_client.post(
            f"{_leaves_url(employee_id)}/validate",
            json={"start_date": APRIL_MONDAY, "days": 23},
            headers=EMPLOYEE_HEADERS,
        )
        assert resp.status_code == 200
        assert resp.json()["decision"]["violation"]["code"] == "INSUFFICIENT_BALANCE"

    async def test_stale_expected_remaining_conflicts(self, async_client: AsyncClient, employee_id: str) -> None:
        await _submit(async_client, employee_id, days=2)

        resp = await _submit(async_client, employee_id, start_date="2026-06-01", days=2, expected_remaining=22)
        assert resp.status_code == 409

        resp = await _submit(async_client, employee_id, start_date="2026-06-01", days=2, expected_remaining=20)
        assert resp.status_code == 201
        assert resp.json()["balance"]["remaining"] == 18


# ---------------------------------------------------------------------------
# Listing, update and delete
# ---------------------------------------------------------------------------


class TestLeaveLifecycle:
    async def test_list_filters_by_year(self, async_client: AsyncClient, employee_id: str) -> None:
        await _submit(async_client, employee_id, days=2)
        await _submit(async_client, employee_id, start_date="2027-01-11", days=2)

        resp = await async_client.get(_leaves_url(employee_id), headers=EMPLOYEE_HEADERS)
        assert resp.json()["total"] == 2

        resp = await async_client.get(_leaves_url(employee_id), params={"year": 2027}, headers=EMPLOYEE_HEADERS)
        items = resp.json()["items"]
        assert [lv["start_date"] for lv in items] == ["2027-01-11"]

    async def test_resize_excludes_itself(self, async_client: AsyncClient, employee_id: str) -> None:
        created = await _submit(async_client, employee_id, days=20)
        leave_id = created.json()["leave"]["id"]

        resp = await async_client.put(
            f"{COMPANY_URL}/leaves/{leave_id}",
            json={"days": 22},
            headers=EMPLOYEE_HEADERS,
        )
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["leave"]["days"] == 22
        assert data["balance"]["remaining"] == 0

    async def test_rejected_update_keeps_leave(self, async_client: AsyncClient, employee_id: str) -> None:
        created = await _submit(async_client, employee_id, days=20)
        leave_id = created.json()["leave"]["id"]

        resp = await async_client.put(
            f"{COMPANY_URL}/leaves/{leave_id}",
            json={"days": 23},
            headers=EMPLOYEE_HEADERS,
        )
        assert resp.status_code == 400
        assert resp.json()["decision"]["violation"]["code"] == "INSUFFICIENT_BALANCE"

        resp = await async_client.get(_leaves_url(employee_id), headers=EMPLOYEE_HEADERS)
        assert resp.json()["items"][0]["days"] == 20

    async def test_note_only_update(self, async_client: AsyncClient, employee_id: str) -> None:
        created = await _submit(async_client, employee_id, days=3)
        leave_id = created.json()["leave"]["id"]

        resp = await async_client.put(
            f"{COMPANY_URL}/leaves/{leave_id}",
            json={"note": "Family trip", "expected_remaining": 19},
            headers=EMPLOYEE_HEADERS,
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["leave"]["note"] == "Family trip"
        assert data["leave"]["days"] == 3
        assert data["balance"]["remaining"] == 19

    async def test_update_stale_expected_remaining(self, async_client: AsyncClient, employee_id: str) -> None:
        created = await _submit(async_client, employee_id, days=3)
        leave_id = created.json()["leave"]["id"]

        resp = await async_client.put(
            f"{COMPANY_URL}/leaves/{leave_id}",
            json={"days": 4, "expected_remaining": 22},
            headers=EMPLOYEE_HEADERS,
        )
        assert resp.status_code == 409

    async def test_null_days_rejected(self, async_client: AsyncClient, employee_id: str) -> None:
        created = await _submit(async_client, employee_id, days=3)
        leave_id = created.json()["leave"]["id"]

        resp = await async_client.put(f"{COMPANY_URL}/leaves/{leave_id}", json={"days": None}, headers=EMPLOYEE_HEADERS)
        assert resp.status_code == 422

    async def test_delete_restores_balance(self, async_client: AsyncClient, employee_id: str) -> None:
        created = await _submit(async_client, employee_id, days=5)
        leave_id = created.json()["leave"]["id"]

        resp = await async_client.delete(f"{COMPANY_URL}/leaves/{leave_id}", headers=EMPLOYEE_HEADERS)
        assert resp.status_code == 204

        resp = await async_client.get(f"{COMPANY_URL}/employees/{employee_id}/balance", headers=EMPLOYEE_HEADERS)
        assert resp.json()["remaining"] == 22

        resp = await async_client.delete(f"{COMPANY_URL}/leaves/{leave_id}", headers=EMPLOYEE_HEADERS)
        assert resp.status_code == 404
