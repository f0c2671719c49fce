"""Seed script for development data.

Run with:  python -m leavedesk.seed
Re-running is safe: existing policies and employees are matched by name.
"""

from __future__ import annotations

import asyncio
import sys
from datetime import date, timedelta
from typing import Any

import httpx

BASE_URL = "http://localhost:8000"
COMPANY_ID = "00000000-0000-0000-0000-000000000001"
ADMIN_USER_ID = "00000000-0000-0000-0000-000000000001"

HEADERS = {
    "Content-Type": "application/json",
    "X-Company-Id": COMPANY_ID,
    "X-User-Id": ADMIN_USER_ID,
    "X-Role": "admin",
}

COMPANY_URL = f"{BASE_URL}/companies/{COMPANY_ID}"

DEFAULT_POLICY = {
    "name": "Site crews",
    "is_company_default": True,
    "base_annual_days": 21,
    "seniority_step_years": 5,
    "bonus_per_step": 1,
    "accrual_method": "AT_YEAR_START",
    "rounding_method": "FLOOR",
    "allow_carryover": True,
    "max_carryover_days": 5,
    "carryover_expiry_month": 3,
    "carryover_expiry_day": 31,
    "max_negative_balance": -2,
    "max_consecutive_days": 15,
    "min_notice_days": 7,
}

OFFICE_POLICY = {
    "name": "Office staff",
    "base_annual_days": 25,
    "seniority_step_years": 5,
    "bonus_per_step": 1,
    "accrual_method": "MONTHLY",
    "rounding_method": "ROUND",
    "allow_carryover": False,
}

EMPLOYEES = [
    {"name": "Ana Petrovic", "hired_at": "2018-03-12", "birth_date": "1985-07-02"},
    {"name": "Marko Ilic", "hired_at": "2021-09-01", "birth_date": "1992-11-20"},
    {"name": "Jelena Kovac", "hired_at": "2024-02-15", "birth_date": None},
    {"name": "Nikola Savic", "hired_at": "2012-05-07", "birth_date": "1979-01-30"},
]


def _year_dates(year: int) -> dict[str, Any]:
    return {
        "blackout": {
            "start_date": f"{year}-07-01",
            "end_date": f"{year}-07-31",
            "reason": "Peak pouring season",
            "allow_exceptions": True,
        },
        "shutdown": {
            "start_date": f"{year}-12-24",
            "end_date": f"{year}-12-31",
            "reason": "Year-end shutdown",
        },
    }


async def _request(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    label: str,
    json: dict[str, Any] | None = None,
) -> dict[str, Any] | None:
    resp = await client.request(method, url, json=json, headers=HEADERS)
    if resp.status_code in (200, 201):
        print(f"  [OK] {label}")
        return resp.json()
    print(f"  [ERROR] {label}: {resp.status_code} {resp.text[:200]}")
    return None


async def seed_policies(client: httpx.AsyncClient, year: int) -> None:
    """Create the default and an alternative policy, with one blackout and one shutdown."""
    print("\n--- Seeding policies ---")
    resp = await client.get(f"{COMPANY_URL}/leave-policies", headers=HEADERS, params={"limit": 100})
    existing = {p["name"]: p for p in resp.json().get("items", [])} if resp.status_code == 200 else {}

    if DEFAULT_POLICY["name"] in existing:
        print(f"  [SKIP] Policy: {DEFAULT_POLICY['name']} (already exists)")
    else:
        policy = await _request(client, "POST", f"{COMPANY_URL}/leave-policies", "Policy: Site crews", DEFAULT_POLICY)
        if policy:
            extras = _year_dates(year)
            await _request(
                client,
                "POST",
                f"{COMPANY_URL}/leave-policies/{policy['id']}/blackout-periods",
                "Blackout: peak season",
                extras["blackout"],
            )
            await _request(
                client,
                "POST",
                f"{COMPANY_URL}/leave-policies/{policy['id']}/company-shutdowns",
                "Shutdown: year end",
                extras["shutdown"],
            )

    if OFFICE_POLICY["name"] in existing:
        print(f"  [SKIP] Policy: {OFFICE_POLICY['name']} (already exists)")
    else:
        await _request(client, "POST", f"{COMPANY_URL}/leave-policies", "Policy: Office staff", OFFICE_POLICY)


async def seed_employees(client: httpx.AsyncClient) -> dict[str, str]:
    """Create employees and return a name->id mapping."""
    print("\n--- Seeding employees ---")
    resp = await client.get(f"{COMPANY_URL}/employees", headers=HEADERS, params={"limit": 500})
    ids = {e["name"]: e["id"] for e in resp.json().get("items", [])} if resp.status_code == 200 else {}

    for employee in EMPLOYEES:
        name = str(employee["name"])
        if name in ids:
            print(f"  [SKIP] {name} (already exists)")
            continue
        created = await _request(client, "POST", f"{COMPANY_URL}/employees", name, employee)
        if created:
            ids[name] = created["id"]
    return ids


def _next_monday(after: date) -> date:
    return after + timedelta(days=7 - after.weekday())


async def seed_leaves(client: httpx.AsyncClient, employee_ids: dict[str, str]) -> None:
    """Submit a few future leaves. Rejections are printed, not fatal."""
    print("\n--- Seeding leaves ---")
    monday = _next_monday(date.today() + timedelta(days=14))
    plans = [
        ("Ana Petrovic", monday, 5, "Family trip"),
        ("Marko Ilic", monday + timedelta(days=2), 3, "Moving house"),
        ("Nikola Savic", monday + timedelta(days=21), 8, None),
    ]
    for name, start, days, note in plans:
        employee_id = employee_ids.get(name)
        if employee_id is None:
            continue
        resp = await client.post(
            f"{COMPANY_URL}/employees/{employee_id}/leaves",
            json={"start_date": start.isoformat(), "days": days, "note": note},
            headers=HEADERS,
        )
        if resp.status_code == 201:
            print(f"  [OK] {name}: {days} days from {start.isoformat()}")
        elif resp.status_code == 400:
            violation = resp.json()["decision"]["violation"]
            print(f"  [REJECTED] {name}: {violation['code']} {violation['message']}")
        else:
            print(f"  [ERROR] {name}: {resp.status_code} {resp.text[:200]}")


async def main() -> None:
    print("=" * 60)
    print("  Leave Desk - Development Seed Script")
    print("=" * 60)

    async with httpx.AsyncClient(timeout=30.0) as client:
        try:
            resp = await client.get(f"{BASE_URL}/health")
            if resp.status_code != 200:
                print(f"API health check failed: {resp.status_code}")
                sys.exit(1)
            print("\n[OK] API is healthy")
        except httpx.ConnectError:
            print("ERROR: Cannot connect to API at", BASE_URL)
            print("Make sure the API is running (uvicorn leavedesk.main:app)")
            sys.exit(1)

        await seed_policies(client, date.today().year)
        employee_ids = await seed_employees(client)
        await seed_leaves(client, employee_ids)

    print("\n" + "=" * 60)
    print("  Seeding complete!")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
