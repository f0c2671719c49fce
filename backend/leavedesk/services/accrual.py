"""Accrual calculator: hire date + policy + reference date -> entitled days for the policy year.

All arithmetic is exact (``Fraction``) until the policy's rounding method is
applied, so leap years and mid-year hires never drift.
"""

from __future__ import annotations

import math
from calendar import monthrange
from dataclasses import dataclass
from datetime import date
from fractions import Fraction
from typing import TYPE_CHECKING, assert_never

from leavedesk.models.enums import AccrualMethod, RoundingMethod
from leavedesk.services.dates import days_in_year, full_years_between, year_bounds

if TYPE_CHECKING:
    from leavedesk.schemas.policy import LeavePolicySettings

_MONTHS_PER_YEAR = 12
_HALF = Fraction(1, 2)


@dataclass(frozen=True)
class Entitlement:
    """Breakdown of an accrual computation."""

    reference_date: date
    seniority_years: int
    seniority_bonus: int
    annual_days: int
    accrued_raw: Fraction
    accrued: int


# ---------------------------------------------------------------------------
# Pure computation helpers
# ---------------------------------------------------------------------------


def seniority_bonus(years: int, policy: LeavePolicySettings) -> int:
    """Bonus days earned for every completed ``seniority_step_years`` of service."""
    return (years // policy.seniority_step_years) * policy.bonus_per_step


def annual_entitlement(hired_at: date, policy: LeavePolicySettings, reference_date: date) -> int:
    """Full-year entitlement (base + seniority bonus) as of ``reference_date``."""
    years = full_years_between(hired_at, reference_date)
    return policy.base_annual_days + seniority_bonus(years, policy)


def _elapsed_days(hired_at: date, reference_date: date) -> int:
    """Calendar days from max(hire, Jan 1) through ``reference_date`` inclusive."""
    year_start, _ = year_bounds(reference_date.year)
    start = max(hired_at, year_start)
    if reference_date < start:
        return 0
    return (reference_date - start).days + 1


def _completed_months(hired_at: date, reference_date: date) -> int:
    """Months of the reference year worked in full and already over on ``reference_date``."""
    year = reference_date.year
    completed = 0
    for month in range(1, reference_date.month + 1):
        _, last_day = monthrange(year, month)
        if hired_at <= date(year, month, 1) and reference_date >= date(year, month, last_day):
            completed += 1
    return completed


def _pro_rata(hired_at: date, annual_days: int, reference_date: date) -> Fraction:
    """Share of the year's entitlement the employee is eligible for, accrued over that share."""
    year_start, year_end = year_bounds(reference_date.year)
    start = max(hired_at, year_start)
    if start > year_end or reference_date < start:
        return Fraction(0)

    eligible_days = (year_end - start).days + 1
    year_share = Fraction(annual_days * eligible_days, days_in_year(reference_date.year))
    elapsed = (reference_date - start).days + 1
    return year_share * elapsed / eligible_days


def accrued_fraction(
    hired_at: date,
    annual_days: int,
    method: AccrualMethod,
    reference_date: date,
) -> Fraction:
    """Unrounded days accrued by ``reference_date`` under ``method``."""
    match method:
        case AccrualMethod.AT_YEAR_START:
            return Fraction(annual_days) if hired_at <= reference_date else Fraction(0)
        case AccrualMethod.DAILY:
            elapsed = _elapsed_days(hired_at, reference_date)
            return Fraction(annual_days * elapsed, days_in_year(reference_date.year))
        case AccrualMethod.MONTHLY:
            months = _completed_months(hired_at, reference_date)
            return Fraction(annual_days * months, _MONTHS_PER_YEAR)
        case AccrualMethod.PRO_RATA:
            return _pro_rata(hired_at, annual_days, reference_date)
        case _:
            assert_never(method)


def apply_rounding(value: Fraction, method: RoundingMethod) -> int:
    """Turn fractional days into whole days. ROUND is half-up."""
    match method:
        case RoundingMethod.FLOOR:
            return math.floor(value)
        case RoundingMethod.CEIL:
            return math.ceil(value)
        case RoundingMethod.ROUND:
            return math.floor(value + _HALF)
        case _:
            assert_never(method)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def compute_entitlement(hired_at: date, policy: LeavePolicySettings, reference_date: date) -> Entitlement:
    """Entitled days for the policy year containing ``reference_date``.

    1. Completed years of service (never negative).
    2. Seniority bonus = floor(years / step) * bonus_per_step.
    3. Annual entitlement = base + bonus.
    4. Accrue per the policy's accrual method.
    5. Round, except AT_YEAR_START which is always whole.
    """
    years = full_years_between(hired_at, reference_date)
    bonus = seniority_bonus(years, policy)
    annual_days = policy.base_annual_days + bonus

    raw = accrued_fraction(hired_at, annual_days, policy.accrual_method, reference_date)
    if policy.accrual_method == AccrualMethod.AT_YEAR_START:
        accrued = int(raw)
    else:
        accrued = apply_rounding(raw, policy.rounding_method)

    return Entitlement(
        reference_date=reference_date,
        seniority_years=years,
        seniority_bonus=bonus,
        annual_days=annual_days,
        accrued_raw=raw,
        accrued=accrued,
    )


def entitled_days(hired_at: date, policy: LeavePolicySettings, reference_date: date) -> int:
    """Shorthand for ``compute_entitlement(...).accrued``."""
    return compute_entitlement(hired_at, policy, reference_date).accrued
