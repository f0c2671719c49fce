"""Calendar-date primitives shared by the accrual, balance, constraint and calendar code.

Everything here is pure: the reference date is always an explicit argument.
"""

from __future__ import annotations

from calendar import isleap, monthrange
from dataclasses import dataclass
from datetime import date, timedelta

_SATURDAY = 6


@dataclass(frozen=True)
class Tenure:
    """Completed years, months and days between two dates."""

    years: int
    months: int
    days: int
    total_days: int


def days_in_year(year: int) -> int:
    return 366 if isleap(year) else 365


def year_bounds(year: int) -> tuple[date, date]:
    """Return the inclusive (Jan 1, Dec 31) bounds of a policy year."""
    return date(year, 1, 1), date(year, 12, 31)


def safe_date(year: int, month: int, day: int) -> date:
    """Build a date, clamping the day to the month length (Feb 29 -> Feb 28 in common years)."""
    _, last_day = monthrange(year, month)
    return date(year, month, min(day, last_day))


def ranges_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Whether two inclusive date ranges share at least one day."""
    return a_start <= b_end and b_start <= a_end


def full_years_between(start: date, reference: date) -> int:
    """Completed anniversaries of ``start`` on or before ``reference``, never negative."""
    years = reference.year - start.year
    if (reference.month, reference.day) < (start.month, start.day):
        years -= 1
    return max(years, 0)


def tenure_between(start: date, reference: date) -> Tenure:
    """Break the span from ``start`` to ``reference`` into years, months and days."""
    if reference < start:
        return Tenure(years=0, months=0, days=0, total_days=0)

    total_months = (reference.year - start.year) * 12 + reference.month - start.month
    anchor = add_months(start, total_months)
    if anchor > reference:
        total_months -= 1
        anchor = add_months(start, total_months)

    years, months = divmod(total_months, 12)
    return Tenure(years=years, months=months, days=(reference - anchor).days, total_days=(reference - start).days)


def add_months(day: date, months: int) -> date:
    """Shift ``day`` by whole months, clamping to the end of shorter months."""
    year, month_index = divmod(day.year * 12 + day.month - 1 + months, 12)
    return safe_date(year, month_index + 1, day.day)


def age_on(birth_date: date | None, reference: date) -> int | None:
    if birth_date is None:
        return None
    return full_years_between(birth_date, reference)


def is_weekday(day: date) -> bool:
    return day.isoweekday() < _SATURDAY


def next_weekday(day: date) -> date:
    """Return ``day`` itself if it is Mon-Fri, otherwise the following Monday."""
    iso = day.isoweekday()
    if iso >= _SATURDAY:
        return day + timedelta(days=8 - iso)
    return day


def count_weekdays(start: date, end: date) -> int:
    """Number of Mon-Fri days in the inclusive range."""
    if end < start:
        return 0
    total_days = (end - start).days + 1
    full_weeks, remainder = divmod(total_days, 7)
    count = full_weeks * 5
    first_iso = start.isoweekday()
    for offset in range(remainder):
        if (first_iso + offset - 1) % 7 < 5:
            count += 1
    return count
