"""Constraint validator: may this leave request be taken under policy and balance?

The checks run in a fixed order and the first failure wins:

1. Notice (start_date earlier than today + min_notice_days)
2. Consecutive days (days > max_consecutive_days)
3. Blackout (a non-exception blackout intersects the business-day span)
4. Balance (remaining - days would drop below the negative floor)

Warnings never reject; they ride along on accepted and rejected decisions.
"""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING

from leavedesk.exceptions import InvalidInputError
from leavedesk.models.enums import ConstraintViolationCode, ConstraintWarningCode
from leavedesk.schemas.leave import ConstraintViolation, ConstraintWarning, LeaveDecision
from leavedesk.services.calendar import business_day_span
from leavedesk.services.dates import ranges_overlap

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import date

    from leavedesk.schemas.policy import BlackoutWindow, LeavePolicySettings, ShutdownWindow


def negative_floor(policy: LeavePolicySettings) -> int:
    """Lowest ``remaining`` a leave may leave behind."""
    return -abs(policy.max_negative_balance)


def _check_notice(policy: LeavePolicySettings, start_date: date, today: date) -> ConstraintViolation | None:
    if policy.min_notice_days is None:
        return None
    earliest = today + timedelta(days=policy.min_notice_days)
    if start_date < earliest:
        return ConstraintViolation(
            code=ConstraintViolationCode.NOTICE_VIOLATION,
            message=f"Leave must be requested at least {policy.min_notice_days} days in advance "
            f"(earliest start {earliest.isoformat()})",
        )
    return None


def _check_consecutive(policy: LeavePolicySettings, days: int) -> ConstraintViolation | None:
    if policy.max_consecutive_days is None or days <= policy.max_consecutive_days:
        return None
    return ConstraintViolation(
        code=ConstraintViolationCode.CONSECUTIVE_DAYS_EXCEEDED,
        message=f"Requested {days} days exceeds the limit of {policy.max_consecutive_days} consecutive days",
    )


def _check_blackouts(
    blackouts: Iterable[BlackoutWindow],
    span_start: date,
    span_end: date,
    warnings: list[ConstraintWarning],
) -> ConstraintViolation | None:
    for blackout in blackouts:
        if not ranges_overlap(span_start, span_end, blackout.start_date, blackout.end_date):
            continue
        window = f"{blackout.start_date.isoformat()} to {blackout.end_date.isoformat()}"
        if blackout.allow_exceptions:
            warnings.append(
                ConstraintWarning(
                    code=ConstraintWarningCode.BLACKOUT_EXCEPTION,
                    message=f"Overlaps blackout period {window} ({blackout.reason}); requires review",
                )
            )
            continue
        return ConstraintViolation(
            code=ConstraintViolationCode.BLACKOUT_VIOLATION,
            message=f"Leave overlaps blackout period {window}: {blackout.reason}",
        )
    return None


def _check_balance(
    policy: LeavePolicySettings,
    days: int,
    remaining: int,
    warnings: list[ConstraintWarning],
) -> ConstraintViolation | None:
    after = remaining - days
    floor = negative_floor(policy)
    if after < floor:
        return ConstraintViolation(
            code=ConstraintViolationCode.INSUFFICIENT_BALANCE,
            message=f"Insufficient balance: {remaining} remaining, {days} requested, "
            f"balance may not go below {floor}",
        )
    if after < 0:
        warnings.append(
            ConstraintWarning(
                code=ConstraintWarningCode.NEGATIVE_BALANCE,
                message=f"Balance will be negative after this leave ({after} days)",
            )
        )
    return None


def validate_leave_request(
    *,
    policy: LeavePolicySettings,
    blackouts: Iterable[BlackoutWindow],
    shutdowns: Iterable[ShutdownWindow],
    start_date: date,
    days: int,
    remaining: int,
    today: date,
) -> LeaveDecision:
    """Decide whether a leave request is acceptable. Pure; performs no writes."""
    if days <= 0:
        raise InvalidInputError("days must be a positive number of business days")

    span_start, span_end = business_day_span(start_date, days)
    warnings: list[ConstraintWarning] = []

    for shutdown in shutdowns:
        if ranges_overlap(span_start, span_end, shutdown.start_date, shutdown.end_date):
            warnings.append(
                ConstraintWarning(
                    code=ConstraintWarningCode.COMPANY_SHUTDOWN_OVERLAP,
                    message=f"Overlaps company shutdown {shutdown.start_date.isoformat()} to "
                    f"{shutdown.end_date.isoformat()} ({shutdown.reason})",
                )
            )

    violation = (
        _check_notice(policy, start_date, today)
        or _check_consecutive(policy, days)
        or _check_blackouts(blackouts, span_start, span_end, warnings)
        or _check_balance(policy, days, remaining, warnings)
    )

    needs_review = any(w.code == ConstraintWarningCode.BLACKOUT_EXCEPTION for w in warnings)
    return LeaveDecision(
        accepted=violation is None,
        violation=violation,
        warnings=warnings,
        needs_review=violation is None and needs_review,
        span_start=span_start,
        span_end=span_end,
    )
