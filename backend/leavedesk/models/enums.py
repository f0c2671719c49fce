from __future__ import annotations

import enum


class AccrualMethod(enum.StrEnum):
    """How entitlement becomes available within a policy year."""

    DAILY = "DAILY"
    MONTHLY = "MONTHLY"
    AT_YEAR_START = "AT_YEAR_START"
    PRO_RATA = "PRO_RATA"


class RoundingMethod(enum.StrEnum):
    """How fractional accrued days are turned into whole days."""

    FLOOR = "FLOOR"
    CEIL = "CEIL"
    ROUND = "ROUND"


class ConstraintViolationCode(enum.StrEnum):
    """Reason a leave request was rejected. Checked in declaration order."""

    NOTICE_VIOLATION = "NOTICE_VIOLATION"
    CONSECUTIVE_DAYS_EXCEEDED = "CONSECUTIVE_DAYS_EXCEEDED"
    BLACKOUT_VIOLATION = "BLACKOUT_VIOLATION"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"


class ConstraintWarningCode(enum.StrEnum):
    """Non-blocking findings surfaced alongside an accepted request."""

    BLACKOUT_EXCEPTION = "BLACKOUT_EXCEPTION"
    COMPANY_SHUTDOWN_OVERLAP = "COMPANY_SHUTDOWN_OVERLAP"
    NEGATIVE_BALANCE = "NEGATIVE_BALANCE"


class AuditEntityType(enum.StrEnum):
    """Entity type recorded in the audit log."""

    POLICY = "POLICY"
    BLACKOUT_PERIOD = "BLACKOUT_PERIOD"
    COMPANY_SHUTDOWN = "COMPANY_SHUTDOWN"
    EMPLOYEE = "EMPLOYEE"
    POLICY_OVERRIDE = "POLICY_OVERRIDE"
    LEAVE = "LEAVE"


class AuditAction(enum.StrEnum):
    """Action recorded in the audit log."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
