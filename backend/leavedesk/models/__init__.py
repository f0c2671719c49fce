from sqlmodel import SQLModel

from leavedesk.models.audit import AuditLog
from leavedesk.models.base import TimestampMixin, UUIDBase
from leavedesk.models.employee import Employee, EmployeePolicyOverride
from leavedesk.models.enums import (
    AccrualMethod,
    AuditAction,
    AuditEntityType,
    ConstraintViolationCode,
    ConstraintWarningCode,
    RoundingMethod,
)
from leavedesk.models.leave import Leave
from leavedesk.models.policy import BlackoutPeriod, CompanyShutdown, LeavePolicy

__all__ = [
    "AccrualMethod",
    "AuditAction",
    "AuditEntityType",
    "AuditLog",
    "BlackoutPeriod",
    "CompanyShutdown",
    "ConstraintViolationCode",
    "ConstraintWarningCode",
    "Employee",
    "EmployeePolicyOverride",
    "Leave",
    "LeavePolicy",
    "RoundingMethod",
    "SQLModel",
    "TimestampMixin",
    "UUIDBase",
]
