from fastapi import APIRouter

from leavedesk.api.audit import audit_router
from leavedesk.api.balances import balances_router
from leavedesk.api.calendar import calendar_router
from leavedesk.api.employees import employees_router
from leavedesk.api.leaves import employee_leaves_router, leaves_router
from leavedesk.api.policies import router as policies_router

api_router = APIRouter()
api_router.include_router(policies_router)
api_router.include_router(employees_router)
api_router.include_router(employee_leaves_router)
api_router.include_router(leaves_router)
api_router.include_router(balances_router)
api_router.include_router(calendar_router)
api_router.include_router(audit_router)
