# ruff: noqa: TC003
from __future__ import annotations

import uuid

from pydantic import BaseModel


class AuthContext(BaseModel):
    """Development auth context taken from the X-Company-Id, X-User-Id and X-Role headers."""

    company_id: uuid.UUID
    user_id: uuid.UUID
    role: str = "employee"
