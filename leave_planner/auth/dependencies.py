"""Auth dependencies — caller resolution, RBAC enforcement."""

from __future__ import annotations

import uuid
from typing import Callable, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from leave_planner.auth.policy import resolve_caller
from leave_planner.auth.tokens import decode_access_token
from leave_planner.common.constants import EMPLOYEE_ID_HEADER, EmployeeRole
from leave_planner.common.exceptions import AuthenticationException, ForbiddenException
from leave_planner.config import settings
from leave_planner.database import get_db
from leave_planner.directory.models import Employee


def _extract_bearer(request: Request) -> Optional[str]:
    """Return the Bearer token from the Authorization header, if any."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None
    if not auth_header.startswith("Bearer "):
        raise AuthenticationException("Missing or invalid Authorization header.")
    return auth_header[7:]


def _extract_identity(request: Request) -> uuid.UUID:
    """Bearer token wins; the plain employee-id header is the fallback."""
    token = _extract_bearer(request)
    if token is not None:
        return decode_access_token(token)

    raw_id = request.headers.get(EMPLOYEE_ID_HEADER)
    if raw_id and settings.ALLOW_EMPLOYEE_ID_HEADER:
        try:
            return uuid.UUID(raw_id.strip())
        except ValueError:
            raise AuthenticationException(f"Invalid {EMPLOYEE_ID_HEADER} header.")

    raise AuthenticationException()


# ── Core dependency ─────────────────────────────────────────────────

async def get_current_user(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> Employee:
    """Resolve the request's identity to an existing employee."""
    employee_id = _extract_identity(request)

    employee = await resolve_caller(db, employee_id)
    if employee is None:
        raise AuthenticationException("Caller does not match any employee.")

    return employee


# ── Role-based dependency ───────────────────────────────────────────

def require_role(*allowed_roles: EmployeeRole) -> Callable:
    """Return a FastAPI dependency that enforces role membership."""

    async def _check(
        employee: Employee = Depends(get_current_user),
    ) -> Employee:
        if employee.role not in allowed_roles:
            raise ForbiddenException(
                detail=f"Role '{employee.role.value}' is not permitted. Required: {[r.value for r in allowed_roles]}.",
            )
        return employee

    return _check
