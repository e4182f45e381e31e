"""Access policy — who may decide on leave requests.

``authorize_decision`` is a pure function over ``(role, is_self)``; the
async helpers resolve identities through the directory and turn denials
into the matching exceptions.
"""

from __future__ import annotations

import enum
import uuid
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from leave_planner.common.constants import DECISION_ROLES, EmployeeRole
from leave_planner.common.exceptions import ForbiddenException
from leave_planner.directory.models import Employee
from leave_planner.directory.service import DirectoryService


class AccessDecision(str, enum.Enum):
    allowed = "allowed"
    denied_role = "denied_role"
    denied_self = "denied_self"


def authorize_decision(
    role: Optional[EmployeeRole],
    *,
    is_self: bool = False,
) -> AccessDecision:
    """Approve/reject is allowed for approvers and admins, never on own leave."""
    if role not in DECISION_ROLES:
        return AccessDecision.denied_role
    if is_self:
        return AccessDecision.denied_self
    return AccessDecision.allowed


async def resolve_caller(
    db: AsyncSession,
    employee_id: Optional[uuid.UUID],
) -> Optional[Employee]:
    """Map an already-authenticated identity to an employee, or None."""
    if employee_id is None:
        return None
    return await DirectoryService.get_employee(db, employee_id)


async def require_decision_maker(
    db: AsyncSession,
    actor_id: uuid.UUID,
    *,
    action: str,
) -> Employee:
    """Load the acting employee and require a decision role.

    An unknown actor is treated like one without the role.
    """
    actor = await resolve_caller(db, actor_id)
    role = actor.role if actor is not None else None
    if authorize_decision(role) is not AccessDecision.allowed:
        raise ForbiddenException(
            f"Only approvers or admins may {action} leave requests."
        )
    return actor


def ensure_not_self(actor: Employee, owner_id: uuid.UUID, *, action: str) -> None:
    """Reject decisions on the actor's own leave request."""
    decision = authorize_decision(actor.role, is_self=actor.id == owner_id)
    if decision is AccessDecision.denied_self:
        raise ForbiddenException(
            f"Self-decision forbidden: you cannot {action} your own leave request."
        )
