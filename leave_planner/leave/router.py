"""Leave router — request, approve, reject and browse leave requests.

All endpoints require authentication. Approve/reject role checks live in the
service so that every entry point enforces them.
"""

import uuid
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from leave_planner.auth.dependencies import get_current_user
from leave_planner.common.rate_limit import limiter
from leave_planner.config import settings
from leave_planner.database import get_db
from leave_planner.directory.models import Employee
from leave_planner.leave.schemas import (
    LeaveRejectRequest,
    LeaveRequestCreate,
    LeaveRequestOut,
    LeaveWithConflictsOut,
)
from leave_planner.leave.service import LeaveService

router = APIRouter(prefix="", tags=["leaves"])


# ── GET / ───────────────────────────────────────────────────────────

@router.get("", response_model=list[LeaveRequestOut])
async def list_leaves(
    employee_id: Optional[uuid.UUID] = Query(None),
    on_date: Optional[date] = Query(None, alias="date"),
    current_user: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """List leave requests, optionally filtered by employee and/or date."""
    return await LeaveService.list_leaves(
        db, employee_id=employee_id, on_date=on_date,
    )


# ── GET /{leave_id} ─────────────────────────────────────────────────

@router.get("/{leave_id}", response_model=LeaveRequestOut)
async def get_leave(
    leave_id: uuid.UUID,
    current_user: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.get_leave(db, leave_id)


# ── POST / ──────────────────────────────────────────────────────────

@router.post(
    "",
    response_model=LeaveWithConflictsOut,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.RATE_LIMIT_LEAVE_CREATE)
async def create_leave(
    request: Request,
    body: LeaveRequestCreate,
    current_user: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Request a day off. ``employee_id`` defaults to the caller."""
    return await LeaveService.create_leave(
        db,
        body.employee_id or current_user.id,
        body.leave_date,
        actor_id=current_user.id,
    )


# ── POST /{leave_id}/approve ────────────────────────────────────────

@router.post("/{leave_id}/approve", response_model=LeaveWithConflictsOut)
async def approve_leave(
    leave_id: uuid.UUID,
    current_user: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Approve a pending request (approver or admin, never on own leave)."""
    return await LeaveService.approve_leave(db, leave_id, current_user.id)


# ── POST /{leave_id}/reject ─────────────────────────────────────────

@router.post("/{leave_id}/reject", response_model=LeaveRequestOut)
async def reject_leave(
    leave_id: uuid.UUID,
    body: Optional[LeaveRejectRequest] = None,
    current_user: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    comment = body.comment if body is not None else None
    return await LeaveService.reject_leave(db, leave_id, current_user.id, comment)
