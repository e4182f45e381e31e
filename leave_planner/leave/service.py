"""Leave workflow service — create, approve, reject and read leave requests.

State machine: ``requested`` → ``approved`` | ``rejected``; both outcomes are
terminal. Decisions are applied with a conditional UPDATE on the current
status, so two concurrent decisions on one request produce exactly one winner.

Uses:
  - ``require_decision_maker / ensure_not_self`` from leave_planner.auth.policy
  - ``ConflictDetector`` for advisory hints on create and approve
  - ``create_audit_entry`` from leave_planner.common.audit
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from leave_planner.auth.policy import ensure_not_self, require_decision_maker
from leave_planner.common.audit import create_audit_entry
from leave_planner.common.constants import TERMINAL_STATUSES, LeaveStatus
from leave_planner.common.exceptions import (
    ConflictError,
    NotFoundException,
    ValidationException,
)
from leave_planner.directory.service import DirectoryService
from leave_planner.leave.conflicts import ConflictDetector
from leave_planner.leave.models import LeaveRequest
from leave_planner.leave.schemas import LeaveRequestOut, LeaveWithConflictsOut

logger = logging.getLogger(__name__)


def _state_conflict(current: LeaveStatus, action: str) -> ConflictError:
    """The ConflictError for deciding on a leave that is no longer requested."""
    if action == "approve":
        if current == LeaveStatus.approved:
            return ConflictError("Leave is already approved.", reason="already-approved")
        return ConflictError(
            "Leave has been rejected and cannot be approved.",
            reason="terminal-state",
        )
    if current == LeaveStatus.rejected:
        return ConflictError("Leave is already rejected.", reason="already-rejected")
    return ConflictError("Approved leave cannot be rejected.", reason="terminal-state")


class LeaveService:
    """Static methods over an ``AsyncSession``; the caller owns the transaction."""

    # ─────────────────────────────────────────────────────────────────
    # Helpers
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    def _build_response(leave: LeaveRequest) -> LeaveRequestOut:
        return LeaveRequestOut.model_validate(leave)

    @staticmethod
    async def _load(db: AsyncSession, leave_id: uuid.UUID) -> LeaveRequest:
        result = await db.execute(
            select(LeaveRequest).where(LeaveRequest.id == leave_id)
        )
        leave = result.scalars().first()
        if leave is None:
            raise NotFoundException("LeaveRequest", str(leave_id))
        return leave

    @staticmethod
    async def _find_existing(
        db: AsyncSession,
        employee_id: uuid.UUID,
        leave_date: date,
    ) -> Optional[uuid.UUID]:
        result = await db.execute(
            select(LeaveRequest.id).where(
                LeaveRequest.employee_id == employee_id,
                LeaveRequest.leave_date == leave_date,
            )
        )
        return result.scalar()

    @staticmethod
    async def _decide(
        db: AsyncSession,
        leave: LeaveRequest,
        actor_id: uuid.UUID,
        *,
        action: str,
        new_status: LeaveStatus,
        comment: Optional[str] = None,
    ) -> None:
        """Compare-and-set ``requested → new_status`` with decision metadata."""

        now = datetime.now(timezone.utc)
        result = await db.execute(
            update(LeaveRequest)
            .where(
                LeaveRequest.id == leave.id,
                LeaveRequest.status == LeaveStatus.requested,
            )
            .values(
                status=new_status,
                decision_by=actor_id,
                decision_at=now,
                decision_comment=comment,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        await db.refresh(leave)

        if result.rowcount == 0:
            logger.warning(
                "Concurrent decision on leave %s: %s lost to status %s",
                leave.id, action, leave.status.value,
            )
            raise _state_conflict(leave.status, action)

        await create_audit_entry(
            db,
            action=action,
            entity_type="leave_request",
            entity_id=leave.id,
            actor_id=actor_id,
            old_values={"status": LeaveStatus.requested.value},
            new_values={"status": new_status.value, "comment": comment},
        )

    # ─────────────────────────────────────────────────────────────────
    # Create
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def create_leave(
        db: AsyncSession,
        employee_id: uuid.UUID,
        leave_date: date,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> LeaveWithConflictsOut:
        """Request a day off for *employee_id*.

        Returns the new request plus creation-time hints (approved leaves
        of co-assignees only). When *actor_id* names someone other than the
        requester, that actor must be an approver or admin.
        """

        if actor_id is not None and actor_id != employee_id:
            await require_decision_maker(db, actor_id, action="file")

        employee = await DirectoryService.get_employee(db, employee_id)
        if employee is None:
            raise ValidationException(
                {"employee_id": [f"Employee '{employee_id}' does not exist."]}
            )

        if await LeaveService._find_existing(db, employee_id, leave_date) is not None:
            raise ConflictError.duplicate("date", leave_date.isoformat())

        leave = LeaveRequest(
            employee_id=employee_id,
            leave_date=leave_date,
            status=LeaveStatus.requested,
        )
        db.add(leave)
        try:
            await db.flush()
        except IntegrityError as exc:
            await db.rollback()
            err = str(exc.orig)
            if "uq_leave_employee_date" in err or "leave_requests.employee_id" in err:
                logger.warning(
                    "Concurrent leave request for employee %s on %s lost the race",
                    employee_id, leave_date,
                )
                raise ConflictError.duplicate("date", leave_date.isoformat())
            raise

        await db.refresh(leave)
        await create_audit_entry(
            db,
            action="create",
            entity_type="leave_request",
            entity_id=leave.id,
            actor_id=actor_id or employee_id,
            new_values={
                "employee_id": str(employee_id),
                "date": leave_date.isoformat(),
                "status": LeaveStatus.requested.value,
            },
        )

        hints = await ConflictDetector.compute_hints(
            db, employee_id, leave_date, include_requested=False,
        )
        logger.info(
            "Leave %s requested for employee %s on %s (%d conflict hint(s))",
            leave.id, employee_id, leave_date, len(hints),
        )
        return LeaveWithConflictsOut(
            leave=LeaveService._build_response(leave), conflict_hints=hints,
        )

    # ─────────────────────────────────────────────────────────────────
    # Approve
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def approve_leave(
        db: AsyncSession,
        leave_id: uuid.UUID,
        actor_id: uuid.UUID,
    ) -> LeaveWithConflictsOut:
        """Approve a requested leave.

        Hints are computed before the status changes and include pending
        requests of co-assignees.
        """

        actor = await require_decision_maker(db, actor_id, action="approve")
        leave = await LeaveService._load(db, leave_id)
        ensure_not_self(actor, leave.employee_id, action="approve")

        if leave.status in TERMINAL_STATUSES:
            raise _state_conflict(leave.status, "approve")

        hints = await ConflictDetector.compute_hints(
            db, leave.employee_id, leave.leave_date, include_requested=True,
        )

        await LeaveService._decide(
            db, leave, actor.id, action="approve", new_status=LeaveStatus.approved,
        )
        logger.info(
            "Leave %s approved by %s (%d conflict hint(s))",
            leave.id, actor.id, len(hints),
        )
        return LeaveWithConflictsOut(
            leave=LeaveService._build_response(leave), conflict_hints=hints,
        )

    # ─────────────────────────────────────────────────────────────────
    # Reject
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def reject_leave(
        db: AsyncSession,
        leave_id: uuid.UUID,
        actor_id: uuid.UUID,
        comment: Optional[str] = None,
    ) -> LeaveRequestOut:
        """Reject a requested leave. A blank comment is stored as absent."""

        actor = await require_decision_maker(db, actor_id, action="reject")
        leave = await LeaveService._load(db, leave_id)
        ensure_not_self(actor, leave.employee_id, action="reject")

        if leave.status in TERMINAL_STATUSES:
            raise _state_conflict(leave.status, "reject")

        comment = (comment or "").strip() or None
        await LeaveService._decide(
            db, leave, actor.id,
            action="reject", new_status=LeaveStatus.rejected, comment=comment,
        )
        logger.info("Leave %s rejected by %s", leave.id, actor.id)
        return LeaveService._build_response(leave)

    # ─────────────────────────────────────────────────────────────────
    # Read
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def list_leaves(
        db: AsyncSession,
        *,
        employee_id: Optional[uuid.UUID] = None,
        on_date: Optional[date] = None,
    ) -> Sequence[LeaveRequest]:
        query = select(LeaveRequest)
        if employee_id is not None:
            query = query.where(LeaveRequest.employee_id == employee_id)
        if on_date is not None:
            query = query.where(LeaveRequest.leave_date == on_date)

        result = await db.execute(
            query.order_by(
                LeaveRequest.leave_date, LeaveRequest.created_at, LeaveRequest.id,
            )
        )
        return result.scalars().all()

    @staticmethod
    async def get_leave(db: AsyncSession, leave_id: uuid.UUID) -> LeaveRequest:
        return await LeaveService._load(db, leave_id)
