"""Conflict detection — who else on the requester's projects is away that day.

Hints are advisory: they are returned next to a successful create/approve
and never block either.

Algorithm:
  1. Projects the requester is assigned to that are active on the date.
  2. Other employees assigned to any of those projects (co-assignees).
  3. Co-assignees holding a leave that day whose status counts:
     ``approved`` only at creation time, ``approved`` + ``requested`` at
     approval time.
  4. One hint per project listing its distinct conflicting employees,
     ordered by project id, then employee id.
"""

from __future__ import annotations

import logging
import uuid
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from leave_planner.common.constants import LeaveStatus
from leave_planner.directory.service import DirectoryService
from leave_planner.leave.models import LeaveRequest
from leave_planner.leave.schemas import ConflictEmployee, ConflictHint

logger = logging.getLogger(__name__)


def _statuses_of_interest(include_requested: bool) -> tuple[LeaveStatus, ...]:
    if include_requested:
        return (LeaveStatus.approved, LeaveStatus.requested)
    return (LeaveStatus.approved,)


class ConflictDetector:
    """Computes project-level conflict hints for one requester and date."""

    @staticmethod
    async def compute_hints(
        db: AsyncSession,
        requester_id: uuid.UUID,
        on_date: date,
        *,
        include_requested: bool,
    ) -> list[ConflictHint]:
        active_project_ids = await DirectoryService.active_projects_for(
            db, requester_id, on_date,
        )
        if not active_project_ids:
            return []

        co_assignees = await DirectoryService.co_assignees(
            db, active_project_ids, requester_id,
        )
        if not co_assignees:
            return []

        team_ids = {row.employee_id for row in co_assignees}
        result = await db.execute(
            select(LeaveRequest.employee_id)
            .where(
                LeaveRequest.leave_date == on_date,
                LeaveRequest.status.in_(_statuses_of_interest(include_requested)),
                LeaveRequest.employee_id.in_(list(team_ids)),
            )
            .distinct()
        )
        conflicting_ids = set(result.scalars().all())
        if not conflicting_ids:
            return []

        # project_id → (project_name, {employee_id: employee_name})
        grouped: dict[uuid.UUID, tuple[str, dict[uuid.UUID, str]]] = {}
        for row in co_assignees:
            if row.employee_id not in conflicting_ids:
                continue
            _, employees = grouped.setdefault(row.project_id, (row.project_name, {}))
            employees.setdefault(row.employee_id, row.employee_name)

        hints = [
            ConflictHint(
                project_id=project_id,
                project_name=project_name,
                employees=[
                    ConflictEmployee(employee_id=emp_id, employee_name=employees[emp_id])
                    for emp_id in sorted(employees)
                ],
            )
            for project_id, (project_name, employees) in sorted(grouped.items())
        ]
        logger.debug(
            "Conflict hints for %s on %s (include_requested=%s): %d project(s)",
            requester_id, on_date, include_requested, len(hints),
        )
        return hints
