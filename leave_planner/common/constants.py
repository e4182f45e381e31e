"""Enums and constants for the leave planner."""

from __future__ import annotations

import enum


# ── Directory / Roles ───────────────────────────────────────────────

class EmployeeRole(str, enum.Enum):
    employee = "employee"
    approver = "approver"
    admin = "admin"


# Roles allowed to approve / reject leave and to file leave for others
DECISION_ROLES: frozenset[EmployeeRole] = frozenset(
    {EmployeeRole.approver, EmployeeRole.admin}
)


# ── Leave ───────────────────────────────────────────────────────────

class LeaveStatus(str, enum.Enum):
    requested = "requested"
    approved = "approved"
    rejected = "rejected"


TERMINAL_STATUSES: frozenset[LeaveStatus] = frozenset(
    {LeaveStatus.approved, LeaveStatus.rejected}
)


# ── Limits ────────────────────────────────────────────────

NAME_MAX_LENGTH = 200
COMMENT_MAX_LENGTH = 1000

EMPLOYEE_ID_HEADER = "X-Employee-Id"
