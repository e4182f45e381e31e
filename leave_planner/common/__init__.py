"""Common module — shared utilities for the leave planner."""

from leave_planner.common.audit import AuditTrail, create_audit_entry
from leave_planner.common.constants import (
    DECISION_ROLES,
    EMPLOYEE_ID_HEADER,
    TERMINAL_STATUSES,
    EmployeeRole,
    LeaveStatus,
)
from leave_planner.common.exceptions import (
    AppException,
    AuthenticationException,
    ConflictError,
    ForbiddenException,
    InfrastructureException,
    NotFoundException,
    ValidationException,
    register_exception_handlers,
)

__all__ = [
    # Audit
    "AuditTrail",
    "create_audit_entry",
    # Constants / Enums
    "EmployeeRole",
    "LeaveStatus",
    "DECISION_ROLES",
    "TERMINAL_STATUSES",
    "EMPLOYEE_ID_HEADER",
    # Exceptions
    "AppException",
    "AuthenticationException",
    "ConflictError",
    "ForbiddenException",
    "InfrastructureException",
    "NotFoundException",
    "ValidationException",
    "register_exception_handlers",
]
