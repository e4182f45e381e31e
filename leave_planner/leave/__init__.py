"""Leave module — leave requests, decision workflow and conflict hints."""

from leave_planner.leave.models import LeaveRequest

__all__ = ["LeaveRequest"]
