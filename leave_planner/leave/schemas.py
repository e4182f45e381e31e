"""Leave Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create / *Request  → request bodies (write)
  - *Out                → response bodies (read)
"""

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from leave_planner.common.constants import COMMENT_MAX_LENGTH, LeaveStatus


# ═════════════════════════════════════════════════════════════════════
# Conflict hints
# ═════════════════════════════════════════════════════════════════════


class ConflictEmployee(BaseModel):
    employee_id: uuid.UUID
    employee_name: str


class ConflictHint(BaseModel):
    """Co-assignees of one project who are absent (or pending) on the date."""

    project_id: uuid.UUID
    project_name: str
    employees: list[ConflictEmployee] = Field(default_factory=list)


# ═════════════════════════════════════════════════════════════════════
# Leave Request: Create / Reject
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestCreate(BaseModel):
    """Payload for requesting a day off.

    ``employee_id`` defaults to the caller; approvers and admins may file
    on behalf of someone else.
    """

    model_config = ConfigDict(populate_by_name=True)

    employee_id: Optional[uuid.UUID] = None
    leave_date: date = Field(..., alias="date", description="The requested day (YYYY-MM-DD)")


class LeaveRejectRequest(BaseModel):
    """Payload for rejecting a leave request."""

    comment: Optional[str] = Field(None, max_length=COMMENT_MAX_LENGTH)

    @field_validator("comment")
    @classmethod
    def blank_comment_is_absent(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None


# ═════════════════════════════════════════════════════════════════════
# Leave Request: Response
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestOut(BaseModel):
    """Leave request as returned by every leave endpoint."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    employee_id: uuid.UUID
    leave_date: date = Field(
        ...,
        validation_alias=AliasChoices("date", "leave_date"),
        serialization_alias="date",
    )
    status: LeaveStatus
    decision_by: Optional[uuid.UUID] = None
    decision_at: Optional[datetime] = None
    decision_comment: Optional[str] = None


class LeaveWithConflictsOut(BaseModel):
    """Result of create / approve: the request plus advisory hints."""

    leave: LeaveRequestOut
    conflict_hints: list[ConflictHint] = Field(default_factory=list)
