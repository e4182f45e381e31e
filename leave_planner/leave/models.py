"""Leave ORM model: LeaveRequest."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from leave_planner.common.constants import COMMENT_MAX_LENGTH, LeaveStatus
from leave_planner.database import Base


class LeaveRequest(Base):
    """A single-day leave request and its decision metadata."""

    __tablename__ = "leave_requests"
    __table_args__ = (
        # One request per employee and day; the storage-level guard
        sa.UniqueConstraint(
            "employee_id", "leave_date", name="uq_leave_employee_date"
        ),
        sa.Index("ix_leave_requests_date_status", "leave_date", "status"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    employee_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("employees.id", ondelete="CASCADE"),
        nullable=False,
    )
    leave_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    status: Mapped[LeaveStatus] = mapped_column(
        sa.Enum(LeaveStatus, name="leave_status"),
        nullable=False,
        default=LeaveStatus.requested,
    )
    decision_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id", ondelete="SET NULL")
    )
    decision_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True)
    )
    decision_comment: Mapped[Optional[str]] = mapped_column(
        sa.String(COMMENT_MAX_LENGTH)
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now()
    )

    def __repr__(self) -> str:
        return f"<LeaveRequest {self.employee_id} {self.leave_date} {self.status.value}>"
