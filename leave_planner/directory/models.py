"""Directory ORM models: Employee, Customer, Project, ProjectAssignment.

SQLAlchemy 2.0 async-compatible models with Mapped[] annotations. Links
between entities are plain foreign-key columns; services join explicitly
instead of navigating relationships.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from leave_planner.common.constants import NAME_MAX_LENGTH, EmployeeRole
from leave_planner.database import Base


# ═════════════════════════════════════════════════════════════════════
# Employee
# ═════════════════════════════════════════════════════════════════════


class Employee(Base):
    """A person who can request leave and, by role, decide on it."""

    __tablename__ = "employees"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(NAME_MAX_LENGTH), nullable=False)
    job_title: Mapped[Optional[str]] = mapped_column(sa.String(NAME_MAX_LENGTH))
    role: Mapped[EmployeeRole] = mapped_column(
        sa.Enum(EmployeeRole, name="employee_role"),
        nullable=False,
        default=EmployeeRole.employee,
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Employee {self.name!r} ({self.role.value if self.role else '-'})>"


# ═════════════════════════════════════════════════════════════════════
# Customer
# ═════════════════════════════════════════════════════════════════════


class Customer(Base):
    __tablename__ = "customers"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(NAME_MAX_LENGTH), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Customer {self.name!r}>"


# ═════════════════════════════════════════════════════════════════════
# Project
# ═════════════════════════════════════════════════════════════════════


class Project(Base):
    """Customer project with an inclusive date window (open-ended if no end)."""

    __tablename__ = "projects"
    __table_args__ = (
        sa.CheckConstraint(
            "end_date IS NULL OR end_date >= start_date",
            name="ck_project_period",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(sa.String(NAME_MAX_LENGTH), nullable=False)
    customer_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("customers.id", ondelete="RESTRICT"),
        nullable=False,
    )
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[Optional[date]] = mapped_column(sa.Date)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(),
    )

    def __repr__(self) -> str:
        return f"<Project {self.name!r} {self.start_date}..{self.end_date or ''}>"


# ═════════════════════════════════════════════════════════════════════
# ProjectAssignment
# ═════════════════════════════════════════════════════════════════════


class ProjectAssignment(Base):
    __tablename__ = "project_assignments"
    __table_args__ = (
        sa.UniqueConstraint(
            "employee_id", "project_id", name="uq_project_assignment"
        ),
        sa.Index("ix_project_assignments_project_id", "project_id"),
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
    project_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        sa.ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now(),
    )
