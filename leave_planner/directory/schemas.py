"""Directory Pydantic v2 schemas — request / response validation.

Naming conventions:
  - *Create / *Update  → request bodies (write)
  - *Response          → response bodies (read)
  - *Brief             → compact embedded representations
"""


import uuid
from datetime import date, datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator

from leave_planner.common.constants import NAME_MAX_LENGTH, EmployeeRole


def _required_name(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("Name is required.")
    return value


def _optional_text(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


RequiredName = Annotated[
    str, Field(max_length=NAME_MAX_LENGTH), AfterValidator(_required_name)
]
OptionalText = Annotated[
    Optional[str], Field(max_length=NAME_MAX_LENGTH), AfterValidator(_optional_text)
]


# ═════════════════════════════════════════════════════════════════════
# Employee
# ═════════════════════════════════════════════════════════════════════


class EmployeeCreate(BaseModel):
    """Payload for adding an employee to the directory."""

    name: RequiredName
    job_title: OptionalText = None
    role: EmployeeRole = EmployeeRole.employee


class EmployeeUpdate(BaseModel):
    """Partial-update payload for an employee (all fields optional)."""

    name: Optional[RequiredName] = None
    job_title: OptionalText = None
    role: Optional[EmployeeRole] = None


class EmployeeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    job_title: Optional[str] = None
    role: EmployeeRole


# ═════════════════════════════════════════════════════════════════════
# Customer
# ═════════════════════════════════════════════════════════════════════


class CustomerCreate(BaseModel):
    name: RequiredName


class CustomerBrief(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str


class CustomerResponse(CustomerBrief):
    created_at: Optional[datetime] = None


# ═════════════════════════════════════════════════════════════════════
# Project
# ═════════════════════════════════════════════════════════════════════


class ProjectCreate(BaseModel):
    """Payload for creating a project. ``end_date`` omitted → open-ended."""

    name: RequiredName
    customer_id: uuid.UUID
    start_date: date
    end_date: Optional[date] = None

    @model_validator(mode="after")
    def validate_period(self) -> "ProjectCreate":
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must be on or after start_date.")
        return self


class ProjectUpdate(ProjectCreate):
    """Full replacement payload for a project."""


class ProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    customer_id: uuid.UUID
    start_date: date
    end_date: Optional[date] = None

    # Enriched by service
    customer: Optional[CustomerBrief] = None


# ═════════════════════════════════════════════════════════════════════
# Assignment
# ═════════════════════════════════════════════════════════════════════


class AssignmentCreate(BaseModel):
    employee_id: uuid.UUID


class AssignmentResponse(BaseModel):
    """One employee assigned to a project."""

    project_id: uuid.UUID
    employee_id: uuid.UUID
    employee_name: str
