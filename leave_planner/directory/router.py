"""Directory router — Employee, Customer, Project and assignment endpoints.

Reads require an authenticated caller; writes require the admin role.

Routes:
    /employees                      — List, create employees
    /employees/{id}                 — Get, update, delete employee
    /customers                      — List, create customers
    /customers/{id}                 — Customer detail
    /projects                       — List, create projects
    /projects/{id}                  — Get, update, delete project
    /projects/{id}/assignments      — List assignees, assign employee
"""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from leave_planner.auth.dependencies import get_current_user, require_role
from leave_planner.common.constants import EmployeeRole
from leave_planner.database import get_db
from leave_planner.directory.models import Employee
from leave_planner.directory.schemas import (
    AssignmentCreate,
    AssignmentResponse,
    CustomerCreate,
    CustomerResponse,
    EmployeeCreate,
    EmployeeResponse,
    EmployeeUpdate,
    ProjectCreate,
    ProjectResponse,
    ProjectUpdate,
)
from leave_planner.directory.service import (
    CustomerService,
    EmployeeService,
    ProjectService,
)


# ═════════════════════════════════════════════════════════════════════
# Routers
# ═════════════════════════════════════════════════════════════════════

employees_router = APIRouter(prefix="", tags=["employees"])
customers_router = APIRouter(prefix="", tags=["customers"])
projects_router = APIRouter(prefix="", tags=["projects"])

_require_admin = require_role(EmployeeRole.admin)


# ═════════════════════════════════════════════════════════════════════
# Employee Endpoints
# ═════════════════════════════════════════════════════════════════════


@employees_router.get("", response_model=list[EmployeeResponse])
async def list_employees(
    current_user: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await EmployeeService.list_employees(db)


@employees_router.post(
    "", response_model=EmployeeResponse, status_code=status.HTTP_201_CREATED,
)
async def create_employee(
    body: EmployeeCreate,
    admin: Employee = Depends(_require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await EmployeeService.create_employee(db, body, actor_id=admin.id)


@employees_router.get("/{employee_id}", response_model=EmployeeResponse)
async def get_employee(
    employee_id: uuid.UUID,
    current_user: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await EmployeeService.get_employee(db, employee_id)


@employees_router.put("/{employee_id}", response_model=EmployeeResponse)
async def update_employee(
    employee_id: uuid.UUID,
    body: EmployeeUpdate,
    admin: Employee = Depends(_require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Update name, job title or role."""
    return await EmployeeService.update_employee(
        db, employee_id, body, actor_id=admin.id,
    )


@employees_router.delete(
    "/{employee_id}", status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_employee(
    employee_id: uuid.UUID,
    admin: Employee = Depends(_require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Delete an employee together with their assignments and leave requests."""
    await EmployeeService.delete_employee(db, employee_id, actor_id=admin.id)


# ═════════════════════════════════════════════════════════════════════
# Customer Endpoints
# ═════════════════════════════════════════════════════════════════════


@customers_router.get("", response_model=list[CustomerResponse])
async def list_customers(
    current_user: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await CustomerService.list_customers(db)


@customers_router.post(
    "", response_model=CustomerResponse, status_code=status.HTTP_201_CREATED,
)
async def create_customer(
    body: CustomerCreate,
    admin: Employee = Depends(_require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await CustomerService.create_customer(db, body, actor_id=admin.id)


@customers_router.get("/{customer_id}", response_model=CustomerResponse)
async def get_customer(
    customer_id: uuid.UUID,
    current_user: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await CustomerService.get_customer(db, customer_id)


# ═════════════════════════════════════════════════════════════════════
# Project Endpoints
# ═════════════════════════════════════════════════════════════════════


@projects_router.get("", response_model=list[ProjectResponse])
async def list_projects(
    current_user: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ProjectService.list_projects(db)


@projects_router.post(
    "", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED,
)
async def create_project(
    body: ProjectCreate,
    admin: Employee = Depends(_require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Create a project. ``end_date`` must not precede ``start_date``."""
    return await ProjectService.create_project(db, body, actor_id=admin.id)


@projects_router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(
    project_id: uuid.UUID,
    current_user: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ProjectService.get_project(db, project_id)


@projects_router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project_id: uuid.UUID,
    body: ProjectUpdate,
    admin: Employee = Depends(_require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await ProjectService.update_project(
        db, project_id, body, actor_id=admin.id,
    )


@projects_router.delete(
    "/{project_id}", status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_project(
    project_id: uuid.UUID,
    admin: Employee = Depends(_require_admin),
    db: AsyncSession = Depends(get_db),
):
    await ProjectService.delete_project(db, project_id, actor_id=admin.id)


# ── Assignments ─────────────────────────────────────────────────────

@projects_router.get(
    "/{project_id}/assignments", response_model=list[AssignmentResponse],
)
async def list_assignments(
    project_id: uuid.UUID,
    current_user: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await ProjectService.list_assignments(db, project_id)


@projects_router.post(
    "/{project_id}/assignments",
    response_model=AssignmentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def assign_employee(
    project_id: uuid.UUID,
    body: AssignmentCreate,
    admin: Employee = Depends(_require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Assign an employee to the project (each pair at most once)."""
    return await ProjectService.assign_employee(
        db, project_id, body.employee_id, actor_id=admin.id,
    )
