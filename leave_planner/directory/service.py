"""Directory service layer — read contract for the leave engine + management CRUD.

Uses:
  - ``create_audit_entry`` from leave_planner.common.audit
  - ``NotFoundException / ConflictError / ValidationException`` from
    leave_planner.common.exceptions
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, datetime, timezone
from typing import Any, Iterable, NamedTuple, Optional, Sequence

from sqlalchemy import delete, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from leave_planner.common.audit import create_audit_entry
from leave_planner.common.exceptions import (
    ConflictError,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from leave_planner.directory.models import (
    Customer,
    Employee,
    Project,
    ProjectAssignment,
)
from leave_planner.directory.schemas import (
    AssignmentResponse,
    CustomerBrief,
    CustomerCreate,
    EmployeeCreate,
    EmployeeUpdate,
    ProjectCreate,
    ProjectResponse,
    ProjectUpdate,
)
from leave_planner.leave.models import LeaveRequest

logger = logging.getLogger(__name__)


class CoAssignee(NamedTuple):
    """One (project, other employee) assignment row."""

    project_id: uuid.UUID
    project_name: str
    employee_id: uuid.UUID
    employee_name: str


# ═════════════════════════════════════════════════════════════════════
# DirectoryService: read contract consumed by the leave engine
# ═════════════════════════════════════════════════════════════════════


class DirectoryService:
    """Pure reads. Database failures propagate unchanged."""

    @staticmethod
    async def get_employee(
        db: AsyncSession,
        employee_id: uuid.UUID,
    ) -> Optional[Employee]:
        result = await db.execute(
            select(Employee).where(Employee.id == employee_id)
        )
        return result.scalars().first()

    @staticmethod
    async def active_projects_for(
        db: AsyncSession,
        employee_id: uuid.UUID,
        on_date: date,
    ) -> set[uuid.UUID]:
        """Projects the employee is assigned to whose window covers *on_date*."""

        result = await db.execute(
            select(ProjectAssignment.project_id)
            .join(Project, Project.id == ProjectAssignment.project_id)
            .where(
                ProjectAssignment.employee_id == employee_id,
                Project.start_date <= on_date,
                (Project.end_date.is_(None) | (Project.end_date >= on_date)),
            )
            .distinct()
        )
        return set(result.scalars().all())

    @staticmethod
    async def co_assignees(
        db: AsyncSession,
        project_ids: Iterable[uuid.UUID],
        excluding_employee_id: uuid.UUID,
    ) -> list[CoAssignee]:
        """Every other employee assigned to any of *project_ids*."""

        ids = list(project_ids)
        if not ids:
            return []

        result = await db.execute(
            select(
                ProjectAssignment.project_id,
                Project.name,
                ProjectAssignment.employee_id,
                Employee.name,
            )
            .join(Project, Project.id == ProjectAssignment.project_id)
            .join(Employee, Employee.id == ProjectAssignment.employee_id)
            .where(
                ProjectAssignment.project_id.in_(ids),
                ProjectAssignment.employee_id != excluding_employee_id,
            )
            .order_by(ProjectAssignment.project_id, ProjectAssignment.employee_id)
        )
        return [CoAssignee(*row) for row in result.all()]


# ═════════════════════════════════════════════════════════════════════
# EmployeeService
# ═════════════════════════════════════════════════════════════════════


class EmployeeService:
    """Async CRUD operations for employees."""

    @staticmethod
    async def list_employees(db: AsyncSession) -> Sequence[Employee]:
        result = await db.execute(select(Employee).order_by(Employee.name, Employee.id))
        return result.scalars().all()

    @staticmethod
    async def get_employee(db: AsyncSession, employee_id: uuid.UUID) -> Employee:
        employee = await DirectoryService.get_employee(db, employee_id)
        if employee is None:
            raise NotFoundException("Employee", str(employee_id))
        return employee

    @staticmethod
    async def create_employee(
        db: AsyncSession,
        data: EmployeeCreate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Employee:
        """Create a new employee record."""

        employee = Employee(**data.model_dump())
        db.add(employee)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="employee",
            entity_id=employee.id,
            actor_id=actor_id,
            new_values=data.model_dump(mode="json"),
        )
        logger.info("Employee %s created (role=%s)", employee.id, employee.role.value)
        return employee

    @staticmethod
    async def update_employee(
        db: AsyncSession,
        employee_id: uuid.UUID,
        data: EmployeeUpdate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Employee:
        """Partial-update an existing employee."""

        employee = await EmployeeService.get_employee(db, employee_id)

        changes = data.model_dump(exclude_unset=True)
        if changes.get("name", "") is None:
            raise ValidationException({"name": ["Name is required."]})
        if "role" in changes and changes["role"] is None:
            raise ValidationException({"role": ["Role is required."]})
        if not changes:
            return employee

        old_values: dict[str, Any] = {}
        for field, value in changes.items():
            old_val = getattr(employee, field, None)
            if hasattr(old_val, "value"):
                old_val = old_val.value
            old_values[field] = old_val
            setattr(employee, field, value)

        employee.updated_at = datetime.now(timezone.utc)
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="employee",
            entity_id=employee.id,
            actor_id=actor_id,
            old_values=old_values,
            new_values=data.model_dump(mode="json", exclude_unset=True),
        )
        return employee

    @staticmethod
    async def delete_employee(
        db: AsyncSession,
        employee_id: uuid.UUID,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> None:
        """Remove an employee with their assignments and leave requests.

        Decisions they made on other people's leave keep their status but
        lose the ``decision_by`` reference.
        """

        employee = await EmployeeService.get_employee(db, employee_id)
        if actor_id is not None and actor_id == employee_id:
            raise ForbiddenException("You cannot delete your own employee record.")

        old_values = {
            "name": employee.name,
            "job_title": employee.job_title,
            "role": employee.role.value,
        }

        await db.execute(
            update(LeaveRequest)
            .where(LeaveRequest.decision_by == employee_id)
            .values(decision_by=None)
            .execution_options(synchronize_session=False)
        )
        leaves = await db.execute(
            delete(LeaveRequest)
            .where(LeaveRequest.employee_id == employee_id)
            .execution_options(synchronize_session=False)
        )
        assignments = await db.execute(
            delete(ProjectAssignment)
            .where(ProjectAssignment.employee_id == employee_id)
            .execution_options(synchronize_session=False)
        )
        await db.delete(employee)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="employee",
            entity_id=employee_id,
            actor_id=actor_id,
            old_values=old_values,
        )
        logger.info(
            "Employee %s deleted with %d leave request(s) and %d assignment(s)",
            employee_id, leaves.rowcount, assignments.rowcount,
        )


# ═════════════════════════════════════════════════════════════════════
# CustomerService
# ═════════════════════════════════════════════════════════════════════


class CustomerService:
    """Customers are plain named owners of projects."""

    @staticmethod
    async def list_customers(db: AsyncSession) -> Sequence[Customer]:
        result = await db.execute(select(Customer).order_by(Customer.name, Customer.id))
        return result.scalars().all()

    @staticmethod
    async def get_customer(db: AsyncSession, customer_id: uuid.UUID) -> Customer:
        result = await db.execute(select(Customer).where(Customer.id == customer_id))
        customer = result.scalars().first()
        if customer is None:
            raise NotFoundException("Customer", str(customer_id))
        return customer

    @staticmethod
    async def create_customer(
        db: AsyncSession,
        data: CustomerCreate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> Customer:
        customer = Customer(name=data.name)
        db.add(customer)
        await db.flush()

        await create_audit_entry(
            db,
            action="create",
            entity_type="customer",
            entity_id=customer.id,
            actor_id=actor_id,
            new_values=data.model_dump(mode="json"),
        )
        return customer


# ═════════════════════════════════════════════════════════════════════
# ProjectService
# ═════════════════════════════════════════════════════════════════════


class ProjectService:
    """Projects and their employee assignments."""

    # ── Helpers ─────────────────────────────────────────────────────

    @staticmethod
    async def _get_project(db: AsyncSession, project_id: uuid.UUID) -> Project:
        result = await db.execute(select(Project).where(Project.id == project_id))
        project = result.scalars().first()
        if project is None:
            raise NotFoundException("Project", str(project_id))
        return project

    @staticmethod
    async def _ensure_customer(db: AsyncSession, customer_id: uuid.UUID) -> Customer:
        result = await db.execute(select(Customer).where(Customer.id == customer_id))
        customer = result.scalars().first()
        if customer is None:
            raise ValidationException(
                {"customer_id": [f"Customer '{customer_id}' does not exist."]}
            )
        return customer

    @staticmethod
    def _build_response(
        project: Project,
        customer: Optional[Customer] = None,
    ) -> ProjectResponse:
        out = ProjectResponse.model_validate(project)
        if customer is not None:
            out.customer = CustomerBrief.model_validate(customer)
        return out

    @staticmethod
    async def _flush_project(db: AsyncSession) -> None:
        try:
            await db.flush()
        except IntegrityError as exc:
            await db.rollback()
            err = str(exc.orig)
            if "ck_project_period" in err:
                raise ValidationException(
                    {"end_date": ["end_date must be on or after start_date."]}
                )
            if "FOREIGN KEY" in err or "customer_id" in err:
                raise ValidationException({"customer_id": ["Customer does not exist."]})
            raise

    # ── Read ────────────────────────────────────────────────────────

    @staticmethod
    async def list_projects(db: AsyncSession) -> list[ProjectResponse]:
        result = await db.execute(
            select(Project, Customer)
            .join(Customer, Customer.id == Project.customer_id)
            .order_by(Project.name, Project.id)
        )
        return [
            ProjectService._build_response(project, customer)
            for project, customer in result.all()
        ]

    @staticmethod
    async def get_project(db: AsyncSession, project_id: uuid.UUID) -> ProjectResponse:
        project = await ProjectService._get_project(db, project_id)
        result = await db.execute(
            select(Customer).where(Customer.id == project.customer_id)
        )
        return ProjectService._build_response(project, result.scalars().first())

    # ── Write ───────────────────────────────────────────────────────

    @staticmethod
    async def create_project(
        db: AsyncSession,
        data: ProjectCreate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> ProjectResponse:
        """Create a project for an existing customer."""

        customer = await ProjectService._ensure_customer(db, data.customer_id)

        project = Project(**data.model_dump())
        db.add(project)
        await ProjectService._flush_project(db)

        await create_audit_entry(
            db,
            action="create",
            entity_type="project",
            entity_id=project.id,
            actor_id=actor_id,
            new_values=data.model_dump(mode="json"),
        )
        logger.info("Project %s created for customer %s", project.id, customer.id)
        return ProjectService._build_response(project, customer)

    @staticmethod
    async def update_project(
        db: AsyncSession,
        project_id: uuid.UUID,
        data: ProjectUpdate,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> ProjectResponse:
        """Replace name, customer and period of a project."""

        project = await ProjectService._get_project(db, project_id)
        customer = await ProjectService._ensure_customer(db, data.customer_id)

        old_values = {
            "name": project.name,
            "customer_id": str(project.customer_id),
            "start_date": project.start_date.isoformat(),
            "end_date": project.end_date.isoformat() if project.end_date else None,
        }
        for field, value in data.model_dump().items():
            setattr(project, field, value)
        project.updated_at = datetime.now(timezone.utc)
        await ProjectService._flush_project(db)

        await create_audit_entry(
            db,
            action="update",
            entity_type="project",
            entity_id=project.id,
            actor_id=actor_id,
            old_values=old_values,
            new_values=data.model_dump(mode="json"),
        )
        return ProjectService._build_response(project, customer)

    @staticmethod
    async def delete_project(
        db: AsyncSession,
        project_id: uuid.UUID,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> None:
        """Remove a project and its assignments. Leave requests are untouched."""

        project = await ProjectService._get_project(db, project_id)
        old_values = {
            "name": project.name,
            "customer_id": str(project.customer_id),
            "start_date": project.start_date.isoformat(),
            "end_date": project.end_date.isoformat() if project.end_date else None,
        }

        assignments = await db.execute(
            delete(ProjectAssignment)
            .where(ProjectAssignment.project_id == project_id)
            .execution_options(synchronize_session=False)
        )
        await db.delete(project)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="project",
            entity_id=project_id,
            actor_id=actor_id,
            old_values=old_values,
        )
        logger.info(
            "Project %s deleted with %d assignment(s)",
            project_id, assignments.rowcount,
        )

    # ── Assignments ─────────────────────────────────────────────────

    @staticmethod
    async def list_assignments(
        db: AsyncSession,
        project_id: uuid.UUID,
    ) -> list[AssignmentResponse]:
        await ProjectService._get_project(db, project_id)

        result = await db.execute(
            select(ProjectAssignment.employee_id, Employee.name)
            .join(Employee, Employee.id == ProjectAssignment.employee_id)
            .where(ProjectAssignment.project_id == project_id)
            .order_by(Employee.name, Employee.id)
        )
        return [
            AssignmentResponse(
                project_id=project_id, employee_id=emp_id, employee_name=name,
            )
            for emp_id, name in result.all()
        ]

    @staticmethod
    async def assign_employee(
        db: AsyncSession,
        project_id: uuid.UUID,
        employee_id: uuid.UUID,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> AssignmentResponse:
        """Assign an employee to a project; each pair may exist only once."""

        await ProjectService._get_project(db, project_id)

        employee = await DirectoryService.get_employee(db, employee_id)
        if employee is None:
            raise ValidationException(
                {"employee_id": [f"Employee '{employee_id}' does not exist."]}
            )

        existing = await db.execute(
            select(ProjectAssignment.id).where(
                ProjectAssignment.project_id == project_id,
                ProjectAssignment.employee_id == employee_id,
            )
        )
        if existing.scalar() is not None:
            raise ConflictError.duplicate("employee_id", employee_id)

        assignment = ProjectAssignment(project_id=project_id, employee_id=employee_id)
        db.add(assignment)
        try:
            await db.flush()
        except IntegrityError as exc:
            await db.rollback()
            err = str(exc.orig)
            if "uq_project_assignment" in err or "project_assignments.employee_id" in err:
                logger.warning(
                    "Concurrent assignment of employee %s to project %s lost the race",
                    employee_id, project_id,
                )
                raise ConflictError.duplicate("employee_id", employee_id)
            raise

        await create_audit_entry(
            db,
            action="assign",
            entity_type="project",
            entity_id=project_id,
            actor_id=actor_id,
            new_values={"employee_id": str(employee_id)},
        )
        logger.info("Employee %s assigned to project %s", employee_id, project_id)
        return AssignmentResponse(
            project_id=project_id,
            employee_id=employee_id,
            employee_name=employee.name,
        )
