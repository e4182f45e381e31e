"""Demo data for local development.

Seeds a tiny directory so the leave workflow can be tried end to end:
a developer and a tester, an admin who can approve, and one customer with
an open-ended project.
"""

import logging
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from leave_planner.common.constants import EmployeeRole
from leave_planner.directory.models import (
    Customer,
    Employee,
    Project,
    ProjectAssignment,
)

logger = logging.getLogger(__name__)

DEMO_PROJECT_START = date(2025, 9, 1)


async def seed_demo_data(db: AsyncSession) -> bool:
    """Insert demo rows unless the directory already has employees.

    Returns True when data was inserted.
    """
    existing = await db.execute(select(func.count()).select_from(Employee))
    if existing.scalar_one() > 0:
        logger.info("Directory already populated; skipping demo seed")
        return False

    lily = Employee(name="Lily", job_title="Developer")
    sara = Employee(name="Sara", job_title="QA")
    admin = Employee(name="Admin", job_title="Team Lead", role=EmployeeRole.admin)
    customer = Customer(name="Layer 2")
    db.add_all([lily, sara, admin, customer])
    await db.flush()

    project = Project(
        name="Migration",
        customer_id=customer.id,
        start_date=DEMO_PROJECT_START,
        end_date=None,
    )
    db.add(project)
    await db.flush()

    db.add(ProjectAssignment(employee_id=lily.id, project_id=project.id))
    await db.flush()

    logger.info(
        "Seeded demo directory: employees=%s,%s,%s project=%s",
        lily.id, sara.id, admin.id, project.id,
    )
    return True
