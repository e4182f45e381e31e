"""Tests for common plumbing — problem details, health checks, audit trail
and the demo seed.
"""

from __future__ import annotations

import uuid

from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from leave_planner.common.audit import AuditTrail, create_audit_entry
from leave_planner.common.exceptions import (
    ConflictError,
    NotFoundException,
    register_exception_handlers,
)
from leave_planner.directory.models import Customer, Employee, Project, ProjectAssignment
from leave_planner.directory.seed import seed_demo_data


def _error_app() -> FastAPI:
    """A bare app whose routes raise, to inspect the rendered problem bodies."""
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/missing")
    async def missing():
        raise NotFoundException("LeaveRequest", "42")

    @app.get("/conflict")
    async def conflict():
        raise ConflictError.duplicate("date", "2025-09-10")

    @app.get("/database")
    async def database():
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    return app


# ═════════════════════════════════════════════════════════════════════
# RFC 7807 problem details
# ═════════════════════════════════════════════════════════════════════


class TestProblemDetails:

    async def _get(self, path: str):
        async with AsyncClient(
            transport=ASGITransport(app=_error_app()), base_url="http://test",
        ) as ac:
            return await ac.get(path)

    async def test_not_found_body(self):
        resp = await self._get("/missing")
        assert resp.status_code == 404
        assert resp.headers["content-type"].startswith("application/problem+json")
        body = resp.json()
        assert body["title"] == "LeaveRequest Not Found"
        assert body["instance"] == "/missing"
        assert "reason" not in body

    async def test_conflict_carries_reason_and_errors(self):
        resp = await self._get("/conflict")
        assert resp.status_code == 409
        body = resp.json()
        assert body["reason"] == "duplicate"
        assert body["errors"] == {"date": ["'2025-09-10' is already in use."]}

    async def test_database_failure_is_503(self):
        resp = await self._get("/database")
        assert resp.status_code == 503
        assert resp.json()["type"].endswith("/infrastructure-error")


# ═════════════════════════════════════════════════════════════════════
# Health
# ═════════════════════════════════════════════════════════════════════


class TestHealth:

    async def test_health(self, client):
        resp = await client.get("/api/v1/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"

    async def test_health_db(self, client):
        resp = await client.get("/api/v1/health/db")
        assert resp.status_code == 200
        assert resp.json()["database"] == "reachable"


# ═════════════════════════════════════════════════════════════════════
# Audit trail
# ═════════════════════════════════════════════════════════════════════


class TestAuditTrail:

    async def test_create_audit_entry(self, db: AsyncSession):
        entity_id = uuid.uuid4()
        entry = await create_audit_entry(
            db,
            action="update",
            entity_type="project",
            entity_id=entity_id,
            old_values={"name": "Old"},
            new_values={"name": "New"},
        )

        rows = await db.execute(select(AuditTrail).where(AuditTrail.id == entry.id))
        stored = rows.scalars().one()
        assert stored.entity_id == entity_id
        assert stored.old_values == {"name": "Old"}
        assert stored.actor_id is None


# ═════════════════════════════════════════════════════════════════════
# Demo seed
# ═════════════════════════════════════════════════════════════════════


class TestDemoSeed:

    async def test_seed_creates_demo_directory(self, db: AsyncSession):
        assert await seed_demo_data(db) is True

        employees = (await db.execute(select(Employee).order_by(Employee.name))).scalars().all()
        assert [e.name for e in employees] == ["Admin", "Lily", "Sara"]

        project = (await db.execute(select(Project))).scalars().one()
        assert project.name == "Migration"
        assert project.end_date is None

        customer = (await db.execute(select(Customer))).scalars().one()
        assert customer.name == "Layer 2"

        assigned = await db.execute(
            select(Employee.name)
            .join(ProjectAssignment, ProjectAssignment.employee_id == Employee.id)
        )
        assert assigned.scalars().all() == ["Lily"]

    async def test_seed_is_idempotent(self, db: AsyncSession):
        await seed_demo_data(db)
        assert await seed_demo_data(db) is False

        count = await db.execute(select(func.count()).select_from(Employee))
        assert count.scalar_one() == 3
