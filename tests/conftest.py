"""Shared test fixtures — async DB, client, auth helpers, factories.

Uses SQLite + aiosqlite for fast isolated tests without PostgreSQL.
"""

from __future__ import annotations

import os

# Set test JWT_SECRET before any other import touches pydantic-settings
os.environ.setdefault("JWT_SECRET", "test-secret-for-ci-do-not-use-in-production")

import uuid
from datetime import date, datetime, timedelta, timezone
from typing import AsyncGenerator, Optional

import pytest
from httpx import ASGITransport, AsyncClient
from jose import jwt
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from leave_planner.common.constants import EMPLOYEE_ID_HEADER, EmployeeRole
from leave_planner.config import settings
from leave_planner.database import Base, get_db
from leave_planner.main import create_app

# Import ALL model modules so every table is registered on Base.metadata
import leave_planner.common.audit  # noqa: F401
import leave_planner.directory.models  # noqa: F401
import leave_planner.leave.models  # noqa: F401

from leave_planner.directory.models import (
    Customer,
    Employee,
    Project,
    ProjectAssignment,
)

# ── SQLite compat: compile PG-specific types to TEXT ────────────────

from sqlalchemy.dialects.postgresql import JSONB, UUID as PG_UUID
from sqlalchemy.ext.compiler import compiles


@compiles(JSONB, "sqlite")
def _jsonb_sqlite(element, compiler, **kw):
    return "TEXT"


@compiles(PG_UUID, "sqlite")
def _uuid_sqlite(element, compiler, **kw):
    return "CHAR(36)"


# ── Test database (SQLite in-memory) ────────────────────────────────

TEST_DATABASE_URL = "sqlite+aiosqlite://"

engine = create_async_engine(
    TEST_DATABASE_URL,
    echo=False,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine.sync_engine, "connect")
def _register_sqlite_functions(dbapi_conn, connection_record):
    """Register NOW() as a SQLite custom function."""
    dbapi_conn.create_function(
        "NOW", 0, lambda: datetime.now(timezone.utc).isoformat(),
    )


TestSessionFactory = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False,
)


@pytest.fixture(autouse=True)
async def _setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Reset rate limiter storage between tests to prevent cross-test interference."""
    from leave_planner.common.rate_limit import limiter

    limiter.reset()
    yield


async def _override_get_db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── FastAPI test client ─────────────────────────────────────────────

@pytest.fixture
async def app():
    """Create a fresh app instance with DB dependency overridden."""
    application = create_app()
    application.dependency_overrides[get_db] = _override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client wired to the test app."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


# ── Database session (for direct DB operations in tests) ────────────

@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    async with TestSessionFactory() as session:
        yield session
        await session.commit()


# ── Model factories ─────────────────────────────────────────────────

async def seed_employee(
    db: AsyncSession,
    *,
    name: str = "Test User",
    job_title: Optional[str] = "Developer",
    role: EmployeeRole = EmployeeRole.employee,
) -> Employee:
    employee = Employee(id=uuid.uuid4(), name=name, job_title=job_title, role=role)
    db.add(employee)
    await db.flush()
    return employee


async def seed_project(
    db: AsyncSession,
    *,
    name: str = "Project P",
    start_date: date = date(2025, 9, 1),
    end_date: Optional[date] = None,
    customer: Optional[Customer] = None,
) -> Project:
    if customer is None:
        customer = Customer(id=uuid.uuid4(), name=f"{name} Customer")
        db.add(customer)
        await db.flush()
    project = Project(
        id=uuid.uuid4(),
        name=name,
        customer_id=customer.id,
        start_date=start_date,
        end_date=end_date,
    )
    db.add(project)
    await db.flush()
    return project


async def assign(db: AsyncSession, employee: Employee, project: Project) -> None:
    db.add(ProjectAssignment(employee_id=employee.id, project_id=project.id))
    await db.flush()


# ── Auth helpers ────────────────────────────────────────────────────

def create_access_token(
    employee_id: uuid.UUID,
    *,
    expires_in: Optional[timedelta] = None,
) -> str:
    """Generate a JWT access token the way the external issuer does."""
    exp = datetime.now(timezone.utc) + (
        expires_in if expires_in is not None
        else timedelta(hours=settings.JWT_EXPIRY_HOURS)
    )
    payload = {
        "sub": str(employee_id),
        "type": "access",
        "exp": exp,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def id_headers(employee_id: uuid.UUID) -> dict[str, str]:
    """Identify as *employee_id* through the plain employee-id header."""
    return {EMPLOYEE_ID_HEADER: str(employee_id)}


def bearer_headers(employee_id: uuid.UUID) -> dict[str, str]:
    """Identify as *employee_id* through a signed access token."""
    return {"Authorization": f"Bearer {create_access_token(employee_id)}"}
