"""Leave Planner — FastAPI Application Factory."""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from leave_planner.auth.router import router as auth_router
from leave_planner.common.exceptions import register_exception_handlers
from leave_planner.common.rate_limit import limiter
from leave_planner.config import settings
from leave_planner.database import async_session_factory, create_schema, get_db
from leave_planner.directory.router import (
    customers_router,
    employees_router,
    projects_router,
)
from leave_planner.directory.seed import seed_demo_data
from leave_planner.leave.router import router as leave_router
from leave_planner.logging_config import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application startup and shutdown events."""
    if settings.AUTO_CREATE_SCHEMA:
        await create_schema()
        logger.info("Database schema ensured")
    if settings.SEED_DEMO_DATA:
        async with async_session_factory() as session:
            await seed_demo_data(session)
            await session.commit()
    yield


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="Leave Planner",
        description="Single-day leave requests, approvals and project conflict hints",
        version="1.0.0",
        docs_url="/api/docs" if settings.ENVIRONMENT != "production" else None,
        redoc_url="/api/redoc" if settings.ENVIRONMENT != "production" else None,
        lifespan=lifespan,
    )

    # Exception handlers (RFC 7807)
    register_exception_handlers(app)

    # Rate limiting (slowapi)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health checks (no auth)
    @app.get("/api/v1/health", tags=["system"])
    async def health_check():
        return {
            "status": "healthy",
            "version": "1.0.0",
            "environment": settings.ENVIRONMENT,
        }

    @app.get("/api/v1/health/db", tags=["system"])
    async def health_db(db: AsyncSession = Depends(get_db)):
        """Round-trip to the database; failures surface as 503."""
        await db.execute(text("SELECT 1"))
        return {"status": "healthy", "database": "reachable"}

    # Register routers
    app.include_router(auth_router, prefix="/api/v1/auth", tags=["auth"])
    app.include_router(employees_router, prefix="/api/v1/employees", tags=["employees"])
    app.include_router(customers_router, prefix="/api/v1/customers", tags=["customers"])
    app.include_router(projects_router, prefix="/api/v1/projects", tags=["projects"])
    app.include_router(leave_router, prefix="/api/v1/leaves", tags=["leaves"])

    return app


app = create_app()
