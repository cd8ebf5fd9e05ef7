"""Health check endpoints for monitoring."""

import logging

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from investflow.api.deps import DB
from investflow.core.config import settings
from investflow.utils.envelopes import api_success

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


async def _database_ok(db: DB) -> bool:
    try:
        await db.execute(text("SELECT 1"))
        return True
    except SQLAlchemyError:
        logger.warning("Database health check failed", exc_info=True)
        return False


@router.get("/health", response_model=dict)
async def health_check(db: DB):
    """Health check endpoint for load balancers and monitoring."""
    healthy = await _database_ok(db)
    return api_success(
        {
            "status": "ok" if healthy else "degraded",
            "service": settings.APP_NAME,
            "database": "healthy" if healthy else "unhealthy",
        }
    )


@router.get("/health/ready", response_model=dict)
async def readiness_check(db: DB):
    """Kubernetes readiness probe."""
    return api_success({"ready": await _database_ok(db)})


@router.get("/health/live", response_model=dict)
async def liveness_check():
    """Kubernetes liveness probe."""
    return api_success({"alive": True})
