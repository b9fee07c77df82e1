"""Health check endpoints for load balancers and monitoring."""

import logging

import redis.asyncio as redis
from fastapi import APIRouter, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from charterdesk.config import settings
from charterdesk.database import engine
from charterdesk.utils.dates import utcnow
from charterdesk.utils.redis_client import get_redis

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check():
    """Liveness: 200 while the process is serving, no dependency checks."""
    return {
        "status": "ok",
        "service": "CharterDesk",
        "timestamp": utcnow().isoformat(),
        "environment": settings.environment,
    }


@router.get("/health/ready")
async def readiness_check():
    """Readiness: 200 only when the database (and Redis, if enabled) answer."""
    checks = {"service": "ok", "database": "unknown", "redis": "disabled"}
    healthy = True

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except (SQLAlchemyError, OSError) as e:
        logger.warning("Readiness: database check failed: %s", e)
        checks["database"] = f"error: {str(e)[:100]}"
        healthy = False

    if settings.redis_enabled:
        try:
            client = await get_redis()
            await client.ping()
            checks["redis"] = "ok"
        except (redis.RedisError, OSError) as e:
            logger.warning("Readiness: redis check failed: %s", e)
            checks["redis"] = f"error: {str(e)[:100]}"
            healthy = False

    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if healthy else "unhealthy",
            "service": "CharterDesk",
            "checks": checks,
            "timestamp": utcnow().isoformat(),
        },
    )
