"""
Health check endpoints untuk API v1.
Menyediakan status aplikasi dan dependency checks.
"""

from datetime import datetime, timezone
from typing import Dict, Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy.ext.asyncio import AsyncSession
import redis.asyncio as redis

from checkmate_auth.api.dependencies.database import get_db, get_redis
from checkmate_auth.core.config import settings
from checkmate_auth.db.session import check_database_health
from checkmate_auth.schemas.response import HealthCheckResponse

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthCheckResponse)
async def health_check() -> HealthCheckResponse:
    """
    Basic health check endpoint.

    Returns:
        Basic health status
    """
    return HealthCheckResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc),
        version=settings.APP_VERSION,
        service=settings.APP_NAME
    )


@router.get("/ready")
async def readiness_check(
    db: AsyncSession = Depends(get_db),
    redis_client: redis.Redis = Depends(get_redis)
) -> JSONResponse:
    """
    Readiness check dengan dependency validation.
    Checks database dan Redis connectivity; 503 jika salah satu gagal.
    """
    database = await check_database_health(db)

    redis_status: Dict[str, Any] = {"connected": False, "error": None}
    try:
        await redis_client.ping()
        redis_status["connected"] = True
    except (RedisError, OSError) as e:
        redis_status["error"] = str(e)

    healthy = database["connected"] and redis_status["connected"]
    body = {
        "status": "healthy" if healthy else "unhealthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.APP_VERSION,
        "checks": {
            "database": database,
            "redis": redis_status
        }
    }
    return JSONResponse(status_code=200 if healthy else 503, content=body)
