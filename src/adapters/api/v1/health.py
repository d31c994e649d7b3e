import asyncio
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter
from pydantic import BaseModel
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from src.core.config.settings import settings
from src.core.logging import logger
from src.infrastructure.database.async_db import engine
from src.infrastructure.redis import get_redis_client

router = APIRouter()


class HealthResponse(BaseModel):
    status: str
    env: str
    services: Dict[str, Any]
    timestamp: datetime


async def check_redis_health() -> Dict[str, Any]:
    """Check Redis connection health."""
    if settings.RATE_LIMIT_BACKEND != "redis":
        return {"status": "skipped"}
    try:
        await get_redis_client().ping()
        return {"status": "healthy"}
    except RedisError as e:
        logger.error("redis_health_check_failed", error=str(e))
        return {"status": "unhealthy", "error": str(e)}


async def check_database_health() -> Dict[str, Any]:
    """Check database connection health."""
    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))
        return {"status": "healthy"}
    except SQLAlchemyError as e:
        logger.error("database_health_check_failed", error=str(e))
        return {"status": "unhealthy", "error": str(e)}


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Report database and Redis reachability."""
    redis_health, db_health = await asyncio.gather(check_redis_health(), check_database_health())

    services_healthy = db_health["status"] == "healthy" and redis_health["status"] != "unhealthy"

    return HealthResponse(
        status="ok" if services_healthy else "degraded",
        env=settings.APP_ENV,
        services={"redis": redis_health, "database": db_health},
        timestamp=datetime.now(timezone.utc),
    )
