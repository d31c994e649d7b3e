"""
Redis Connection Module

Provides the shared asynchronous Redis client used for the public endpoint
rate-limit counters. One client (and its connection pool) is created per
process on first use and closed at shutdown.

**Security Note**: Use a ``rediss://`` URL when Redis is reached over an
untrusted network, and never log the connection URL since it may embed the
password.
"""

from typing import Optional

import structlog
from redis.asyncio import Redis

from src.core.config.settings import settings

logger = structlog.get_logger(__name__)

_redis_client: Optional[Redis] = None


def get_redis_client() -> Redis:
    """Returns the process-wide Redis client, creating it lazily."""
    global _redis_client
    if _redis_client is None:
        _redis_client = Redis.from_url(settings.REDIS_URL, encoding="utf-8", decode_responses=True)
        logger.debug("Redis client created")
    return _redis_client


async def get_redis() -> Redis:
    """FastAPI dependency yielding the shared Redis client."""
    return get_redis_client()


async def close_redis() -> None:
    global _redis_client
    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
        logger.debug("Redis client closed")
