"""Application lifecycle management.

Creates tables for local environments on startup and releases the database
engine and the Redis client on shutdown.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from src.core.config.settings import settings
from src.core.logging import logger
from src.infrastructure.database.async_db import create_async_db_and_tables, dispose_engine
from src.infrastructure.redis import close_redis


def create_lifespan_manager():
    """Create the application lifespan manager.

    Returns:
        AsyncContextManager: The lifespan manager for the FastAPI application
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        if settings.APP_ENV in ("development", "test"):
            # Staging and production schemas are managed by Alembic
            await create_async_db_and_tables()
        logger.info("application_startup", env=settings.APP_ENV, version=settings.VERSION)

        yield

        # Shutdown
        await close_redis()
        await dispose_engine()
        logger.info("application_shutdown", env=settings.APP_ENV)

    return lifespan
