from __future__ import annotations

"""
Asynchronous database utilities.

One async engine per process, built from ``settings.DATABASE_URL``:
asyncpg with a connection pool for PostgreSQL, aiosqlite without pooling
for SQLite (tests and local development). Request handlers receive a fresh
``AsyncSession`` through the ``get_db`` dependency; repositories commit
their own writes.

Key Components:
    - engine: The process-wide async engine.
    - AsyncSessionFactory: Factory for sessions bound to the engine.
    - get_db: FastAPI dependency yielding a session per request.
    - create_async_db_and_tables: Create all tables (development and tests).
"""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel
from structlog import get_logger

import src.domain.entities  # noqa: F401  registers all tables on SQLModel.metadata
from src.core.config.settings import settings

logger = get_logger(__name__)


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine with pool settings that suit the backend."""
    if url.startswith("sqlite"):
        return create_async_engine(
            url,
            echo=echo,
            poolclass=NullPool,
            connect_args={"check_same_thread": False, "timeout": 30},
        )
    return create_async_engine(
        url,
        echo=echo,
        pool_size=settings.POSTGRES_POOL_SIZE,
        max_overflow=settings.POSTGRES_MAX_OVERFLOW,
        pool_timeout=settings.POSTGRES_POOL_TIMEOUT,
        pool_pre_ping=True,
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind=bind, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
AsyncSessionFactory = build_session_factory(engine)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that yields an AsyncSession.

    Rolls back if the request fails while the session is open and always
    closes the session.
    """
    async with AsyncSessionFactory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            logger.error("Async database session rollback due to error")
            raise


async def create_async_db_and_tables(bind: AsyncEngine | None = None) -> None:
    """
    Create tables using the async engine (development and test suites).

    Production schemas are managed by Alembic.
    """
    target = bind or engine
    logger.info("Creating async database tables")
    async with target.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Async database tables created")


async def dispose_engine() -> None:
    await engine.dispose()
