from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from jose import jwt

from src.core.application import create_application
from src.core.config.settings import settings
from src.domain.entities.user import Role
from src.infrastructure.database.async_db import get_db
from src.infrastructure.dependency_injection.recovery_dependencies import (
    get_clock,
    get_code_generator,
    get_notifier,
    get_rate_limiter,
)
from src.infrastructure.rate_limiting import InMemoryRateLimiter
from src.infrastructure.repositories import UserRepository
from src.infrastructure.services.authentication import build_password_context
from tests.factories import create_fake_user
from tests.utils.fakes import fixed_code_generator

PASSWORD_CONTEXT = build_password_context(rounds=4)


@pytest.fixture
def rate_limiter(frozen_clock):
    return InMemoryRateLimiter(clock=frozen_clock)


@pytest.fixture
def code_generator():
    return fixed_code_generator("042517")


@pytest.fixture
def app(session_factory, frozen_clock, notifier, rate_limiter, code_generator):
    application = create_application()

    async def override_get_db():
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_clock] = lambda: frozen_clock
    application.dependency_overrides[get_code_generator] = lambda: code_generator
    application.dependency_overrides[get_notifier] = lambda: notifier
    application.dependency_overrides[get_rate_limiter] = lambda: rate_limiter
    return application


@pytest_asyncio.fixture
async def async_client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def create_user(session_factory):
    """Insert an account with a real bcrypt hash of ``password``."""

    async def create(email="jane@example.com", password="0ld-Passw0rd!", role=Role.VIEW_ONLY, **kwargs):
        async with session_factory() as session:
            return await UserRepository(session).create(
                create_fake_user(
                    email=email,
                    role=role,
                    hashed_password=PASSWORD_CONTEXT.hash(password),
                    **kwargs,
                )
            )

    return create


def bearer_for(user_id: int, secret: str = None) -> dict:
    claims = {
        "sub": str(user_id),
        "iss": settings.JWT_ISSUER,
        "aud": settings.JWT_AUDIENCE,
        "exp": datetime.now(timezone.utc) + timedelta(minutes=15),
    }
    token = jwt.encode(claims, secret or settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def super_admin(create_user):
    return await create_user(email="root@example.com", role=Role.SUPER_ADMIN, name="Root")
