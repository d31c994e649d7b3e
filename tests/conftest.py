import os
import tempfile

# Settings are read at import time, so the test environment goes first
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-servdesk-recovery-0123456789")
os.environ.setdefault(
    "DATABASE_URL",
    f"sqlite+aiosqlite:///{os.path.join(tempfile.gettempdir(), 'servdesk-test.db')}",
)
os.environ.setdefault("RATE_LIMIT_BACKEND", "memory")
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("BCRYPT_WORK_FACTOR", "4")
os.environ.setdefault("EMAIL_TEST_MODE", "true")

import pytest
import pytest_asyncio
from faker import Faker

from src.domain.value_objects.recovery_policy import RecoveryPolicy
from src.infrastructure.database.async_db import (
    build_engine,
    build_session_factory,
    create_async_db_and_tables,
)
from src.utils.clock import utcnow
from tests.utils.fakes import FrozenClock, RecordingNotifier


@pytest.fixture
def fake() -> Faker:
    return Faker()


@pytest.fixture
def frozen_clock() -> FrozenClock:
    return FrozenClock(utcnow().replace(microsecond=0))


@pytest.fixture
def policy() -> RecoveryPolicy:
    return RecoveryPolicy()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture
async def db_engine(tmp_path):
    """A fresh SQLite file database per test.

    A file (not ``:memory:``) so concurrent sessions see the same data.
    """
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'servdesk.db'}")
    await create_async_db_and_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return build_session_factory(db_engine)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session
