from unittest.mock import AsyncMock

import pytest

from src.core.exceptions import DatabaseError
from src.domain.interfaces.repositories import IAuditRepository
from src.domain.services.audit.audit_recorder import AuditRecorder


class TestAuditRecorder:
    @pytest.fixture
    def repository(self):
        repository = AsyncMock(spec=IAuditRepository)
        repository.add.side_effect = lambda entry: entry
        return repository

    @pytest.mark.asyncio
    async def test_records_entry(self, repository, frozen_clock):
        recorder = AuditRecorder(repository, clock=frozen_clock)

        entry = await recorder.record(
            "user",
            3,
            "password_reset_self_service",
            actor_user_id=3,
            field="password",
            metadata={"recovery_record_id": 21},
        )

        assert entry.entity_id == "3"
        assert entry.action == "password_reset_self_service"
        assert entry.details == {"recovery_record_id": 21}
        assert entry.created_at == frozen_clock()

    @pytest.mark.asyncio
    async def test_storage_failure_is_swallowed(self, repository, frozen_clock):
        repository.add.side_effect = DatabaseError("disk full")
        recorder = AuditRecorder(repository, clock=frozen_clock)

        assert await recorder.record("user", 3, "created_via_invitation") is None
