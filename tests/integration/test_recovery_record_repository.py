"""Atomicity of the recovery record store on a real database."""

import asyncio
from datetime import timedelta

import pytest

from src.domain.entities.recovery_record import RecoveryPurpose
from src.infrastructure.repositories import RecoveryRecordRepository

pytestmark = pytest.mark.integration

SUBJECT = "jane@example.com"


async def open_record(session_factory, now, subject=SUBJECT, purpose=RecoveryPurpose.PASSWORD_RESET):
    async with session_factory() as session:
        repository = RecoveryRecordRepository(session)
        record = await repository.get_or_create_open(subject, purpose, now)
        await repository.save_issuance(
            record.id,
            expected_issued_count=0,
            expected_window_start=record.window_start,
            code="042517",
            code_expires_at=now + timedelta(minutes=10),
            issued_count=1,
            window_start=now,
            now=now,
        )
        return record.id


class TestGetOrCreateOpen:
    @pytest.mark.asyncio
    async def test_returns_same_open_record(self, session_factory, frozen_clock):
        async with session_factory() as session:
            repository = RecoveryRecordRepository(session)
            first = await repository.get_or_create_open(SUBJECT, RecoveryPurpose.PASSWORD_RESET, frozen_clock())
            second = await repository.get_or_create_open(SUBJECT, RecoveryPurpose.PASSWORD_RESET, frozen_clock())

        assert first.id == second.id
        assert first.issued_count == 0
        assert first.window_start == frozen_clock()

    @pytest.mark.asyncio
    async def test_purposes_have_separate_records(self, session_factory, frozen_clock):
        async with session_factory() as session:
            repository = RecoveryRecordRepository(session)
            reset = await repository.get_or_create_open(SUBJECT, RecoveryPurpose.PASSWORD_RESET, frozen_clock())
            invite = await repository.get_or_create_open(SUBJECT, RecoveryPurpose.INVITATION_ACCEPT, frozen_clock())

        assert reset.id != invite.id

    @pytest.mark.asyncio
    async def test_losing_creation_race_returns_winner(self, session_factory, frozen_clock, mocker):
        # Arrange
        winner_id = await open_record(session_factory, frozen_clock())

        async with session_factory() as session:
            repository = RecoveryRecordRepository(session)
            real_get_open = repository.get_open
            calls = {"count": 0}

            async def stale_first_read(subject, purpose):
                calls["count"] += 1
                if calls["count"] == 1:
                    return None
                return await real_get_open(subject, purpose)

            mocker.patch.object(repository, "get_open", side_effect=stale_first_read)

            # Act
            record = await repository.get_or_create_open(SUBJECT, RecoveryPurpose.PASSWORD_RESET, frozen_clock())

        # Assert
        assert record.id == winner_id
        assert record.code == "042517"

    @pytest.mark.asyncio
    async def test_consumed_record_makes_room_for_new_one(self, session_factory, frozen_clock):
        record_id = await open_record(session_factory, frozen_clock())

        async with session_factory() as session:
            repository = RecoveryRecordRepository(session)
            assert await repository.consume(record_id, frozen_clock())
            fresh = await repository.get_or_create_open(SUBJECT, RecoveryPurpose.PASSWORD_RESET, frozen_clock())

        assert fresh.id != record_id


class TestSaveIssuance:
    @pytest.mark.asyncio
    async def test_applies_only_with_expected_counters(self, session_factory, frozen_clock):
        now = frozen_clock()
        record_id = await open_record(session_factory, now)

        async with session_factory() as session:
            repository = RecoveryRecordRepository(session)
            stale = await repository.save_issuance(
                record_id,
                expected_issued_count=0,
                expected_window_start=now,
                code="111111",
                code_expires_at=now + timedelta(minutes=10),
                issued_count=1,
                window_start=now,
                now=now,
            )
            current = await repository.save_issuance(
                record_id,
                expected_issued_count=1,
                expected_window_start=now,
                code="222222",
                code_expires_at=now + timedelta(minutes=10),
                issued_count=2,
                window_start=now,
                now=now,
            )
            record = await repository.get_by_id(record_id)

        assert stale is False
        assert current is True
        assert record.code == "222222"
        assert record.issued_count == 2

    @pytest.mark.asyncio
    async def test_issuance_resets_attempts(self, session_factory, frozen_clock):
        now = frozen_clock()
        record_id = await open_record(session_factory, now)

        async with session_factory() as session:
            repository = RecoveryRecordRepository(session)
            for _ in range(5):
                await repository.increment_attempts(record_id)
            await repository.save_issuance(
                record_id,
                expected_issued_count=1,
                expected_window_start=now,
                code="333333",
                code_expires_at=now + timedelta(minutes=10),
                issued_count=2,
                window_start=now,
                now=now,
            )
            record = await repository.get_by_id(record_id)

        assert record.attempt_count == 0


class TestAttemptsAndConsumption:
    @pytest.mark.asyncio
    async def test_concurrent_increments_are_not_lost(self, session_factory, frozen_clock):
        record_id = await open_record(session_factory, frozen_clock())

        async def increment():
            async with session_factory() as session:
                return await RecoveryRecordRepository(session).increment_attempts(record_id)

        results = await asyncio.gather(*(increment() for _ in range(5)))

        assert sorted(results) == [1, 2, 3, 4, 5]
        async with session_factory() as session:
            record = await RecoveryRecordRepository(session).get_by_id(record_id)
        assert record.attempt_count == 5

    @pytest.mark.asyncio
    async def test_consume_is_compare_and_set(self, session_factory, frozen_clock):
        record_id = await open_record(session_factory, frozen_clock())

        async def consume():
            async with session_factory() as session:
                return await RecoveryRecordRepository(session).consume(record_id, frozen_clock(), linked_user_id=9)

        results = await asyncio.gather(consume(), consume())

        assert sorted(results) == [False, True]
        async with session_factory() as session:
            repository = RecoveryRecordRepository(session)
            record = await repository.get_by_id(record_id)
            assert await repository.get_open(SUBJECT, RecoveryPurpose.PASSWORD_RESET) is None
        assert record.consumed_at == frozen_clock()
        assert record.code is None
        assert record.code_expires_at is None
        assert record.linked_user_id == 9

    @pytest.mark.asyncio
    async def test_supersede_closes_open_record(self, session_factory, frozen_clock):
        await open_record(session_factory, frozen_clock(), purpose=RecoveryPurpose.INVITATION_ACCEPT)

        async with session_factory() as session:
            repository = RecoveryRecordRepository(session)
            closed = await repository.supersede_open(SUBJECT, RecoveryPurpose.INVITATION_ACCEPT, frozen_clock())
            again = await repository.supersede_open(SUBJECT, RecoveryPurpose.INVITATION_ACCEPT, frozen_clock())

        assert (closed, again) == (1, 0)
