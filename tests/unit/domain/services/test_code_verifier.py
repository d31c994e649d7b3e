from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from src.domain.entities.recovery_record import RecoveryPurpose
from src.domain.interfaces.repositories import IRecoveryRecordRepository
from src.domain.services.recovery.code_verifier import CodeVerifier
from src.domain.value_objects.recovery_outcomes import VerifyStatus
from tests.factories import create_fake_record


class TestCodeVerifier:
    @pytest.fixture
    def record(self, frozen_clock):
        return create_fake_record(id=11, subject_identity="jane@example.com", code="042517", now=frozen_clock())

    @pytest.fixture
    def store(self, record):
        store = AsyncMock(spec=IRecoveryRecordRepository)
        store.get_open.return_value = record

        async def increment_attempts(record_id):
            record.attempt_count += 1
            return record.attempt_count

        store.increment_attempts.side_effect = increment_attempts
        return store

    @pytest.fixture
    def verifier(self, store, policy, frozen_clock):
        return CodeVerifier(store, policy, clock=frozen_clock)

    @pytest.mark.asyncio
    async def test_matching_code_is_valid_and_not_consumed(self, verifier, store, record):
        outcome = await verifier.verify("jane@example.com", RecoveryPurpose.PASSWORD_RESET, "042517")

        assert outcome.status is VerifyStatus.VALID
        assert outcome.record is record
        store.increment_attempts.assert_not_awaited()
        store.consume.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_open_record(self, verifier, store):
        store.get_open.return_value = None

        outcome = await verifier.verify("jane@example.com", RecoveryPurpose.PASSWORD_RESET, "042517")

        assert outcome.status is VerifyStatus.NO_ACTIVE_REQUEST

    @pytest.mark.asyncio
    async def test_record_without_outstanding_code(self, verifier, record):
        record.code = None
        record.code_expires_at = None

        outcome = await verifier.verify("jane@example.com", RecoveryPurpose.PASSWORD_RESET, "042517")

        assert outcome.status is VerifyStatus.NO_ACTIVE_REQUEST

    @pytest.mark.asyncio
    @pytest.mark.parametrize("elapsed", [timedelta(minutes=10), timedelta(minutes=10, seconds=1)])
    async def test_code_is_expired_from_its_expiry_instant(self, verifier, store, frozen_clock, elapsed):
        frozen_clock.advance(seconds=elapsed.total_seconds())

        outcome = await verifier.verify("jane@example.com", RecoveryPurpose.PASSWORD_RESET, "042517")

        assert outcome.status is VerifyStatus.EXPIRED
        store.increment_attempts.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_code_still_valid_one_second_before_expiry(self, verifier, frozen_clock):
        frozen_clock.advance(minutes=9, seconds=59)

        outcome = await verifier.verify("jane@example.com", RecoveryPurpose.PASSWORD_RESET, "042517")

        assert outcome.is_valid

    @pytest.mark.asyncio
    async def test_mismatch_reports_remaining_attempts(self, verifier, record):
        outcome = await verifier.verify("jane@example.com", RecoveryPurpose.PASSWORD_RESET, "999999")

        assert outcome.status is VerifyStatus.MISMATCH
        assert outcome.remaining_attempts == 4
        assert record.attempt_count == 1

    @pytest.mark.asyncio
    async def test_codes_compare_as_strings(self, verifier):
        outcome = await verifier.verify("jane@example.com", RecoveryPurpose.PASSWORD_RESET, "42517")

        assert outcome.status is VerifyStatus.MISMATCH

    @pytest.mark.asyncio
    async def test_fifth_mismatch_locks_and_correct_code_stays_locked(self, verifier, store):
        # Arrange
        statuses = []
        for _ in range(5):
            outcome = await verifier.verify("jane@example.com", RecoveryPurpose.PASSWORD_RESET, "000000")
            statuses.append(outcome.status)

        # Act
        after_lock = await verifier.verify("jane@example.com", RecoveryPurpose.PASSWORD_RESET, "042517")

        # Assert
        assert statuses == [VerifyStatus.MISMATCH] * 4 + [VerifyStatus.LOCKED]
        assert after_lock.status is VerifyStatus.LOCKED
        assert store.increment_attempts.await_count == 5

    @pytest.mark.asyncio
    async def test_locked_record_does_not_count_more_attempts(self, verifier, store, record):
        record.attempt_count = 5

        outcome = await verifier.verify("jane@example.com", RecoveryPurpose.PASSWORD_RESET, "123456")

        assert outcome.status is VerifyStatus.LOCKED
        store.increment_attempts.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_lookup_uses_normalized_identity(self, verifier, store):
        await verifier.verify(" Jane@EXAMPLE.com", RecoveryPurpose.INVITATION_ACCEPT, "042517")

        store.get_open.assert_awaited_once_with("jane@example.com", RecoveryPurpose.INVITATION_ACCEPT)
