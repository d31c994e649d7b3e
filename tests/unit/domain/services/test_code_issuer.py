from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from src.domain.entities.recovery_record import RecoveryPurpose
from src.domain.interfaces.repositories import IRecoveryRecordRepository
from src.domain.services.recovery.code_issuer import CodeIssuer
from src.domain.value_objects.recovery_outcomes import IssueStatus
from tests.factories import create_fake_record
from tests.utils.fakes import fixed_code_generator


class TestCodeIssuer:
    """Tests for issuance windows, lockout interplay and delivery."""

    @pytest.fixture
    def record(self, frozen_clock):
        return create_fake_record(
            id=7,
            subject_identity="jane@example.com",
            code=None,
            code_expires_at=None,
            issued_count=0,
            now=frozen_clock(),
        )

    @pytest.fixture
    def store(self, record):
        store = AsyncMock(spec=IRecoveryRecordRepository)
        store.get_or_create_open.return_value = record

        async def save_issuance(record_id, **fields):
            record.code = fields["code"]
            record.code_expires_at = fields["code_expires_at"]
            record.issued_count = fields["issued_count"]
            record.window_start = fields["window_start"]
            record.attempt_count = 0
            return True

        store.save_issuance.side_effect = save_issuance
        return store

    @pytest.fixture
    def issuer(self, store, notifier, policy, frozen_clock):
        return CodeIssuer(
            store,
            notifier,
            policy,
            clock=frozen_clock,
            code_generator=fixed_code_generator("042517"),
        )

    @pytest.mark.asyncio
    async def test_first_issue_sends_zero_padded_code(self, issuer, notifier, frozen_clock):
        # Act
        outcome = await issuer.issue_code("Jane@Example.com", RecoveryPurpose.PASSWORD_RESET, linked_user_id=3)

        # Assert
        assert outcome.status is IssueStatus.ISSUED
        assert outcome.code == "042517"
        assert outcome.expires_at == frozen_clock() + timedelta(minutes=10)
        assert outcome.issued_count == 1
        assert notifier.codes_for("jane@example.com") == ["042517"]

    @pytest.mark.asyncio
    async def test_subject_is_normalized_before_lookup(self, issuer, store, frozen_clock):
        await issuer.issue_code("  JANE@example.COM ", RecoveryPurpose.PASSWORD_RESET)

        args = store.get_or_create_open.await_args
        assert args.args[0] == "jane@example.com"
        assert args.args[1] is RecoveryPurpose.PASSWORD_RESET

    @pytest.mark.asyncio
    async def test_fourth_request_in_window_is_rate_limited(self, issuer, store, notifier, frozen_clock):
        # Arrange
        counts = []
        for _ in range(3):
            outcome = await issuer.issue_code("jane@example.com", RecoveryPurpose.PASSWORD_RESET)
            counts.append(outcome.issued_count)
            frozen_clock.advance(minutes=5)

        # Act
        fourth = await issuer.issue_code("jane@example.com", RecoveryPurpose.PASSWORD_RESET)

        # Assert
        assert counts == [1, 2, 3]
        assert fourth.status is IssueStatus.RATE_LIMITED
        assert fourth.code is None
        assert store.save_issuance.await_count == 3
        assert len(notifier.sent) == 3

    @pytest.mark.asyncio
    async def test_window_rolls_over_after_its_length(self, issuer, frozen_clock, record):
        for _ in range(3):
            await issuer.issue_code("jane@example.com", RecoveryPurpose.PASSWORD_RESET)

        frozen_clock.advance(minutes=60)
        outcome = await issuer.issue_code("jane@example.com", RecoveryPurpose.PASSWORD_RESET)

        assert outcome.status is IssueStatus.ISSUED
        assert outcome.issued_count == 1
        assert record.window_start == frozen_clock.now

    @pytest.mark.asyncio
    async def test_window_still_closed_one_second_before_rollover(self, issuer, frozen_clock):
        for _ in range(3):
            await issuer.issue_code("jane@example.com", RecoveryPurpose.PASSWORD_RESET)

        frozen_clock.advance(minutes=59, seconds=59)
        outcome = await issuer.issue_code("jane@example.com", RecoveryPurpose.PASSWORD_RESET)

        assert outcome.status is IssueStatus.RATE_LIMITED

    @pytest.mark.asyncio
    async def test_locked_record_with_budget_left_gets_fresh_code(self, issuer, record, store):
        # Arrange
        record.code = "111111"
        record.issued_count = 1
        record.attempt_count = 5

        # Act
        outcome = await issuer.issue_code("jane@example.com", RecoveryPurpose.PASSWORD_RESET)

        # Assert
        assert outcome.status is IssueStatus.ISSUED
        kwargs = store.save_issuance.await_args.kwargs
        assert kwargs["expected_issued_count"] == 1

    @pytest.mark.asyncio
    async def test_locked_record_without_budget_reports_locked(self, issuer, record, store, notifier):
        record.issued_count = 3
        record.attempt_count = 5

        outcome = await issuer.issue_code("jane@example.com", RecoveryPurpose.PASSWORD_RESET)

        assert outcome.status is IssueStatus.LOCKED
        store.save_issuance.assert_not_awaited()
        assert notifier.sent == []

    @pytest.mark.asyncio
    async def test_lost_race_reports_rate_limited_without_sending(self, issuer, store, notifier):
        store.save_issuance.side_effect = None
        store.save_issuance.return_value = False

        outcome = await issuer.issue_code("jane@example.com", RecoveryPurpose.PASSWORD_RESET)

        assert outcome.status is IssueStatus.RATE_LIMITED
        assert notifier.sent == []

    @pytest.mark.asyncio
    async def test_delivery_error_does_not_undo_issuance(self, issuer, notifier):
        notifier.raise_error = True

        outcome = await issuer.issue_code("jane@example.com", RecoveryPurpose.PASSWORD_RESET)

        assert outcome.status is IssueStatus.ISSUED
        assert outcome.code == "042517"

    @pytest.mark.asyncio
    async def test_invalid_identity_is_rejected(self, issuer, store):
        with pytest.raises(ValueError):
            await issuer.issue_code("not-an-email", RecoveryPurpose.PASSWORD_RESET)
        store.get_or_create_open.assert_not_awaited()
