from unittest.mock import AsyncMock

import pytest

from src.core.exceptions import (
    DatabaseError,
    ResetTokenNotFoundError,
    UserNotFoundError,
    VerificationFailedError,
    VerificationLockedError,
)
from src.domain.entities.recovery_record import RecoveryPurpose
from src.domain.interfaces.auth_provider import IAuthProvider
from src.domain.services.audit.audit_recorder import AuditRecorder
from src.domain.services.password_reset.password_reset_service import PasswordResetService
from src.domain.services.recovery.admin_token_issuer import AdminTokenIssuer
from src.domain.services.recovery.code_verifier import CodeVerifier
from src.domain.services.recovery.outcome_applier import PasswordResetApplier, PasswordResetPayload
from src.domain.value_objects.recovery_outcomes import (
    RedeemOutcome,
    RedeemStatus,
    VerifyOutcome,
    VerifyStatus,
)
from tests.factories import create_fake_record, create_fake_user


class TestPasswordResetService:
    @pytest.fixture
    def code_verifier(self):
        return AsyncMock(spec=CodeVerifier)

    @pytest.fixture
    def applier(self):
        return AsyncMock(spec=PasswordResetApplier)

    @pytest.fixture
    def token_issuer(self):
        issuer = AsyncMock(spec=AdminTokenIssuer)
        issuer.claim.return_value = RedeemOutcome(RedeemStatus.VALID, user_id=8)
        return issuer

    @pytest.fixture
    def auth_provider(self):
        return AsyncMock(spec=IAuthProvider)

    @pytest.fixture
    def audit_recorder(self):
        return AsyncMock(spec=AuditRecorder)

    @pytest.fixture
    def service(self, code_verifier, applier, token_issuer, auth_provider, audit_recorder, frozen_clock):
        return PasswordResetService(
            code_verifier, applier, token_issuer, auth_provider, audit_recorder, clock=frozen_clock
        )

    @pytest.mark.asyncio
    async def test_valid_code_applies_new_password(self, service, code_verifier, applier):
        # Arrange
        outcome = VerifyOutcome(VerifyStatus.VALID, record=create_fake_record(linked_user_id=3))
        code_verifier.verify.return_value = outcome

        # Act
        result = await service.reset_password("Jane@Example.com", "042517", "N3w-Passw0rd!", ip_address="10.0.0.1")

        # Assert
        code_verifier.verify.assert_awaited_once_with(
            "jane@example.com", RecoveryPurpose.PASSWORD_RESET, "042517"
        )
        applier.apply.assert_awaited_once_with(
            outcome,
            PasswordResetPayload(new_password="N3w-Passw0rd!"),
            language="en",
            ip_address="10.0.0.1",
        )
        assert "message" in result

    @pytest.mark.asyncio
    async def test_mismatch_surfaces_remaining_attempts(self, service, code_verifier, applier):
        code_verifier.verify.return_value = VerifyOutcome(VerifyStatus.MISMATCH, remaining_attempts=3)

        with pytest.raises(VerificationFailedError) as exc_info:
            await service.reset_password("jane@example.com", "000000", "N3w-Passw0rd!")

        assert exc_info.value.code == "invalid_verification_code"
        assert exc_info.value.remaining_attempts == 3
        assert "3" in exc_info.value.message
        applier.apply.assert_not_awaited()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,code",
        [
            (VerifyStatus.EXPIRED, "verification_code_expired"),
            (VerifyStatus.NO_ACTIVE_REQUEST, "no_active_request"),
        ],
    )
    async def test_other_failures_are_bad_requests(self, service, code_verifier, status, code):
        code_verifier.verify.return_value = VerifyOutcome(status)

        with pytest.raises(VerificationFailedError) as exc_info:
            await service.reset_password("jane@example.com", "042517", "N3w-Passw0rd!")

        assert exc_info.value.code == code

    @pytest.mark.asyncio
    async def test_locked_record(self, service, code_verifier):
        code_verifier.verify.return_value = VerifyOutcome(VerifyStatus.LOCKED)

        with pytest.raises(VerificationLockedError):
            await service.reset_password("jane@example.com", "042517", "N3w-Passw0rd!")

    @pytest.mark.asyncio
    async def test_token_reset_sets_password_and_audits(
        self, service, token_issuer, auth_provider, audit_recorder, frozen_clock
    ):
        # Arrange
        token_issuer.inspect.return_value = RedeemOutcome(RedeemStatus.VALID, user_id=8)
        auth_provider.get_user.return_value = create_fake_user(id=8, email="sam@example.com")

        # Act
        await service.reset_password_with_token("t" * 43, "N3w-Passw0rd!")

        # Assert
        auth_provider.set_password.assert_awaited_once_with(8, "N3w-Passw0rd!", frozen_clock())
        token_issuer.claim.assert_awaited_once_with("t" * 43, 8)
        assert audit_recorder.record.await_args.args == ("user", 8, "password_reset_via_admin_link")

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,error,code",
        [
            (RedeemStatus.NOT_FOUND, ResetTokenNotFoundError, "reset_token_not_found"),
            (RedeemStatus.EXPIRED, VerificationFailedError, "reset_token_expired"),
            (RedeemStatus.ALREADY_USED, VerificationFailedError, "reset_token_already_used"),
        ],
    )
    async def test_token_failures(self, service, token_issuer, auth_provider, status, error, code):
        token_issuer.inspect.return_value = RedeemOutcome(status, user_id=8)

        with pytest.raises(error) as exc_info:
            await service.reset_password_with_token("t" * 43, "N3w-Passw0rd!")

        assert exc_info.value.code == code
        auth_provider.set_password.assert_not_awaited()
        token_issuer.claim.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_token_for_deleted_account(self, service, token_issuer, auth_provider):
        token_issuer.inspect.return_value = RedeemOutcome(RedeemStatus.VALID, user_id=8)
        auth_provider.get_user.return_value = None

        with pytest.raises(UserNotFoundError):
            await service.reset_password_with_token("t" * 43, "N3w-Passw0rd!")

    @pytest.mark.asyncio
    async def test_failed_password_write_leaves_token_unclaimed(
        self, service, token_issuer, auth_provider, audit_recorder
    ):
        # Arrange
        token_issuer.inspect.return_value = RedeemOutcome(RedeemStatus.VALID, user_id=8)
        auth_provider.get_user.return_value = create_fake_user(id=8, email="sam@example.com")
        auth_provider.set_password.side_effect = [DatabaseError("write failed"), None]

        # Act
        with pytest.raises(DatabaseError):
            await service.reset_password_with_token("t" * 43, "N3w-Passw0rd!")
        await service.reset_password_with_token("t" * 43, "N3w-Passw0rd!")

        # Assert
        token_issuer.claim.assert_awaited_once_with("t" * 43, 8)
        assert auth_provider.set_password.await_count == 2
        audit_recorder.record.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_losing_the_claim_reports_already_used(
        self, service, token_issuer, auth_provider, audit_recorder
    ):
        token_issuer.inspect.return_value = RedeemOutcome(RedeemStatus.VALID, user_id=8)
        token_issuer.claim.return_value = RedeemOutcome(RedeemStatus.ALREADY_USED, user_id=8)
        auth_provider.get_user.return_value = create_fake_user(id=8, email="sam@example.com")

        with pytest.raises(VerificationFailedError) as exc_info:
            await service.reset_password_with_token("t" * 43, "N3w-Passw0rd!")

        assert exc_info.value.code == "reset_token_already_used"
        audit_recorder.record.assert_not_awaited()
