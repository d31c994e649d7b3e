"""Password Reset Service.

Completes a self-service reset: verifies the submitted code, then hands the
new password to the AuthProvider through ``PasswordResetApplier``. Also
completes resets started by an administrator's emailed link.
"""

from typing import Dict, Optional

import structlog

from src.core.exceptions import ResetTokenNotFoundError, UserNotFoundError, VerificationFailedError
from src.domain.entities.recovery_record import RecoveryPurpose
from src.domain.interfaces.auth_provider import IAuthProvider
from src.domain.services.audit.audit_recorder import AuditRecorder
from src.domain.services.recovery.admin_token_issuer import AdminTokenIssuer
from src.domain.services.recovery.code_verifier import CodeVerifier
from src.domain.services.recovery.outcome_applier import PasswordResetApplier, PasswordResetPayload
from src.domain.services.recovery.outcome_errors import raise_for_verify_outcome
from src.domain.value_objects.email import Email
from src.domain.value_objects.recovery_outcomes import RedeemOutcome, RedeemStatus
from src.utils.clock import Clock, utcnow
from src.utils.i18n import get_translated_message

logger = structlog.get_logger(__name__)


class PasswordResetService:
    def __init__(
        self,
        code_verifier: CodeVerifier,
        applier: PasswordResetApplier,
        admin_token_issuer: AdminTokenIssuer,
        auth_provider: IAuthProvider,
        audit_recorder: AuditRecorder,
        clock: Clock = utcnow,
    ):
        self._code_verifier = code_verifier
        self._applier = applier
        self._admin_token_issuer = admin_token_issuer
        self._auth_provider = auth_provider
        self._audit_recorder = audit_recorder
        self._clock = clock

        logger.debug("PasswordResetService initialized")

    async def reset_password(
        self,
        email: str,
        code: str,
        new_password: str,
        language: str = "en",
        ip_address: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> Dict[str, str]:
        """Reset a password with an emailed verification code.

        Raises:
            VerificationFailedError: Mismatch, expired code or no request.
            VerificationLockedError: Attempt budget exhausted.
            UserNotFoundError: The linked account no longer exists.
            InternalRecoveryError: The credential could not be stored.
        """
        normalized = Email(email)
        log = logger.bind(correlation_id=correlation_id, email=normalized.mask_for_logging())

        outcome = await self._code_verifier.verify(
            normalized.value, RecoveryPurpose.PASSWORD_RESET, code
        )
        raise_for_verify_outcome(outcome, language)

        await self._applier.apply(
            outcome,
            PasswordResetPayload(new_password=new_password),
            language=language,
            ip_address=ip_address,
        )
        log.info("password_reset_completed")
        return {"message": get_translated_message("password_reset_successful", language)}

    async def reset_password_with_token(
        self,
        token: str,
        new_password: str,
        language: str = "en",
        ip_address: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> Dict[str, str]:
        """Reset a password with an administrator-issued link.

        The token is claimed only after the credential is replaced, so a
        failed write leaves the link usable. Of two concurrent redemptions
        the one that loses the claim is reported as already used.

        Raises:
            ResetTokenNotFoundError: Unknown token.
            VerificationFailedError: Expired or already used token.
            UserNotFoundError: The account no longer exists.
        """
        log = logger.bind(correlation_id=correlation_id)

        outcome = await self._admin_token_issuer.inspect(token)
        self._raise_for_redeem_outcome(outcome, language)

        user = await self._auth_provider.get_user(outcome.user_id)
        if user is None:
            raise UserNotFoundError(get_translated_message("linked_user_not_found", language))

        await self._auth_provider.set_password(user.id, new_password, self._clock())

        claimed = await self._admin_token_issuer.claim(token, user.id)
        if claimed.status is not RedeemStatus.VALID:
            log.warning("admin_reset_token_claimed_concurrently", user_id=user.id)
        self._raise_for_redeem_outcome(claimed, language)

        await self._audit_recorder.record(
            "user",
            user.id,
            "password_reset_via_admin_link",
            actor_user_id=user.id,
            actor_email=user.email,
            field="password",
            ip_address=ip_address,
        )
        log.info("password_reset_with_admin_token_completed", user_id=user.id)
        return {"message": get_translated_message("password_reset_successful", language)}

    @staticmethod
    def _raise_for_redeem_outcome(outcome: RedeemOutcome, language: str) -> None:
        if outcome.status is RedeemStatus.NOT_FOUND:
            raise ResetTokenNotFoundError(get_translated_message("reset_token_not_found", language))
        if outcome.status is RedeemStatus.EXPIRED:
            raise VerificationFailedError(
                get_translated_message("reset_token_expired", language), code="reset_token_expired"
            )
        if outcome.status is RedeemStatus.ALREADY_USED:
            raise VerificationFailedError(
                get_translated_message("reset_token_already_used", language),
                code="reset_token_already_used",
            )
