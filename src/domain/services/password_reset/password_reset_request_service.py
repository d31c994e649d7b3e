"""Password Reset Request Service.

Starts a self-service password reset. The response never depends on
whether the address belongs to an account, whether the per-identity limit
was hit, whether the record is locked or whether the email went out.
"""

from typing import Dict, Optional

import structlog

from src.domain.entities.recovery_record import RecoveryPurpose
from src.domain.interfaces.auth_provider import IAuthProvider
from src.domain.services.recovery.code_issuer import CodeIssuer
from src.domain.value_objects.email import Email
from src.utils.i18n import get_translated_message

logger = structlog.get_logger(__name__)


class PasswordResetRequestService:
    """Issues a reset code when, and only when, the account exists.

    All internal outcomes collapse into the same generic message so the
    endpoint cannot be used to discover accounts.
    """

    def __init__(self, auth_provider: IAuthProvider, code_issuer: CodeIssuer):
        self._auth_provider = auth_provider
        self._code_issuer = code_issuer

        logger.debug("PasswordResetRequestService initialized")

    async def request_password_reset(
        self,
        email: str,
        language: str = "en",
        ip_address: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> Dict[str, str]:
        """Request a reset code for ``email``.

        Returns:
            Dict with the generic message, identical for every input.
        """
        log = logger.bind(correlation_id=correlation_id, email=Email.mask(email))
        try:
            normalized = Email(email)
            user = await self._auth_provider.find_user_by_email(normalized.value)

            if user is None or not user.is_active:
                log.info("password_reset_requested_for_unknown_account")
                return self._create_success_response(language)

            outcome = await self._code_issuer.issue_code(
                normalized.value,
                RecoveryPurpose.PASSWORD_RESET,
                linked_user_id=user.id,
                recipient_name=user.name,
                language=language,
            )
            log.info("password_reset_request_processed", outcome=outcome.status.value)
        except Exception as exc:
            # Even failures answer with the generic message
            log.error("password_reset_request_failed", error=str(exc), ip_address=ip_address)

        return self._create_success_response(language)

    @staticmethod
    def _create_success_response(language: str) -> Dict[str, str]:
        return {"message": get_translated_message("password_reset_requested", language)}
