"""Administrator-triggered password resets."""

from typing import Dict, Optional

import structlog

from src.domain.services.audit.audit_recorder import AuditRecorder
from src.domain.services.recovery.admin_token_issuer import AdminTokenIssuer
from src.domain.value_objects.auth_result import Principal
from src.utils.i18n import get_translated_message

logger = structlog.get_logger(__name__)


class AdminPasswordResetService:
    """Mails a single-use reset link to an account on an administrator's behalf."""

    def __init__(self, token_issuer: AdminTokenIssuer, audit_recorder: AuditRecorder):
        self._token_issuer = token_issuer
        self._audit_recorder = audit_recorder

    async def trigger_reset(
        self,
        admin: Principal,
        target_user_id: int,
        language: str = "en",
        ip_address: Optional[str] = None,
    ) -> Dict[str, object]:
        """Issue a reset link for ``target_user_id``.

        Raises:
            UserNotFoundError: If the account does not exist.
        """
        grant = await self._token_issuer.issue(
            target_user_id, created_by_id=admin.user_id, language=language
        )

        await self._audit_recorder.record(
            "password_reset",
            target_user_id,
            "created",
            actor_user_id=admin.user_id,
            actor_email=admin.email,
            metadata={"email_sent": grant.email_sent, "expires_at": grant.expires_at.isoformat()},
            ip_address=ip_address,
        )

        message_key = "admin_reset_email_sent" if grant.email_sent else "admin_reset_email_failed"
        return {
            "message": get_translated_message(message_key, language),
            "expires_at": grant.expires_at,
            "email_sent": grant.email_sent,
        }
