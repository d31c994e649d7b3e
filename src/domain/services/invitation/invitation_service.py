"""Invitation use cases.

An administrator invites an address; the invitee requests a code for the
invitation's address and accepts it with name, password and code. Unlike
the password reset request, the invitee holds an unguessable token, so
lockout and issuance limits are reported precisely.
"""

import secrets
from dataclasses import dataclass
from typing import Dict, Optional

import structlog

from src.core.exceptions import (
    DuplicateUserError,
    InvitationGoneError,
    InternalRecoveryError,
    InvitationNotFoundError,
    PendingInvitationError,
    RateLimitExceededError,
    VerificationLockedError,
)
from src.domain.entities.invitation import Invitation
from src.domain.entities.recovery_record import RecoveryPurpose
from src.domain.entities.user import Role, User
from src.domain.interfaces.auth_provider import IAuthProvider
from src.domain.interfaces.notifier import INotifier
from src.domain.interfaces.repositories import IInvitationRepository, IRecoveryRecordRepository
from src.domain.services.audit.audit_recorder import AuditRecorder
from src.domain.services.recovery.code_issuer import CodeIssuer
from src.domain.services.recovery.code_verifier import CodeVerifier
from src.domain.services.recovery.outcome_applier import (
    InvitationAcceptApplier,
    InvitationAcceptPayload,
)
from src.domain.services.recovery.outcome_errors import raise_for_verify_outcome
from src.domain.value_objects.auth_result import Principal
from src.domain.value_objects.email import Email
from src.domain.value_objects.recovery_outcomes import IssueStatus
from src.domain.value_objects.recovery_policy import RecoveryPolicy
from src.utils.clock import Clock, utcnow
from src.utils.i18n import get_translated_message

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CreatedInvitation:
    invitation: Invitation
    email_sent: bool


class InvitationService:
    TOKEN_BYTES = 32

    def __init__(
        self,
        invitation_repository: IInvitationRepository,
        store: IRecoveryRecordRepository,
        auth_provider: IAuthProvider,
        code_issuer: CodeIssuer,
        code_verifier: CodeVerifier,
        applier: InvitationAcceptApplier,
        audit_recorder: AuditRecorder,
        notifier: INotifier,
        policy: RecoveryPolicy,
        invitation_url_base: str,
        clock: Clock = utcnow,
    ):
        self._invitation_repository = invitation_repository
        self._store = store
        self._auth_provider = auth_provider
        self._code_issuer = code_issuer
        self._code_verifier = code_verifier
        self._applier = applier
        self._audit_recorder = audit_recorder
        self._notifier = notifier
        self._policy = policy
        self._invitation_url_base = invitation_url_base.rstrip("/")
        self._clock = clock

        logger.debug("InvitationService initialized")

    async def create_invitation(
        self,
        inviter: Principal,
        email: str,
        role: Role,
        language: str = "en",
        ip_address: Optional[str] = None,
    ) -> CreatedInvitation:
        """Invite ``email`` to join with ``role``.

        Raises:
            DuplicateUserError: An account with the address exists.
            PendingInvitationError: An open invitation exists for the address.
        """
        normalized = Email(email)
        now = self._clock()

        if await self._auth_provider.find_user_by_email(normalized.value) is not None:
            raise DuplicateUserError(get_translated_message("account_already_exists", language))
        if await self._invitation_repository.get_pending_for_email(normalized.value, now) is not None:
            raise PendingInvitationError(get_translated_message("pending_invitation_exists", language))

        # Counters left over from an earlier, expired invitation do not carry over
        await self._store.supersede_open(normalized.value, RecoveryPurpose.INVITATION_ACCEPT, now)

        invitation = await self._invitation_repository.create(
            Invitation(
                token=secrets.token_urlsafe(self.TOKEN_BYTES),
                email=normalized.value,
                role=role,
                invited_by_id=inviter.user_id,
                expires_at=now + self._policy.invitation_ttl,
                created_at=now,
            )
        )

        email_sent = await self._deliver_invitation(invitation, inviter, language)

        await self._audit_recorder.record(
            "invitation",
            invitation.id,
            "created",
            actor_user_id=inviter.user_id,
            actor_email=inviter.email,
            metadata={"email": invitation.email, "role": invitation.role.value},
            ip_address=ip_address,
        )
        logger.info(
            "invitation_created",
            invitation_id=invitation.id,
            email=normalized.mask_for_logging(),
            role=role.value,
            email_sent=email_sent,
        )
        return CreatedInvitation(invitation=invitation, email_sent=email_sent)

    async def resolve_active(self, token: str, language: str = "en") -> Invitation:
        """Return the usable invitation for ``token``.

        Raises:
            InvitationNotFoundError: Unknown token.
            InvitationGoneError: Accepted or expired invitation.
        """
        invitation = await self._invitation_repository.get_by_token(token)
        if invitation is None:
            raise InvitationNotFoundError(get_translated_message("invitation_not_found", language))
        if invitation.is_accepted():
            raise InvitationGoneError(
                get_translated_message("invitation_already_accepted", language),
                code="invitation_already_accepted",
            )
        if invitation.is_expired(self._clock()):
            raise InvitationGoneError(
                get_translated_message("invitation_expired", language),
                code="invitation_expired",
            )
        return invitation

    async def cancel(
        self,
        admin: Principal,
        token: str,
        language: str = "en",
        ip_address: Optional[str] = None,
    ) -> None:
        """Withdraw an invitation that has not been accepted.

        Any outstanding acceptance code for the address dies with it.

        Raises:
            InvitationNotFoundError: Unknown token.
            InvitationGoneError: The invitation was already accepted.
        """
        invitation = await self._invitation_repository.get_by_token(token)
        if invitation is None:
            raise InvitationNotFoundError(get_translated_message("invitation_not_found", language))
        if invitation.is_accepted():
            raise InvitationGoneError(
                get_translated_message("invitation_already_accepted", language),
                code="invitation_already_accepted",
            )

        await self._store.supersede_open(invitation.email, RecoveryPurpose.INVITATION_ACCEPT, self._clock())
        if not await self._invitation_repository.delete(invitation.id):
            raise InvitationNotFoundError(get_translated_message("invitation_not_found", language))

        await self._audit_recorder.record(
            "invitation",
            invitation.id,
            "cancelled",
            actor_user_id=admin.user_id,
            actor_email=admin.email,
            metadata={"email": invitation.email},
            ip_address=ip_address,
        )
        logger.info("invitation_cancelled", invitation_id=invitation.id, cancelled_by=admin.user_id)

    async def resend(
        self,
        admin: Principal,
        token: str,
        language: str = "en",
        ip_address: Optional[str] = None,
    ) -> None:
        """Mail the acceptance link of an open invitation again.

        Raises:
            InvitationNotFoundError, InvitationGoneError: Token lifecycle.
            InternalRecoveryError: The email could not be handed off.
        """
        invitation = await self.resolve_active(token, language)

        if not await self._deliver_invitation(invitation, admin, language):
            raise InternalRecoveryError(
                get_translated_message("invitation_email_failed", language),
                code="email_delivery_failed",
            )

        await self._audit_recorder.record(
            "invitation",
            invitation.id,
            "resent",
            actor_user_id=admin.user_id,
            actor_email=admin.email,
            ip_address=ip_address,
        )
        logger.info("invitation_resent", invitation_id=invitation.id)

    async def send_code(self, token: str, language: str = "en") -> Dict[str, object]:
        """Send a verification code to the invited address.

        Raises:
            VerificationLockedError: Locked and out of issuance budget.
            RateLimitExceededError: Out of issuance budget.
        """
        invitation = await self.resolve_active(token, language)

        outcome = await self._code_issuer.issue_code(
            invitation.email,
            RecoveryPurpose.INVITATION_ACCEPT,
            role=invitation.role,
            invitation_id=invitation.id,
            language=language,
        )
        if outcome.status is IssueStatus.LOCKED:
            raise VerificationLockedError(get_translated_message("verification_locked", language))
        if outcome.status is IssueStatus.RATE_LIMITED:
            raise RateLimitExceededError(
                get_translated_message("invitation_max_codes_sent", language),
                code="max_codes_sent",
            )

        return {
            "message": get_translated_message("invitation_code_sent", language),
            "codes_sent": outcome.issued_count,
            "max_codes": self._policy.max_issued_per_window,
        }

    async def accept(
        self,
        token: str,
        name: str,
        password: str,
        verification_code: str,
        language: str = "en",
        ip_address: Optional[str] = None,
        correlation_id: Optional[str] = None,
    ) -> User:
        """Create the invited account once the code checks out.

        Raises:
            InvitationNotFoundError, InvitationGoneError: Token lifecycle.
            VerificationFailedError, VerificationLockedError: Code problems.
            DuplicateUserError: The address was registered in the meantime.
        """
        invitation = await self.resolve_active(token, language)
        log = logger.bind(correlation_id=correlation_id, invitation_id=invitation.id)

        outcome = await self._code_verifier.verify(
            invitation.email, RecoveryPurpose.INVITATION_ACCEPT, verification_code
        )
        raise_for_verify_outcome(outcome, language)

        applied = await self._applier.apply(
            outcome,
            InvitationAcceptPayload(name=name, password=password, invitation=invitation),
            language=language,
            ip_address=ip_address,
        )
        log.info("invitation_accepted", user_id=applied.user.id)
        return applied.user

    async def _deliver_invitation(self, invitation: Invitation, inviter: Principal, language: str) -> bool:
        url = f"{self._invitation_url_base}/invite/{invitation.token}"
        try:
            return await self._notifier.send_invitation(
                invitation.email,
                url,
                invitation.role,
                invitation.expires_at,
                inviter_name=inviter.email,
                language=language,
            )
        except Exception as exc:
            logger.error("invitation_delivery_failed", invitation_id=invitation.id, error=str(exc))
            return False
