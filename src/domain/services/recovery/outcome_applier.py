"""Privileged changes gated by a successful code verification.

Both flows share one shape: re-check what the verifier cannot see, apply
the change through the AuthProvider, then consume the record and audit.
The record is consumed only after the change committed; a failed change
leaves the code usable until it expires or locks.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Generic, Optional, TypeVar

import structlog

from src.core.exceptions import (
    DuplicateUserError,
    InternalRecoveryError,
    ServDeskError,
    UserNotFoundError,
)
from src.domain.entities.invitation import Invitation
from src.domain.entities.recovery_record import RecoveryPurpose, RecoveryRecord
from src.domain.entities.user import User
from src.domain.interfaces.auth_provider import IAuthProvider
from src.domain.interfaces.repositories import IInvitationRepository, IRecoveryRecordRepository
from src.domain.services.audit.audit_recorder import AuditRecorder
from src.domain.value_objects.recovery_outcomes import VerifyOutcome
from src.utils.clock import Clock, utcnow
from src.utils.i18n import get_translated_message

logger = structlog.get_logger(__name__)

P = TypeVar("P")


@dataclass(frozen=True)
class PasswordResetPayload:
    new_password: str


@dataclass(frozen=True)
class InvitationAcceptPayload:
    name: str
    password: str
    invitation: Invitation


@dataclass(frozen=True)
class AppliedOutcome:
    user: User
    record_id: int


class RecoveryOutcomeApplier(ABC, Generic[P]):
    """Template for applying a verified recovery outcome."""

    purpose: RecoveryPurpose

    def __init__(
        self,
        store: IRecoveryRecordRepository,
        auth_provider: IAuthProvider,
        audit_recorder: AuditRecorder,
        clock: Clock = utcnow,
    ):
        self._store = store
        self._auth_provider = auth_provider
        self._audit_recorder = audit_recorder
        self._clock = clock

    async def apply(
        self,
        outcome: VerifyOutcome,
        payload: P,
        *,
        language: str = "en",
        ip_address: Optional[str] = None,
    ) -> AppliedOutcome:
        if not outcome.is_valid or outcome.record is None:
            raise ValueError("apply() requires a VALID verification outcome")

        record = outcome.record
        if record.purpose != self.purpose:
            raise ValueError(f"record purpose {record.purpose} does not match {self.purpose}")

        await self._revalidate(record, payload, language)

        now = self._clock()
        try:
            user = await self._apply_change(record, payload, now)
        except (DuplicateUserError, UserNotFoundError):
            raise
        except Exception as exc:
            logger.error(
                "recovery_change_failed",
                purpose=self.purpose.value,
                record_id=record.id,
                error=str(exc),
            )
            raise InternalRecoveryError(get_translated_message("internal_error", language)) from exc

        await self._consume(record, user, now)
        await self._after_consume(record, payload, user, now)
        await self._audit(record, payload, user, ip_address)

        logger.info("recovery_outcome_applied", purpose=self.purpose.value, record_id=record.id, user_id=user.id)
        return AppliedOutcome(user=user, record_id=record.id)

    async def _consume(self, record: RecoveryRecord, user: User, now: datetime) -> None:
        try:
            consumed = await self._store.consume(record.id, now, linked_user_id=user.id)
        except ServDeskError as exc:
            # The change already committed; the code stays valid until it expires
            logger.error("recovery_record_consume_failed", record_id=record.id, error=str(exc))
            return
        if not consumed:
            logger.warning("recovery_record_already_consumed", record_id=record.id)

    async def _after_consume(self, record: RecoveryRecord, payload: P, user: User, now: datetime) -> None:
        return None

    @abstractmethod
    async def _revalidate(self, record: RecoveryRecord, payload: P, language: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def _apply_change(self, record: RecoveryRecord, payload: P, now: datetime) -> User:
        raise NotImplementedError

    @abstractmethod
    async def _audit(self, record: RecoveryRecord, payload: P, user: User, ip_address: Optional[str]) -> None:
        raise NotImplementedError


class PasswordResetApplier(RecoveryOutcomeApplier[PasswordResetPayload]):
    """Replaces the credential of the account a reset record is linked to."""

    purpose = RecoveryPurpose.PASSWORD_RESET

    async def _revalidate(self, record, payload, language):
        user = None
        if record.linked_user_id is not None:
            user = await self._auth_provider.get_user(record.linked_user_id)
        if user is None or not user.is_active:
            logger.warning("password_reset_linked_user_missing", record_id=record.id)
            raise UserNotFoundError(get_translated_message("linked_user_not_found", language))

    async def _apply_change(self, record, payload, now):
        await self._auth_provider.set_password(record.linked_user_id, payload.new_password, now)
        return await self._auth_provider.get_user(record.linked_user_id)

    async def _audit(self, record, payload, user, ip_address):
        await self._audit_recorder.record(
            "user",
            user.id,
            "password_reset_self_service",
            actor_user_id=user.id,
            actor_email=user.email,
            field="password",
            metadata={"recovery_record_id": record.id},
            ip_address=ip_address,
        )


class InvitationAcceptApplier(RecoveryOutcomeApplier[InvitationAcceptPayload]):
    """Creates the invited account and closes the invitation."""

    purpose = RecoveryPurpose.INVITATION_ACCEPT

    def __init__(
        self,
        store: IRecoveryRecordRepository,
        auth_provider: IAuthProvider,
        audit_recorder: AuditRecorder,
        invitation_repository: IInvitationRepository,
        clock: Clock = utcnow,
    ):
        super().__init__(store, auth_provider, audit_recorder, clock)
        self._invitation_repository = invitation_repository

    async def _revalidate(self, record, payload, language):
        # An account may have been registered since the code was sent
        existing = await self._auth_provider.find_user_by_email(record.subject_identity)
        if existing is not None:
            raise DuplicateUserError(get_translated_message("account_already_exists", language))

    async def _apply_change(self, record, payload, now):
        role = record.role or payload.invitation.role
        return await self._auth_provider.create_user(
            record.subject_identity, payload.name, payload.password, role
        )

    async def _after_consume(self, record, payload, user, now):
        try:
            accepted = await self._invitation_repository.mark_accepted(payload.invitation.id, now)
        except ServDeskError as exc:
            logger.error("invitation_mark_accepted_failed", invitation_id=payload.invitation.id, error=str(exc))
            return
        if not accepted:
            logger.warning("invitation_already_marked_accepted", invitation_id=payload.invitation.id)

    async def _audit(self, record, payload, user, ip_address):
        await self._audit_recorder.record(
            "user",
            user.id,
            "created_via_invitation",
            actor_user_id=user.id,
            actor_email=user.email,
            metadata={"invitation_id": payload.invitation.id, "role": user.role.value},
            ip_address=ip_address,
        )
