"""Verification code issuance.

Creates or refreshes the code of the single open recovery record for a
subject and purpose, enforcing the per-identity issuance window. Callers
only invoke it for identities they already know to be real.
"""

from typing import Callable, Optional

import structlog

from src.domain.entities.recovery_record import RecoveryPurpose
from src.domain.entities.user import Role
from src.domain.interfaces.notifier import INotifier
from src.domain.interfaces.repositories import IRecoveryRecordRepository
from src.domain.value_objects.email import Email
from src.domain.value_objects.recovery_outcomes import IssueOutcome, IssueStatus
from src.domain.value_objects.recovery_policy import RecoveryPolicy
from src.domain.value_objects.verification_code import VerificationCode
from src.utils.clock import Clock, utcnow

logger = structlog.get_logger(__name__)


class CodeIssuer:
    """Issues six digit codes under a fixed issuance window.

    Each issuance replaces the outstanding code, restarts its lifetime and
    grants a fresh attempt budget. A record that was locked by mismatches is
    therefore unlocked by the next issuance, as long as the window still has
    budget; once the budget is spent the outcome is ``LOCKED`` for a locked
    record and ``RATE_LIMITED`` otherwise.
    """

    def __init__(
        self,
        store: IRecoveryRecordRepository,
        notifier: INotifier,
        policy: RecoveryPolicy,
        clock: Clock = utcnow,
        code_generator: Callable[[], VerificationCode] = VerificationCode.generate,
    ):
        self._store = store
        self._notifier = notifier
        self._policy = policy
        self._clock = clock
        self._code_generator = code_generator

        logger.debug("CodeIssuer initialized")

    async def issue_code(
        self,
        subject_identity: str,
        purpose: RecoveryPurpose,
        *,
        linked_user_id: Optional[int] = None,
        role: Optional[Role] = None,
        invitation_id: Optional[int] = None,
        recipient_name: Optional[str] = None,
        language: str = "en",
    ) -> IssueOutcome:
        email = Email(subject_identity)
        now = self._clock()
        log = logger.bind(purpose=purpose.value, email=email.mask_for_logging())

        record = await self._store.get_or_create_open(
            email.value,
            purpose,
            now,
            linked_user_id=linked_user_id,
            role=role,
            invitation_id=invitation_id,
        )

        issued_count = record.issued_count
        window_start = record.window_start
        if now - window_start >= self._policy.issuance_window:
            issued_count = 0
            window_start = now

        if issued_count >= self._policy.max_issued_per_window:
            if record.is_locked(self._policy.max_attempts):
                log.info("code_issuance_refused_locked", record_id=record.id)
                return IssueOutcome.locked(issued_count, record.id)
            log.info("code_issuance_rate_limited", record_id=record.id, issued_count=issued_count)
            return IssueOutcome.rate_limited(issued_count, record.id)

        code = self._code_generator()
        expires_at = now + self._policy.code_ttl
        applied = await self._store.save_issuance(
            record.id,
            expected_issued_count=record.issued_count,
            expected_window_start=record.window_start,
            code=code.value,
            code_expires_at=expires_at,
            issued_count=issued_count + 1,
            window_start=window_start,
            now=now,
            linked_user_id=linked_user_id,
        )
        if not applied:
            # A concurrent issuance spent the slot first
            log.info("code_issuance_lost_race", record_id=record.id)
            return IssueOutcome.rate_limited(issued_count + 1, record.id)

        log.info("code_issued", record_id=record.id, issued_count=issued_count + 1)
        await self._deliver(email, code, purpose, expires_at, recipient_name, language)

        return IssueOutcome(
            status=IssueStatus.ISSUED,
            code=code.value,
            expires_at=expires_at,
            issued_count=issued_count + 1,
            record_id=record.id,
        )

    async def _deliver(self, email, code, purpose, expires_at, recipient_name, language) -> None:
        """Hands the code to the notifier; failures never undo issuance."""
        try:
            sent = await self._notifier.send_verification_code(
                email.value,
                code.value,
                purpose,
                expires_at,
                name=recipient_name,
                language=language,
            )
        except Exception as exc:
            logger.error(
                "verification_code_delivery_failed",
                purpose=purpose.value,
                email=email.mask_for_logging(),
                error=str(exc),
            )
            return

        if not sent:
            logger.warning(
                "verification_code_not_delivered",
                purpose=purpose.value,
                email=email.mask_for_logging(),
            )
