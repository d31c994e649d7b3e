"""Verification of submitted codes."""

import structlog

from src.domain.entities.recovery_record import RecoveryPurpose
from src.domain.interfaces.repositories import IRecoveryRecordRepository
from src.domain.value_objects.email import Email
from src.domain.value_objects.recovery_outcomes import VerifyOutcome, VerifyStatus
from src.domain.value_objects.recovery_policy import RecoveryPolicy
from src.utils.clock import Clock, utcnow

logger = structlog.get_logger(__name__)


class CodeVerifier:
    """Checks a submitted code against the open record.

    A match is reported as ``VALID`` without consuming the record. The
    outcome applier consumes it only after the privileged change committed,
    so a failed change leaves the code usable for a retry.
    """

    def __init__(self, store: IRecoveryRecordRepository, policy: RecoveryPolicy, clock: Clock = utcnow):
        self._store = store
        self._policy = policy
        self._clock = clock

        logger.debug("CodeVerifier initialized")

    async def verify(self, subject_identity: str, purpose: RecoveryPurpose, submitted_code: str) -> VerifyOutcome:
        email = Email(subject_identity)
        log = logger.bind(purpose=purpose.value, email=email.mask_for_logging())

        record = await self._store.get_open(email.value, purpose)
        if record is None:
            log.info("verification_no_active_request")
            return VerifyOutcome(VerifyStatus.NO_ACTIVE_REQUEST)

        if record.is_locked(self._policy.max_attempts):
            log.info("verification_locked", record_id=record.id)
            return VerifyOutcome(VerifyStatus.LOCKED)

        if record.code is None:
            log.info("verification_no_outstanding_code", record_id=record.id)
            return VerifyOutcome(VerifyStatus.NO_ACTIVE_REQUEST)

        if record.code_expires_at is None or self._clock() >= record.code_expires_at:
            log.info("verification_code_expired", record_id=record.id)
            return VerifyOutcome(VerifyStatus.EXPIRED)

        if record.code == submitted_code:
            log.info("verification_succeeded", record_id=record.id)
            return VerifyOutcome(VerifyStatus.VALID, record=record)

        attempts = await self._store.increment_attempts(record.id)
        if attempts >= self._policy.max_attempts:
            log.warning("verification_lockout_reached", record_id=record.id, attempts=attempts)
            return VerifyOutcome(VerifyStatus.LOCKED)

        remaining = self._policy.max_attempts - attempts
        log.info("verification_mismatch", record_id=record.id, remaining_attempts=remaining)
        return VerifyOutcome(VerifyStatus.MISMATCH, remaining_attempts=remaining)
