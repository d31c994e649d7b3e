"""Translation of verification outcomes into application errors.

Used by the endpoints whose callers already hold a code or token, where the
precise reason is surfaced instead of masked.
"""

from src.core.exceptions import VerificationFailedError, VerificationLockedError
from src.domain.value_objects.recovery_outcomes import VerifyOutcome, VerifyStatus
from src.utils.i18n import get_translated_message


def raise_for_verify_outcome(outcome: VerifyOutcome, language: str = "en") -> None:
    """Raise the error matching a non-``VALID`` outcome; return for ``VALID``."""
    status = outcome.status
    if status is VerifyStatus.VALID:
        return
    if status is VerifyStatus.LOCKED:
        raise VerificationLockedError(get_translated_message("verification_locked", language))
    if status is VerifyStatus.EXPIRED:
        raise VerificationFailedError(
            get_translated_message("verification_code_expired", language),
            code="verification_code_expired",
        )
    if status is VerifyStatus.MISMATCH:
        raise VerificationFailedError(
            get_translated_message(
                "verification_code_invalid", language, remaining=outcome.remaining_attempts
            ),
            code="invalid_verification_code",
            remaining_attempts=outcome.remaining_attempts,
        )
    raise VerificationFailedError(
        get_translated_message("no_active_verification_request", language),
        code="no_active_request",
    )
