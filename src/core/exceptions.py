from __future__ import annotations

"""Centralized, structured exception hierarchy for ServDesk.

Every application error carries a machine-readable `code` and a
human-readable (already translated) `message`. The API layer maps each
family to one HTTP status in `src.core.handlers`; domain services raise
them and never build HTTP responses themselves.

Status mapping:
- ValidationError / VerificationFailedError -> 400
- AuthenticationError -> 401
- PermissionError -> 403
- NotFoundError -> 404
- ConflictError -> 409
- GoneError -> 410
- VerificationLockedError -> 423
- RateLimitExceededError -> 429
- InternalRecoveryError and any other ServDeskError -> 500
"""

from datetime import datetime
from typing import Final, Optional

from src.utils.i18n import get_translated_message

__all__: Final = [
    "ServDeskError",
    "ValidationError",
    "VerificationFailedError",
    "VerificationLockedError",
    "AuthenticationError",
    "PermissionError",
    "NotFoundError",
    "UserNotFoundError",
    "InvitationNotFoundError",
    "ResetTokenNotFoundError",
    "GoneError",
    "InvitationGoneError",
    "ConflictError",
    "DuplicateUserError",
    "PendingInvitationError",
    "RateLimitExceededError",
    "InternalRecoveryError",
    "DatabaseError",
]


class ServDeskError(Exception):
    """Base exception class for all custom errors in the application.

    Attributes:
        message (str): A human-readable, translated error message.
        code (str): A unique, machine-readable error code.
    """

    message: str
    code: str = "generic_error"

    def __init__(self, message: str, code: str = "generic_error"):
        self.message = message
        self.code = code
        Exception.__init__(self, self.message)

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Input and verification errors (400 / 423)
# ---------------------------------------------------------------------------


class ValidationError(ServDeskError):
    """Raised for malformed input. Maps to `400 Bad Request`."""

    def __init__(self, message: str, code: str = "validation_error", details: Optional[list] = None):
        super().__init__(message, code)
        self.details = details or []


class VerificationFailedError(ServDeskError):
    """A submitted verification code was rejected.

    Covers a mismatched code (with the remaining attempt budget), an expired
    code and the absence of any outstanding code. The caller already holds a
    code attempt, so the precise reason is surfaced as `400 Bad Request`.
    """

    def __init__(
        self,
        message: str,
        code: str = "verification_failed",
        remaining_attempts: Optional[int] = None,
    ):
        super().__init__(message, code)
        self.remaining_attempts = remaining_attempts


class VerificationLockedError(ServDeskError):
    """The attempt budget of a recovery record is exhausted. Maps to `423 Locked`."""

    def __init__(self, message: str, code: str = "verification_locked"):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Caller identity errors (401 / 403)
# ---------------------------------------------------------------------------


class AuthenticationError(ServDeskError):
    """Raised when a bearer token is missing or invalid. Maps to `401`."""

    def __init__(self, message: str, code: str = "authentication_error"):
        super().__init__(message, code)


class PermissionError(ServDeskError):
    """Raised when an authenticated caller lacks the required role. Maps to `403`."""

    def __init__(self, message: str, code: str = "permission_denied"):
        super().__init__(message, code)


# ---------------------------------------------------------------------------
# Resource lifecycle errors (404 / 409 / 410)
# ---------------------------------------------------------------------------


class NotFoundError(ServDeskError):
    """Base for missing resources. Maps to `404 Not Found`."""

    def __init__(self, message: str, code: str = "not_found"):
        super().__init__(message, code)


class UserNotFoundError(NotFoundError):
    """The targeted or linked account does not exist."""

    def __init__(self, message: str | None = None, code: str = "user_not_found"):
        super().__init__(message or get_translated_message("user_not_found"), code)


class InvitationNotFoundError(NotFoundError):
    def __init__(self, message: str | None = None, code: str = "invitation_not_found"):
        super().__init__(message or get_translated_message("invitation_not_found"), code)


class ResetTokenNotFoundError(NotFoundError):
    def __init__(self, message: str | None = None, code: str = "reset_token_not_found"):
        super().__init__(message or get_translated_message("reset_token_not_found"), code)


class GoneError(ServDeskError):
    """A resource existed but can no longer be used. Maps to `410 Gone`."""

    def __init__(self, message: str, code: str = "gone"):
        super().__init__(message, code)


class InvitationGoneError(GoneError):
    """The invitation was already accepted or has expired."""

    def __init__(self, message: str, code: str = "invitation_gone"):
        super().__init__(message, code)


class ConflictError(ServDeskError):
    """Base for uniqueness conflicts. Maps to `409 Conflict`."""

    def __init__(self, message: str, code: str = "conflict"):
        super().__init__(message, code)


class DuplicateUserError(ConflictError):
    """An account with the email address already exists."""

    def __init__(self, message: str | None = None, code: str = "duplicate_user_error"):
        super().__init__(message or get_translated_message("account_already_exists"), code)


class PendingInvitationError(ConflictError):
    """An unaccepted, unexpired invitation already exists for the email."""

    def __init__(self, message: str | None = None, code: str = "pending_invitation_exists"):
        super().__init__(message or get_translated_message("pending_invitation_exists"), code)


# ---------------------------------------------------------------------------
# Operational errors (429 / 500)
# ---------------------------------------------------------------------------


class RateLimitExceededError(ServDeskError):
    """Raised when a request or issuance budget has been exhausted.

    When raised by the public endpoint limiter it carries the window figures
    so the handler can emit `X-RateLimit-*` headers.
    """

    def __init__(
        self,
        message: str | None = None,
        code: str = "rate_limited",
        limit: Optional[int] = None,
        remaining: Optional[int] = None,
        reset_at: Optional[datetime] = None,
    ):
        super().__init__(message or get_translated_message("too_many_requests"), code)
        self.limit = limit
        self.remaining = remaining
        self.reset_at = reset_at


class InternalRecoveryError(ServDeskError):
    """A storage or collaborator failure while applying a recovery outcome.

    The message returned to callers is always generic; the cause is logged.
    """

    def __init__(self, message: str | None = None, code: str = "internal_error"):
        super().__init__(message or get_translated_message("internal_error"), code)


class DatabaseError(ServDeskError):
    """Wraps low-level database driver errors. Maps to `500`."""

    def __init__(self, message: str, code: str = "database_error"):
        super().__init__(message, code)
