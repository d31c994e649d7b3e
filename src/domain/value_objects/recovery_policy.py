"""Tunable limits of the recovery protocol."""

from dataclasses import dataclass
from datetime import timedelta


@dataclass(frozen=True)
class RecoveryPolicy:
    """Attempt, issuance and lifetime limits shared by issuer and verifier.

    Attributes:
        max_attempts: Mismatches that lock a record.
        code_ttl: Lifetime of an issued code.
        max_issued_per_window: Codes that may be issued per window.
        issuance_window: Length of the fixed issuance window.
        admin_token_ttl: Lifetime of administrator reset links.
        invitation_ttl: Lifetime of invitations.
    """

    max_attempts: int = 5
    code_ttl: timedelta = timedelta(minutes=10)
    max_issued_per_window: int = 3
    issuance_window: timedelta = timedelta(minutes=60)
    admin_token_ttl: timedelta = timedelta(hours=1)
    invitation_ttl: timedelta = timedelta(days=7)

    def __post_init__(self) -> None:
        if self.max_attempts <= 0:
            raise ValueError("max_attempts must be positive")
        if self.max_issued_per_window <= 0:
            raise ValueError("max_issued_per_window must be positive")
        if self.code_ttl <= timedelta(0) or self.issuance_window <= timedelta(0):
            raise ValueError("code_ttl and issuance_window must be positive")

    @classmethod
    def from_settings(cls, settings) -> "RecoveryPolicy":
        return cls(
            max_attempts=settings.RECOVERY_MAX_ATTEMPTS,
            code_ttl=timedelta(minutes=settings.RECOVERY_CODE_TTL_MINUTES),
            max_issued_per_window=settings.RECOVERY_MAX_CODES_PER_WINDOW,
            issuance_window=timedelta(minutes=settings.RECOVERY_ISSUANCE_WINDOW_MINUTES),
            admin_token_ttl=timedelta(hours=settings.ADMIN_RESET_TOKEN_TTL_HOURS),
            invitation_ttl=timedelta(days=settings.INVITATION_TTL_DAYS),
        )
