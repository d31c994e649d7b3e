"""Outcomes returned by the recovery protocol components.

"Not allowed" results are ordinary values, not exceptions: the application
services decide per endpoint whether an outcome is masked (anonymous code
requests) or surfaced (callers that already hold a code or token).
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from src.domain.entities.recovery_record import RecoveryRecord


class IssueStatus(str, Enum):
    ISSUED = "issued"
    RATE_LIMITED = "rate_limited"
    LOCKED = "locked"


@dataclass(frozen=True)
class IssueOutcome:
    status: IssueStatus
    code: Optional[str] = None
    expires_at: Optional[datetime] = None
    issued_count: int = 0
    record_id: Optional[int] = None

    @property
    def issued(self) -> bool:
        return self.status is IssueStatus.ISSUED

    @classmethod
    def rate_limited(cls, issued_count: int, record_id: Optional[int] = None) -> "IssueOutcome":
        return cls(IssueStatus.RATE_LIMITED, issued_count=issued_count, record_id=record_id)

    @classmethod
    def locked(cls, issued_count: int, record_id: Optional[int] = None) -> "IssueOutcome":
        return cls(IssueStatus.LOCKED, issued_count=issued_count, record_id=record_id)


class VerifyStatus(str, Enum):
    VALID = "valid"
    NO_ACTIVE_REQUEST = "no_active_request"
    LOCKED = "locked"
    EXPIRED = "expired"
    MISMATCH = "mismatch"


@dataclass(frozen=True)
class VerifyOutcome:
    """Result of checking a submitted code.

    ``record`` is only set for ``VALID``; ``remaining_attempts`` only for
    ``MISMATCH``.
    """

    status: VerifyStatus
    record: Optional[RecoveryRecord] = None
    remaining_attempts: Optional[int] = None

    @property
    def is_valid(self) -> bool:
        return self.status is VerifyStatus.VALID


class RedeemStatus(str, Enum):
    VALID = "valid"
    EXPIRED = "expired"
    NOT_FOUND = "not_found"
    ALREADY_USED = "already_used"


@dataclass(frozen=True)
class RedeemOutcome:
    status: RedeemStatus
    user_id: Optional[int] = None

    @property
    def is_valid(self) -> bool:
        return self.status is RedeemStatus.VALID


@dataclass(frozen=True)
class AdminTokenGrant:
    token: str
    expires_at: datetime
    email_sent: bool
