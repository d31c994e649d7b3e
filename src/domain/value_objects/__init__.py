"""Domain value objects.

Value objects are immutable and compared by value. They carry the
protocol's rules (code format, email normalization, limits) and the
outcomes its components return.
"""

from .auth_result import AuthError, AuthResult, Principal, require_role
from .email import Email
from .rate_limit import RateLimitDecision
from .recovery_outcomes import (
    AdminTokenGrant,
    IssueOutcome,
    IssueStatus,
    RedeemOutcome,
    RedeemStatus,
    VerifyOutcome,
    VerifyStatus,
)
from .recovery_policy import RecoveryPolicy
from .verification_code import VerificationCode

__all__ = [
    "AdminTokenGrant",
    "AuthError",
    "AuthResult",
    "Email",
    "IssueOutcome",
    "IssueStatus",
    "Principal",
    "RateLimitDecision",
    "RecoveryPolicy",
    "RedeemOutcome",
    "RedeemStatus",
    "VerificationCode",
    "VerifyOutcome",
    "VerifyStatus",
    "require_role",
]
