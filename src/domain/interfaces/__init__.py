"""Domain interfaces (ports) for dependency inversion.

The recovery services depend only on these abstractions; adapters in
``src.infrastructure`` implement them against SQLModel, Redis, passlib and
fastapi-mail.
"""

from .auth_provider import IAuthProvider
from .notifier import INotifier
from .rate_limiter import IRateLimiter
from .repositories import (
    IAdminTokenRepository,
    IAuditRepository,
    IInvitationRepository,
    IRecoveryRecordRepository,
    IUserRepository,
)

__all__ = [
    "IAdminTokenRepository",
    "IAuditRepository",
    "IAuthProvider",
    "IInvitationRepository",
    "INotifier",
    "IRateLimiter",
    "IRecoveryRecordRepository",
    "IUserRepository",
]
