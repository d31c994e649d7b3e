"""Repository implementations for the infrastructure layer."""

from .admin_token_repository import AdminTokenRepository
from .audit_repository import AuditRepository
from .invitation_repository import InvitationRepository
from .recovery_record_repository import RecoveryRecordRepository
from .user_repository import UserRepository

__all__ = [
    "AdminTokenRepository",
    "AuditRepository",
    "InvitationRepository",
    "RecoveryRecordRepository",
    "UserRepository",
]
