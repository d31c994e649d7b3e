"""Persistence entities for the recovery protocol.

Importing this package registers every table on ``SQLModel.metadata``,
which both ``create_all`` and Alembic autogeneration rely on.
"""

from .admin_recovery_token import AdminRecoveryToken
from .audit_entry import AuditEntry
from .invitation import Invitation
from .recovery_record import RecoveryPurpose, RecoveryRecord
from .user import Role, User

__all__ = [
    "AdminRecoveryToken",
    "AuditEntry",
    "Invitation",
    "RecoveryPurpose",
    "RecoveryRecord",
    "Role",
    "User",
]
