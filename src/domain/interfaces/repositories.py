"""Repository interfaces for abstracting data persistence in the domain layer.

The domain services depend on these ports only. Concrete SQLModel
implementations live in ``src.infrastructure.repositories`` and receive
their ``AsyncSession`` through the constructor, never from a module global.

Every mutation that must be atomic across concurrent requests is expressed
here as a single conditional operation (increment, compare-and-set) rather
than a read followed by a write in the service.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional

from src.domain.entities.admin_recovery_token import AdminRecoveryToken
from src.domain.entities.audit_entry import AuditEntry
from src.domain.entities.invitation import Invitation
from src.domain.entities.recovery_record import RecoveryPurpose, RecoveryRecord
from src.domain.entities.user import Role, User


class IRecoveryRecordRepository(ABC):
    """Durable store of outstanding verification attempts (the VerificationStore)."""

    @abstractmethod
    async def get_open(self, subject_identity: str, purpose: RecoveryPurpose) -> Optional[RecoveryRecord]:
        """Returns the non-terminal record for the subject and purpose, if any."""
        raise NotImplementedError

    @abstractmethod
    async def get_or_create_open(
        self,
        subject_identity: str,
        purpose: RecoveryPurpose,
        now: datetime,
        *,
        linked_user_id: Optional[int] = None,
        role: Optional[Role] = None,
        invitation_id: Optional[int] = None,
    ) -> RecoveryRecord:
        """Returns the open record, creating an empty one when none exists.

        Concurrent creators converge on the same row: the loser of the
        unique-index race reloads the winner's record.
        """
        raise NotImplementedError

    @abstractmethod
    async def save_issuance(
        self,
        record_id: int,
        *,
        expected_issued_count: int,
        expected_window_start: datetime,
        code: str,
        code_expires_at: datetime,
        issued_count: int,
        window_start: datetime,
        now: datetime,
        linked_user_id: Optional[int] = None,
    ) -> bool:
        """Stores a freshly issued code and resets the attempt counter.

        The update only applies when the row still holds the issuance
        counters the caller observed, so two concurrent issuances cannot both
        spend the same slot.

        Returns:
            True if the update applied, False if another request won.
        """
        raise NotImplementedError

    @abstractmethod
    async def increment_attempts(self, record_id: int) -> int:
        """Atomically adds one mismatch and returns the new attempt count."""
        raise NotImplementedError

    @abstractmethod
    async def consume(self, record_id: int, now: datetime, linked_user_id: Optional[int] = None) -> bool:
        """Marks the record terminal and clears its code.

        Returns:
            True if this call consumed the record, False if it was already consumed.
        """
        raise NotImplementedError

    @abstractmethod
    async def supersede_open(self, subject_identity: str, purpose: RecoveryPurpose, now: datetime) -> int:
        """Closes any open record so the next issuance starts from scratch."""
        raise NotImplementedError


class IInvitationRepository(ABC):
    @abstractmethod
    async def get_by_token(self, token: str) -> Optional[Invitation]:
        raise NotImplementedError

    @abstractmethod
    async def get_pending_for_email(self, email: str, now: datetime) -> Optional[Invitation]:
        """Returns an unaccepted, unexpired invitation for the address."""
        raise NotImplementedError

    @abstractmethod
    async def create(self, invitation: Invitation) -> Invitation:
        raise NotImplementedError

    @abstractmethod
    async def mark_accepted(self, invitation_id: int, now: datetime) -> bool:
        raise NotImplementedError

    @abstractmethod
    async def delete(self, invitation_id: int) -> bool:
        """Removes the invitation, detaching any recovery records that point at it."""
        raise NotImplementedError


class IAuditRepository(ABC):
    @abstractmethod
    async def add(self, entry: AuditEntry) -> AuditEntry:
        """Appends an entry. Entries are never updated or deleted."""
        raise NotImplementedError


class IAdminTokenRepository(ABC):
    @abstractmethod
    async def create(self, token: AdminRecoveryToken) -> AdminRecoveryToken:
        raise NotImplementedError

    @abstractmethod
    async def get_by_token(self, token: str) -> Optional[AdminRecoveryToken]:
        raise NotImplementedError

    @abstractmethod
    async def claim(self, token: str, now: datetime) -> bool:
        """Marks an unused, unexpired token as used in one conditional update.

        Returns:
            True if this call claimed the token.
        """
        raise NotImplementedError


class IUserRepository(ABC):
    """Read/write access to accounts, used by the local AuthProvider."""

    @abstractmethod
    async def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    @abstractmethod
    async def create(self, user: User) -> User:
        """Inserts a user.

        Raises:
            DuplicateUserError: If the email is already registered.
        """
        raise NotImplementedError

    @abstractmethod
    async def update_password(self, user_id: int, hashed_password: str, now: datetime) -> bool:
        raise NotImplementedError
