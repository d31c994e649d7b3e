from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime, Index, text
from sqlalchemy import Enum as SAEnum
from sqlmodel import Column, Field, SQLModel, String

from src.domain.entities.user import Role
from src.utils.clock import utcnow


class RecoveryPurpose(str, Enum):
    """Which flow a recovery record belongs to."""

    PASSWORD_RESET = "password_reset"
    INVITATION_ACCEPT = "invitation_accept"


class RecoveryRecord(SQLModel, table=True):
    """One outstanding code-based verification attempt.

    There is at most one open record (``consumed_at IS NULL``) per
    ``(subject_identity, purpose)``; the partial unique index below enforces
    it in the database. A consumed record is terminal and carries no code.

    Attributes:
        subject_identity: Normalized email address being verified.
        purpose: Password reset or invitation acceptance.
        linked_user_id: Existing account (password reset) or the account
            created on acceptance (invitation).
        code: Six digit, zero padded code; ``None`` when none is outstanding.
        code_expires_at: The code is invalid at or after this instant.
        attempt_count: Mismatched submissions against the current code.
        issued_count: Codes issued inside the current issuance window.
        window_start: Start of the current issuance window.
        consumed_at: Set once the privileged action committed.
        role: Role an invitation grants.
        invitation_id: Invitation the record verifies.
    """

    __tablename__ = "recovery_records"
    __table_args__ = (
        Index(
            "uq_recovery_records_open_subject",
            "subject_identity",
            "purpose",
            unique=True,
            postgresql_where=text("consumed_at IS NULL"),
            sqlite_where=text("consumed_at IS NULL"),
        ),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    subject_identity: str = Field(sa_column=Column(String(254), nullable=False, index=True))
    purpose: RecoveryPurpose = Field(
        sa_column=Column(
            SAEnum(
                RecoveryPurpose,
                name="recovery_purpose",
                values_callable=lambda purposes: [p.value for p in purposes],
            ),
            nullable=False,
        ),
    )
    linked_user_id: Optional[int] = Field(default=None, foreign_key="users.id")
    code: Optional[str] = Field(default=None, max_length=6)
    code_expires_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime, nullable=True)
    )
    attempt_count: int = Field(default=0, nullable=False)
    issued_count: int = Field(default=0, nullable=False)
    window_start: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime, nullable=False)
    )
    consumed_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime, nullable=True)
    )
    role: Optional[Role] = Field(
        default=None,
        sa_column=Column(
            SAEnum(Role, name="user_role", values_callable=lambda roles: [r.value for r in roles]),
            nullable=True,
        ),
    )
    invitation_id: Optional[int] = Field(default=None, foreign_key="invitations.id")
    created_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime, nullable=False)
    )
    updated_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime, nullable=True)
    )

    def is_locked(self, max_attempts: int) -> bool:
        return self.attempt_count >= max_attempts

    def is_consumed(self) -> bool:
        return self.consumed_at is not None
