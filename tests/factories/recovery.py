"""Factories for recovery records, invitations and admin reset tokens."""

import secrets
from datetime import datetime, timedelta
from typing import Optional

from faker import Faker

from src.domain.entities.admin_recovery_token import AdminRecoveryToken
from src.domain.entities.invitation import Invitation
from src.domain.entities.recovery_record import RecoveryPurpose, RecoveryRecord
from src.domain.entities.user import Role
from src.utils.clock import utcnow

fake = Faker()


def create_fake_record(
    id: Optional[int] = None,
    subject_identity: Optional[str] = None,
    purpose: RecoveryPurpose = RecoveryPurpose.PASSWORD_RESET,
    code: Optional[str] = "042517",
    code_expires_at: Optional[datetime] = None,
    attempt_count: int = 0,
    issued_count: int = 1,
    window_start: Optional[datetime] = None,
    linked_user_id: Optional[int] = None,
    role: Optional[Role] = None,
    invitation_id: Optional[int] = None,
    now: Optional[datetime] = None,
) -> RecoveryRecord:
    """Create an open recovery record with one outstanding code by default."""
    now = now or utcnow()
    return RecoveryRecord(
        id=id,
        subject_identity=subject_identity or fake.email().lower(),
        purpose=purpose,
        code=code,
        code_expires_at=code_expires_at if code_expires_at is not None else now + timedelta(minutes=10),
        attempt_count=attempt_count,
        issued_count=issued_count,
        window_start=window_start or now,
        linked_user_id=linked_user_id,
        role=role,
        invitation_id=invitation_id,
        created_at=now,
    )


def create_fake_invitation(
    id: Optional[int] = None,
    email: Optional[str] = None,
    role: Role = Role.ADMIN,
    token: Optional[str] = None,
    invited_by_id: Optional[int] = None,
    expires_at: Optional[datetime] = None,
    accepted_at: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> Invitation:
    now = now or utcnow()
    return Invitation(
        id=id,
        token=token or secrets.token_urlsafe(32),
        email=email or fake.email().lower(),
        role=role,
        invited_by_id=invited_by_id,
        expires_at=expires_at or now + timedelta(days=7),
        accepted_at=accepted_at,
        created_at=now,
    )


def create_fake_admin_token(
    user_id: int,
    id: Optional[int] = None,
    token: Optional[str] = None,
    created_by_id: Optional[int] = None,
    expires_at: Optional[datetime] = None,
    used_at: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> AdminRecoveryToken:
    now = now or utcnow()
    return AdminRecoveryToken(
        id=id,
        token=token or secrets.token_urlsafe(32),
        user_id=user_id,
        created_by_id=created_by_id,
        expires_at=expires_at or now + timedelta(hours=1),
        used_at=used_at,
        created_at=now,
    )
