from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlalchemy import Enum as SAEnum
from sqlmodel import Column, Field, SQLModel, String

from src.domain.entities.user import Role
from src.utils.clock import utcnow


class Invitation(SQLModel, table=True):
    """An administrator's invitation for a new account.

    The token is unguessable, so its lifecycle (unknown, accepted, expired)
    is reported to callers as is.
    """

    __tablename__ = "invitations"

    id: Optional[int] = Field(default=None, primary_key=True)
    token: str = Field(sa_column=Column(String(64), unique=True, index=True, nullable=False))
    email: str = Field(sa_column=Column(String(254), index=True, nullable=False))
    role: Role = Field(
        sa_column=Column(
            SAEnum(Role, name="user_role", values_callable=lambda roles: [r.value for r in roles]),
            nullable=False,
        ),
    )
    invited_by_id: Optional[int] = Field(default=None, foreign_key="users.id")
    expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))
    accepted_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime, nullable=True)
    )
    created_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime, nullable=False)
    )

    def is_accepted(self) -> bool:
        return self.accepted_at is not None

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at
