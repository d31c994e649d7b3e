from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Column, Field, SQLModel, String

from src.utils.clock import utcnow


class AdminRecoveryToken(SQLModel, table=True):
    """Single-use password reset link created by an administrator.

    There is no attempt counter: the token is high entropy and only ever
    mailed to the account's verified address.
    """

    __tablename__ = "admin_recovery_tokens"

    id: Optional[int] = Field(default=None, primary_key=True)
    token: str = Field(sa_column=Column(String(64), unique=True, index=True, nullable=False))
    user_id: int = Field(foreign_key="users.id", index=True)
    created_by_id: Optional[int] = Field(default=None, foreign_key="users.id")
    expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))
    used_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime, nullable=True))
    created_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime, nullable=False)
    )
