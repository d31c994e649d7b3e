from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import DateTime
from sqlalchemy import Enum as SAEnum
from sqlmodel import Column, Field, SQLModel, String

from src.utils.clock import utcnow


class Role(str, Enum):
    """Roles a ServDesk account can hold.

    Only SUPER_ADMIN may trigger administrator password resets and send
    invitations.
    """

    SUPER_ADMIN = "SUPER_ADMIN"
    ADMIN = "ADMIN"
    VIEW_ONLY = "VIEW_ONLY"


class User(SQLModel, table=True):
    """An account owned by the authentication provider.

    The recovery protocol only reads identity fields and asks the provider to
    replace ``hashed_password`` or create new rows; it never hashes anything
    itself.

    Attributes:
        id: Primary key.
        email: Unique, normalized (lower-cased) email address.
        name: Display name.
        hashed_password: Credential hash in the provider's own format.
        role: Role used for privileged endpoints.
        is_active: Inactive accounts are treated as absent for recovery.
        password_changed_at: Stamped on every password replacement.
    """

    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(
        sa_column=Column(String(254), unique=True, index=True, nullable=False),
    )
    name: Optional[str] = Field(default=None, max_length=100)
    hashed_password: Optional[str] = Field(default=None, max_length=255)
    role: Role = Field(
        default=Role.VIEW_ONLY,
        sa_column=Column(
            SAEnum(Role, name="user_role", values_callable=lambda roles: [r.value for r in roles]),
            nullable=False,
        ),
    )
    is_active: bool = Field(default=True)
    password_changed_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime, nullable=True)
    )
    created_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime, nullable=False)
    )
    updated_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime, nullable=True)
    )
