from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime
from sqlmodel import Column, Field, SQLModel, String

from src.utils.clock import utcnow


class AuditEntry(SQLModel, table=True):
    """Append-only record of a security-relevant change.

    Rows are only ever inserted. ``actor_user_id`` is empty when the subject
    acted on their own behalf before authenticating (self-service reset,
    invitation acceptance).
    """

    __tablename__ = "audit_entries"

    id: Optional[int] = Field(default=None, primary_key=True)
    actor_user_id: Optional[int] = Field(default=None, index=True)
    actor_email: Optional[str] = Field(default=None, max_length=254)
    entity_type: str = Field(sa_column=Column(String(50), nullable=False, index=True))
    entity_id: str = Field(sa_column=Column(String(64), nullable=False, index=True))
    action: str = Field(sa_column=Column(String(64), nullable=False))
    field: Optional[str] = Field(default=None, max_length=64)
    old_value: Optional[str] = Field(default=None)
    new_value: Optional[str] = Field(default=None)
    details: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON, nullable=True))
    ip_address: Optional[str] = Field(default=None, max_length=64)
    created_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(DateTime, nullable=False, index=True)
    )
