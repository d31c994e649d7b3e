"""Admin API Request and Response Schemas

Pydantic schemas for the SUPER_ADMIN recovery endpoints.
"""

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from src.domain.entities.invitation import Invitation
from src.domain.entities.user import Role


class AdminResetResponse(BaseModel):
    """Response schema for ``POST /admin/users/{id}/reset-password``."""

    message: str = Field(..., description="Operation result message")
    expires_at: datetime = Field(..., description="When the emailed link stops working (UTC)")
    email_sent: bool = Field(..., description="Whether the link was handed to the mail server")


class CreateInvitationRequest(BaseModel):
    """Request schema for ``POST /admin/invitations``."""

    email: EmailStr = Field(..., examples=["new.agent@example.com"])
    role: Role = Field(default=Role.VIEW_ONLY, description="Role granted on acceptance")


class InvitationOut(BaseModel):
    id: int
    email: str
    role: Role
    expires_at: datetime

    @classmethod
    def from_entity(cls, invitation: Invitation) -> "InvitationOut":
        return cls(
            id=invitation.id,
            email=invitation.email,
            role=invitation.role,
            expires_at=invitation.expires_at,
        )


class CreateInvitationResponse(BaseModel):
    invitation: InvitationOut
    message: str = Field(..., description="Operation result message")
