from __future__ import annotations

"""Request and response models for the invitee endpoints."""

from pydantic import BaseModel, Field

from src.adapters.api.v1.schemas import NameStr, PasswordStr, VerificationCodeStr
from src.domain.entities.user import Role, User


class AcceptInvitationRequest(BaseModel):
    """Payload expected by ``POST /invitations/{token}/accept``."""

    name: NameStr = Field(..., examples=["Jane Doe"])
    password: PasswordStr = Field(..., examples=["Str0ngP@ssw0rd"])
    verification_code: VerificationCodeStr = Field(..., examples=["042517"])


class SendCodeResponse(BaseModel):
    message: str
    codes_sent: int
    max_codes: int


class AcceptedUserOut(BaseModel):
    """Serialised representation of the account created on acceptance."""

    id: int
    email: str
    name: str | None = None
    role: Role

    @classmethod
    def from_entity(cls, user: User) -> "AcceptedUserOut":
        return cls(id=user.id, email=user.email, name=user.name, role=user.role)


class AcceptInvitationResponse(BaseModel):
    user: AcceptedUserOut
    message: str
