from __future__ import annotations

"""Request payloads for the self-service password reset endpoints."""

from pydantic import BaseModel, EmailStr, Field

from src.adapters.api.v1.schemas import PasswordStr, VerificationCodeStr


class PasswordResetRequest(BaseModel):
    """Payload expected by ``POST /recovery/password/request``."""

    email: EmailStr = Field(..., examples=["john@example.com"])


class PasswordResetConfirmRequest(BaseModel):
    """Payload expected by ``POST /recovery/password/confirm``."""

    email: EmailStr = Field(..., examples=["john@example.com"])
    code: VerificationCodeStr = Field(..., examples=["042517"])
    new_password: PasswordStr = Field(..., examples=["NewSecurePass123!"])


class PasswordResetTokenRequest(BaseModel):
    """Payload expected by ``POST /recovery/password/token``."""

    token: str = Field(..., min_length=16, max_length=64, description="Token from the emailed link")
    new_password: PasswordStr = Field(..., examples=["NewSecurePass123!"])
