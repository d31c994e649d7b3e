from __future__ import annotations

"""Pydantic types shared by the v1 request and response models."""

from typing import Annotated

from pydantic import BaseModel, Field, StringConstraints

from src.core.config.settings import settings

# ---------------------------------------------------------------------------
# Shared / primitive types ---------------------------------------------------
# ---------------------------------------------------------------------------

PasswordStr = Annotated[
    str,
    StringConstraints(
        min_length=settings.PASSWORD_MIN_LENGTH, max_length=settings.PASSWORD_MAX_LENGTH
    ),
]
VerificationCodeStr = Annotated[str, StringConstraints(pattern=r"^\d{6}$")]
NameStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]


class MessageResponse(BaseModel):
    """Plain acknowledgement.

    Deliberately carries nothing but the message, so two responses for
    different inputs can be byte-identical.
    """

    message: str = Field(..., examples=["Operation completed"])
