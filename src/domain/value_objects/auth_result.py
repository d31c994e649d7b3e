"""Typed result of authenticating a privileged caller.

Role checks return values instead of raising so every branch of the
administrator endpoints is explicit; the route layer turns the error
variant into 401 or 403.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from src.domain.entities.user import Role


class AuthError(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"


@dataclass(frozen=True)
class Principal:
    user_id: int
    email: str
    role: Role


@dataclass(frozen=True)
class AuthResult:
    principal: Optional[Principal] = None
    error: Optional[AuthError] = None

    @property
    def ok(self) -> bool:
        return self.principal is not None and self.error is None

    @classmethod
    def success(cls, principal: Principal) -> "AuthResult":
        return cls(principal=principal)

    @classmethod
    def failure(cls, error: AuthError) -> "AuthResult":
        return cls(error=error)


def require_role(result: AuthResult, *roles: Role) -> AuthResult:
    """Narrow a successful result to callers holding one of ``roles``."""
    if not result.ok:
        return result
    if result.principal.role not in roles:
        return AuthResult.failure(AuthError.FORBIDDEN)
    return result
