from __future__ import annotations

# FastAPI & typing
from typing import Annotated, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

# Project imports
from src.core.exceptions import AuthenticationError, PermissionError
from src.domain.entities.user import Role
from src.domain.value_objects.auth_result import AuthError, AuthResult, Principal, require_role
from src.infrastructure.dependency_injection.recovery_dependencies import get_access_token_verifier
from src.infrastructure.services.authentication import AccessTokenVerifier
from src.utils.i18n import get_request_language, get_translated_message

__all__ = [
    "get_auth_result",
    "get_super_admin",
    "SuperAdmin",
]


# ---------------------------------------------------------------------------
# Type-annotated dependency shortcuts
# ---------------------------------------------------------------------------


BearerCredentials = Annotated[
    Optional[HTTPAuthorizationCredentials], Depends(HTTPBearer(auto_error=False))
]
Verifier = Annotated[AccessTokenVerifier, Depends(get_access_token_verifier)]


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _language(request: Request) -> str:
    return getattr(request.state, "language", None) or get_request_language(request)


def _raise_for_auth_error(request: Request, error: AuthError) -> None:
    """Map the error variant of an ``AuthResult`` to 401 or 403."""
    language = _language(request)
    if error == AuthError.FORBIDDEN:
        raise PermissionError(
            get_translated_message("insufficient_privileges", language),
            code="insufficient_privileges",
        )
    raise AuthenticationError(
        get_translated_message("authentication_required", language),
        code="authentication_required",
    )


# ---------------------------------------------------------------------------
# Public dependencies
# ---------------------------------------------------------------------------


async def get_auth_result(credentials: BearerCredentials, verifier: Verifier) -> AuthResult:
    """Authenticate the bearer token without enforcing any role."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        return AuthResult.failure(AuthError.UNAUTHENTICATED)
    return await verifier.verify(credentials.credentials)


def get_super_admin(
    request: Request, result: Annotated[AuthResult, Depends(get_auth_result)]
) -> Principal:
    """Return the caller if it is an authenticated SUPER_ADMIN."""
    result = require_role(result, Role.SUPER_ADMIN)
    if not result.ok:
        _raise_for_auth_error(request, result.error or AuthError.UNAUTHENTICATED)
    return result.principal


SuperAdmin = Annotated[Principal, Depends(get_super_admin)]
