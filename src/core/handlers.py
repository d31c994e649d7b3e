from __future__ import annotations

"""
Global exception handlers for the FastAPI application.

Each application exception family is translated into one HTTP status with
the body ``{"error": <message>, "code": <machine code>}``. Extra fields are
added where the caller needs them (remaining attempts, validation details).
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from structlog import get_logger

from src.core.exceptions import (
    AuthenticationError,
    ConflictError,
    GoneError,
    InternalRecoveryError,
    NotFoundError,
    PermissionError,
    RateLimitExceededError,
    ServDeskError,
    ValidationError,
    VerificationFailedError,
    VerificationLockedError,
)
from src.utils.clock import utcnow
from src.utils.i18n import get_request_language, get_translated_message

__all__ = [
    "validation_error_handler",
    "request_validation_error_handler",
    "verification_failed_error_handler",
    "verification_locked_error_handler",
    "authentication_error_handler",
    "permission_error_handler",
    "not_found_error_handler",
    "conflict_error_handler",
    "gone_error_handler",
    "rate_limit_exceeded_error_handler",
    "internal_recovery_error_handler",
    "servdesk_error_handler",
    "register_exception_handlers",
    "rate_limit_headers",
]

logger = get_logger(__name__)


def _client_host(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def _error_body(exc: ServDeskError, **extra) -> dict:
    body = {"error": exc.message, "code": exc.code}
    body.update(extra)
    return body


def rate_limit_headers(limit, remaining, reset_at) -> dict:
    """Build the `X-RateLimit-*` headers for a limiter decision."""
    headers = {}
    if limit is not None:
        headers["X-RateLimit-Limit"] = str(limit)
    if remaining is not None:
        headers["X-RateLimit-Remaining"] = str(max(remaining, 0))
    if reset_at is not None:
        headers["X-RateLimit-Reset"] = reset_at.isoformat()
    return headers


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handles `ValidationError`, returning a `400 Bad Request` with field detail."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(exc, details=exc.details),
    )


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handles FastAPI body/path validation failures as `400 Bad Request`.

    The input values are dropped from the reported details so passwords and
    codes are never echoed back.
    """
    locale = get_request_language(request)
    details = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", ""),
        }
        for error in exc.errors()
    ]
    logger.info(
        "request_validation_failed",
        path=request.url.path,
        fields=[detail["field"] for detail in details],
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": get_translated_message("validation_failed", locale),
            "code": "validation_error",
            "details": details,
        },
    )


async def verification_failed_error_handler(
    request: Request, exc: VerificationFailedError
) -> JSONResponse:
    """Handles `VerificationFailedError`, returning a `400 Bad Request`.

    A mismatch includes the number of attempts left before lockout.
    """
    extra = {}
    if exc.remaining_attempts is not None:
        extra["remaining_attempts"] = exc.remaining_attempts
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(exc, **extra),
    )


async def verification_locked_error_handler(
    request: Request, exc: VerificationLockedError
) -> JSONResponse:
    """Handles `VerificationLockedError`, returning a `423 Locked`."""
    logger.warning(
        "verification_locked",
        client_ip=_client_host(request),
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status.HTTP_423_LOCKED,
        content=_error_body(exc),
    )


async def authentication_error_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
    """Handles `AuthenticationError`, returning a `401 Unauthorized`."""
    logger.warning(
        "Authentication failure",
        error=exc.code,
        client_ip=_client_host(request),
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content=_error_body(exc),
        headers={"WWW-Authenticate": "Bearer"},
    )


async def permission_error_handler(request: Request, exc: PermissionError) -> JSONResponse:
    """Handles `PermissionError`, returning a `403 Forbidden`."""
    logger.warning(
        "Permission denied",
        error=exc.code,
        client_ip=_client_host(request),
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status.HTTP_403_FORBIDDEN,
        content=_error_body(exc),
    )


async def not_found_error_handler(request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=_error_body(exc))


async def conflict_error_handler(request: Request, exc: ConflictError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=_error_body(exc))


async def gone_error_handler(request: Request, exc: GoneError) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_410_GONE, content=_error_body(exc))


async def rate_limit_exceeded_error_handler(
    request: Request, exc: RateLimitExceededError
) -> JSONResponse:
    """Handles `RateLimitExceededError`, returning a `429 Too Many Requests`.

    Limiter-originated errors carry window figures that become the
    `X-RateLimit-*` and `Retry-After` headers.
    """
    logger.warning(
        "rate_limit_exceeded",
        client_ip=_client_host(request),
        path=request.url.path,
        error_code=exc.code,
    )
    headers = rate_limit_headers(exc.limit, exc.remaining, exc.reset_at)
    if exc.reset_at is not None:
        retry_after = max(int((exc.reset_at - utcnow()).total_seconds()), 0)
        headers["Retry-After"] = str(retry_after)
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=_error_body(exc),
        headers=headers,
    )


async def internal_recovery_error_handler(
    request: Request, exc: InternalRecoveryError
) -> JSONResponse:
    """Handles `InternalRecoveryError`, returning a generic `500`."""
    logger.error(
        "recovery_internal_error",
        error_code=exc.code,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": get_translated_message("internal_error", get_request_language(request)),
                 "code": exc.code},
    )


async def servdesk_error_handler(request: Request, exc: ServDeskError) -> JSONResponse:
    """Handles the base `ServDeskError`, returning a `500 Internal Server Error`.

    Fallback for application errors without a more specific handler.
    """
    logger.error(
        "An unhandled application error occurred",
        error_code=exc.code,
        error_message=exc.message,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": get_translated_message("internal_error", get_request_language(request)),
                 "code": "internal_error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Registers all custom exception handlers with the FastAPI application.

    Starlette resolves handlers by walking the exception's MRO, so each
    subclass reaches the handler of its nearest registered ancestor.
    """
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(VerificationFailedError, verification_failed_error_handler)
    app.add_exception_handler(VerificationLockedError, verification_locked_error_handler)
    app.add_exception_handler(AuthenticationError, authentication_error_handler)
    app.add_exception_handler(PermissionError, permission_error_handler)
    app.add_exception_handler(NotFoundError, not_found_error_handler)
    app.add_exception_handler(ConflictError, conflict_error_handler)
    app.add_exception_handler(GoneError, gone_error_handler)
    app.add_exception_handler(RateLimitExceededError, rate_limit_exceeded_error_handler)
    app.add_exception_handler(InternalRecoveryError, internal_recovery_error_handler)
    app.add_exception_handler(ServDeskError, servdesk_error_handler)
