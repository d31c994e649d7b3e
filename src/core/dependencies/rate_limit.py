"""Per-IP limiting for the anonymous recovery endpoints."""

from typing import Annotated

from fastapi import Depends, Request, Response
from structlog import get_logger

from src.core.config.settings import settings
from src.core.exceptions import RateLimitExceededError
from src.core.handlers import rate_limit_headers
from src.domain.interfaces.rate_limiter import IRateLimiter
from src.infrastructure.dependency_injection.recovery_dependencies import get_rate_limiter
from src.utils.client_ip import rate_limit_key
from src.utils.i18n import get_request_language, get_translated_message

logger = get_logger(__name__)


async def enforce_public_rate_limit(
    request: Request,
    response: Response,
    limiter: Annotated[IRateLimiter, Depends(get_rate_limiter)],
) -> None:
    """Count the request against the caller's address.

    Allowed responses carry the ``X-RateLimit-*`` headers; refused ones are
    turned into a 429 by the ``RateLimitExceededError`` handler.
    """
    if not settings.RATE_LIMIT_ENABLED:
        return

    decision = await limiter.check(
        rate_limit_key(request),
        settings.PUBLIC_RATE_LIMIT_REQUESTS,
        settings.PUBLIC_RATE_LIMIT_WINDOW_MS,
    )
    if not decision.allowed:
        language = getattr(request.state, "language", None) or get_request_language(request)
        raise RateLimitExceededError(
            get_translated_message("too_many_requests", language),
            limit=decision.limit,
            remaining=decision.remaining,
            reset_at=decision.reset_at,
        )

    response.headers.update(rate_limit_headers(decision.limit, decision.remaining, decision.reset_at))
