"""Middleware configuration for the FastAPI application.

Registers CORS and the per-request language selection. Rate limiting is a
route dependency on the anonymous endpoints, not a middleware.
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from src.core.config.settings import settings
from src.utils.i18n import get_request_language


def configure_middleware(app: FastAPI) -> None:
    """Configure all middleware for the FastAPI application.

    Args:
        app (FastAPI): The FastAPI application instance
    """
    # CORS middleware configuration
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "X-RateLimit-Limit",
            "X-RateLimit-Remaining",
            "X-RateLimit-Reset",
            "Retry-After",
        ],
    )

    # Language middleware
    app.middleware("http")(set_language_middleware)


async def set_language_middleware(request: Request, call_next):
    """Pick the response language from ``?lang=`` or ``Accept-Language``.

    The choice is stored on ``request.state.language`` for handlers and
    echoed in the ``Content-Language`` response header.
    """
    lang = get_request_language(request)
    request.state.language = lang
    response = await call_next(request)
    response.headers["Content-Language"] = lang
    return response
