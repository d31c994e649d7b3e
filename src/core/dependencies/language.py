from fastapi import Request

from src.utils.i18n import get_request_language


def get_language(request: Request) -> str:
    """Language chosen by the language middleware for this request."""
    return getattr(request.state, "language", None) or get_request_language(request)
