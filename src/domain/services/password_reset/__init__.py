"""Self-service password reset use cases."""

from .password_reset_request_service import PasswordResetRequestService
from .password_reset_service import PasswordResetService

__all__ = [
    "PasswordResetRequestService",
    "PasswordResetService",
]
