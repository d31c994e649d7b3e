from .admin_password_reset_service import AdminPasswordResetService

__all__ = ["AdminPasswordResetService"]
