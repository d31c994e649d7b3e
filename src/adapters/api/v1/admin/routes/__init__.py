"""Subpackage aggregating the admin route modules."""

__all__ = ["reset_password", "invitations"]
