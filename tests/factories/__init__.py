from __future__ import annotations

"""Re-export factory functions for generating fake test data."""

# flake8: noqa: F401 – re-export

from .recovery import create_fake_admin_token, create_fake_invitation, create_fake_record
from .user import create_fake_user

__all__ = [
    "create_fake_user",
    "create_fake_record",
    "create_fake_invitation",
    "create_fake_admin_token",
]
