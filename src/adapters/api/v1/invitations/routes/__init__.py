"""Subpackage aggregating the invitee route modules."""

__all__ = ["send_code", "accept"]
