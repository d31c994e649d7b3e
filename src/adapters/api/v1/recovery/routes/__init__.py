"""Subpackage aggregating the password recovery route modules."""

__all__ = ["request_code", "confirm", "token"]
