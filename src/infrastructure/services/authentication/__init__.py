"""Authentication adapters: local credential store and bearer verification."""

from .access_token_verifier import AccessTokenVerifier
from .local_auth_provider import LocalAuthProvider, build_password_context

__all__ = ["AccessTokenVerifier", "LocalAuthProvider", "build_password_context"]
