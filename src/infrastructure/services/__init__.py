"""Infrastructure Services.

Concrete implementations of the domain ports that talk to external systems.

Service Categories:
- Authentication: local credential store and bearer token verification
- Email: templated delivery of codes, invitations and reset links
"""

from .authentication import AccessTokenVerifier, LocalAuthProvider
from .email import EmailNotifier

__all__ = [
    "AccessTokenVerifier",
    "EmailNotifier",
    "LocalAuthProvider",
]
