"""Core recovery protocol components.

``CodeIssuer`` and ``CodeVerifier`` are shared by every code-based flow and
parameterized by ``RecoveryPurpose``; the purpose-specific parts live in the
outcome appliers.
"""

from .admin_token_issuer import AdminTokenIssuer
from .code_issuer import CodeIssuer
from .code_verifier import CodeVerifier
from .outcome_applier import (
    AppliedOutcome,
    InvitationAcceptApplier,
    InvitationAcceptPayload,
    PasswordResetApplier,
    PasswordResetPayload,
    RecoveryOutcomeApplier,
)

__all__ = [
    "AdminTokenIssuer",
    "AppliedOutcome",
    "CodeIssuer",
    "CodeVerifier",
    "InvitationAcceptApplier",
    "InvitationAcceptPayload",
    "PasswordResetApplier",
    "PasswordResetPayload",
    "RecoveryOutcomeApplier",
]
