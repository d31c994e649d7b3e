"""Domain services for account recovery and invitations.

- recovery: CodeIssuer, CodeVerifier, outcome appliers, AdminTokenIssuer
- audit: AuditRecorder
- password_reset: self-service reset request and confirmation
- invitation: invitation creation, code sending and acceptance
- admin: administrator-triggered reset links

Import from the subpackages directly.
"""
