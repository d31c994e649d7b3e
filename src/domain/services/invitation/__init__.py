from .invitation_service import CreatedInvitation, InvitationService

__all__ = ["CreatedInvitation", "InvitationService"]
