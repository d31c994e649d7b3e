"""Code delivery for invitees.

The invitee proves possession of the unguessable invitation token, so the
issuance outcome (sent, locked, out of budget) is reported as is.
"""

import structlog
from fastapi import APIRouter, Depends, Path, status

from src.adapters.api.v1.invitations.schemas import SendCodeResponse
from src.core.dependencies.language import get_language
from src.domain.services.invitation.invitation_service import InvitationService
from src.infrastructure.dependency_injection.recovery_dependencies import get_invitation_service

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post(
    "/{token}/send-code",
    response_model=SendCodeResponse,
    status_code=status.HTTP_200_OK,
    summary="Email a verification code for an invitation",
    responses={
        404: {"description": "Unknown invitation"},
        410: {"description": "Invitation already accepted or expired"},
        423: {"description": "Too many wrong codes and no codes left in the window"},
        429: {"description": "Maximum number of codes sent for this window"},
    },
)
async def send_invitation_code(
    token: str = Path(..., min_length=1, max_length=64),
    language: str = Depends(get_language),
    service: InvitationService = Depends(get_invitation_service),
) -> SendCodeResponse:
    result = await service.send_code(token, language)
    return SendCodeResponse(**result)
