import uuid

import structlog
from fastapi import APIRouter, Depends, Path, Request, status

from src.adapters.api.v1.invitations.schemas import (
    AcceptedUserOut,
    AcceptInvitationRequest,
    AcceptInvitationResponse,
)
from src.core.dependencies.language import get_language
from src.domain.services.invitation.invitation_service import InvitationService
from src.infrastructure.dependency_injection.recovery_dependencies import get_invitation_service
from src.utils.client_ip import get_client_ip
from src.utils.i18n import get_translated_message

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post(
    "/{token}/accept",
    response_model=AcceptInvitationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Accept an invitation and create the account",
    responses={
        400: {"description": "Invalid, expired or missing code"},
        404: {"description": "Unknown invitation"},
        409: {"description": "An account with this email already exists"},
        410: {"description": "Invitation already accepted or expired"},
        423: {"description": "Too many wrong codes; request a new one"},
    },
)
async def accept_invitation(
    request: Request,
    payload: AcceptInvitationRequest,
    token: str = Path(..., min_length=1, max_length=64),
    language: str = Depends(get_language),
    service: InvitationService = Depends(get_invitation_service),
) -> AcceptInvitationResponse:
    correlation_id = str(uuid.uuid4())
    user = await service.accept(
        token,
        name=payload.name,
        password=payload.password,
        verification_code=payload.verification_code,
        language=language,
        ip_address=get_client_ip(request),
        correlation_id=correlation_id,
    )
    return AcceptInvitationResponse(
        user=AcceptedUserOut.from_entity(user),
        message=get_translated_message("account_created", language),
    )
