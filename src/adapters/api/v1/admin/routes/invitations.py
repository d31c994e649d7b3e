from fastapi import APIRouter, Depends, Request, status

from src.adapters.api.v1.admin.schemas import (
    CreateInvitationRequest,
    CreateInvitationResponse,
    InvitationOut,
)
from src.adapters.api.v1.schemas import MessageResponse
from src.core.dependencies.auth import SuperAdmin
from src.core.dependencies.language import get_language
from src.domain.services.invitation.invitation_service import InvitationService
from src.infrastructure.dependency_injection.recovery_dependencies import get_invitation_service
from src.utils.client_ip import get_client_ip
from src.utils.i18n import get_translated_message

router = APIRouter()


@router.post(
    "/invitations",
    response_model=CreateInvitationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Invite a new user",
    responses={
        401: {"description": "Missing or invalid bearer token"},
        403: {"description": "Caller is not a SUPER_ADMIN"},
        409: {"description": "User exists or an invitation is pending"},
    },
)
async def create_invitation(
    request: Request,
    payload: CreateInvitationRequest,
    admin: SuperAdmin,
    language: str = Depends(get_language),
    service: InvitationService = Depends(get_invitation_service),
) -> CreateInvitationResponse:
    created = await service.create_invitation(
        admin,
        payload.email,
        payload.role,
        language=language,
        ip_address=get_client_ip(request),
    )
    return CreateInvitationResponse(
        invitation=InvitationOut.from_entity(created.invitation),
        message=get_translated_message("invitation_created", language),
    )


@router.delete(
    "/invitations/{token}",
    response_model=MessageResponse,
    summary="Cancel a pending invitation",
    responses={
        401: {"description": "Missing or invalid bearer token"},
        403: {"description": "Caller is not a SUPER_ADMIN"},
        404: {"description": "Unknown invitation"},
        410: {"description": "Invitation already accepted"},
    },
)
async def cancel_invitation(
    request: Request,
    token: str,
    admin: SuperAdmin,
    language: str = Depends(get_language),
    service: InvitationService = Depends(get_invitation_service),
) -> MessageResponse:
    await service.cancel(admin, token, language=language, ip_address=get_client_ip(request))
    return MessageResponse(message=get_translated_message("invitation_cancelled", language))


@router.post(
    "/invitations/{token}/resend",
    response_model=MessageResponse,
    summary="Resend an invitation email",
    responses={
        401: {"description": "Missing or invalid bearer token"},
        403: {"description": "Caller is not a SUPER_ADMIN"},
        404: {"description": "Unknown invitation"},
        410: {"description": "Invitation accepted or expired"},
        500: {"description": "Email could not be sent"},
    },
)
async def resend_invitation(
    request: Request,
    token: str,
    admin: SuperAdmin,
    language: str = Depends(get_language),
    service: InvitationService = Depends(get_invitation_service),
) -> MessageResponse:
    await service.resend(admin, token, language=language, ip_address=get_client_ip(request))
    return MessageResponse(message=get_translated_message("invitation_resent", language))
