import uuid

from fastapi import APIRouter, Depends, Request, status

from src.adapters.api.v1.recovery.schemas import PasswordResetTokenRequest
from src.adapters.api.v1.schemas import MessageResponse
from src.core.dependencies.language import get_language
from src.core.dependencies.rate_limit import enforce_public_rate_limit
from src.domain.services.password_reset.password_reset_service import PasswordResetService
from src.infrastructure.dependency_injection.recovery_dependencies import (
    get_password_reset_service,
)
from src.utils.client_ip import get_client_ip

router = APIRouter()


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Reset a password with an administrator-issued link",
    dependencies=[Depends(enforce_public_rate_limit)],
    responses={
        400: {"description": "Link expired or already used"},
        404: {"description": "Unknown link"},
    },
)
async def reset_password_with_token(
    request: Request,
    payload: PasswordResetTokenRequest,
    language: str = Depends(get_language),
    service: PasswordResetService = Depends(get_password_reset_service),
) -> MessageResponse:
    result = await service.reset_password_with_token(
        token=payload.token,
        new_password=payload.new_password,
        language=language,
        ip_address=get_client_ip(request),
        correlation_id=str(uuid.uuid4()),
    )
    return MessageResponse(message=result["message"])
