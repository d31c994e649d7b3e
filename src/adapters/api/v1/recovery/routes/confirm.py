import uuid

import structlog
from fastapi import APIRouter, Depends, Request, status

from src.adapters.api.v1.recovery.schemas import PasswordResetConfirmRequest
from src.adapters.api.v1.schemas import MessageResponse
from src.core.dependencies.language import get_language
from src.domain.services.password_reset.password_reset_service import PasswordResetService
from src.infrastructure.dependency_injection.recovery_dependencies import (
    get_password_reset_service,
)
from src.utils.client_ip import get_client_ip

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Reset a password with an emailed code",
    responses={
        400: {"description": "Invalid, expired or missing code (mismatches report remaining attempts)"},
        404: {"description": "The account no longer exists"},
        423: {"description": "Too many wrong codes; request a new one"},
    },
)
async def confirm_password_reset(
    request: Request,
    payload: PasswordResetConfirmRequest,
    language: str = Depends(get_language),
    service: PasswordResetService = Depends(get_password_reset_service),
) -> MessageResponse:
    """Verify the code and replace the password.

    The code is consumed only once the new password is stored.
    """
    correlation_id = str(uuid.uuid4())
    client_ip = get_client_ip(request)
    logger.bind(correlation_id=correlation_id, client_ip=client_ip).info("password_reset_confirm_received")

    result = await service.reset_password(
        email=payload.email,
        code=payload.code,
        new_password=payload.new_password,
        language=language,
        ip_address=client_ip,
        correlation_id=correlation_id,
    )
    return MessageResponse(message=result["message"])
