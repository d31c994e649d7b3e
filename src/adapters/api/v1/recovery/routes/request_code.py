"""Anonymous entry point of the self-service reset.

The response is the same for known and unknown addresses, including when
the per-identity issuance budget is spent; only the per-IP limit in front
of the endpoint is ever visible to the caller.
"""

import uuid

import structlog
from fastapi import APIRouter, Depends, Request, status

from src.adapters.api.v1.recovery.schemas import PasswordResetRequest
from src.adapters.api.v1.schemas import MessageResponse
from src.core.dependencies.language import get_language
from src.core.dependencies.rate_limit import enforce_public_rate_limit
from src.domain.services.password_reset.password_reset_request_service import (
    PasswordResetRequestService,
)
from src.infrastructure.dependency_injection.recovery_dependencies import (
    get_password_reset_request_service,
)
from src.utils.client_ip import get_client_ip

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_200_OK,
    summary="Request a password reset code",
    dependencies=[Depends(enforce_public_rate_limit)],
    responses={
        200: {"description": "Generic acknowledgement, identical for every address"},
        400: {"description": "Malformed email address"},
        429: {"description": "Too many requests from this address"},
    },
)
async def request_password_reset(
    request: Request,
    payload: PasswordResetRequest,
    language: str = Depends(get_language),
    service: PasswordResetRequestService = Depends(get_password_reset_request_service),
) -> MessageResponse:
    correlation_id = str(uuid.uuid4())
    client_ip = get_client_ip(request)
    logger.bind(correlation_id=correlation_id, client_ip=client_ip).info("password_reset_request_received")

    result = await service.request_password_reset(
        email=payload.email,
        language=language,
        ip_address=client_ip,
        correlation_id=correlation_id,
    )
    return MessageResponse(message=result["message"])
