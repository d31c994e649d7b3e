"""Administrator-triggered password reset.

**Security Note**: Only SUPER_ADMIN callers may use this endpoint. The reset
link is mailed to the account's own address and never returned to the
administrator.
"""

from fastapi import APIRouter, Depends, Path, Request, status

from src.adapters.api.v1.admin.schemas import AdminResetResponse
from src.core.dependencies.auth import SuperAdmin
from src.core.dependencies.language import get_language
from src.domain.services.admin.admin_password_reset_service import AdminPasswordResetService
from src.infrastructure.dependency_injection.recovery_dependencies import (
    get_admin_password_reset_service,
)
from src.utils.client_ip import get_client_ip

router = APIRouter()


@router.post(
    "/users/{user_id}/reset-password",
    response_model=AdminResetResponse,
    status_code=status.HTTP_200_OK,
    summary="Email a single-use password reset link to a user",
    responses={
        401: {"description": "Missing or invalid bearer token"},
        403: {"description": "Caller is not a SUPER_ADMIN"},
        404: {"description": "User not found"},
    },
)
async def trigger_password_reset(
    request: Request,
    admin: SuperAdmin,
    user_id: int = Path(..., gt=0),
    language: str = Depends(get_language),
    service: AdminPasswordResetService = Depends(get_admin_password_reset_service),
) -> AdminResetResponse:
    result = await service.trigger_reset(
        admin, user_id, language=language, ip_address=get_client_ip(request)
    )
    return AdminResetResponse(**result)
