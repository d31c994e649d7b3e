"""SUPER_ADMIN router package."""

from fastapi import APIRouter

from .routes import invitations as invitations_route
from .routes import reset_password as reset_password_route

router = APIRouter(prefix="/admin", tags=["admin"])

router.include_router(reset_password_route.router)
router.include_router(invitations_route.router)

__all__ = ["router"]
