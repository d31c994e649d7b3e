"""Invitee router package."""

from fastapi import APIRouter

from .routes import accept as accept_route
from .routes import send_code as send_code_route

router = APIRouter(prefix="/invitations", tags=["invitations"])

router.include_router(send_code_route.router)
router.include_router(accept_route.router)

__all__ = ["router"]
