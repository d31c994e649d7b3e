"""API v1 router configuration.
"""

from fastapi import APIRouter

from .admin import router as admin_router
from .health import router as health_router
from .invitations import router as invitations_router
from .recovery import router as recovery_router

api_router = APIRouter()

api_router.include_router(health_router, prefix="/health", tags=["health"])
api_router.include_router(recovery_router)
api_router.include_router(invitations_router)
api_router.include_router(admin_router)
