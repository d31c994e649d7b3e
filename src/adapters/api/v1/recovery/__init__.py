"""Password recovery router package."""

from fastapi import APIRouter

from .routes import confirm as confirm_route
from .routes import request_code as request_code_route
from .routes import token as token_route

router = APIRouter(prefix="/recovery/password", tags=["recovery"])

router.include_router(request_code_route.router, prefix="/request")
router.include_router(confirm_route.router, prefix="/confirm")
router.include_router(token_route.router, prefix="/token")

__all__ = ["router"]
