"""
API v1 Router

Aggregates all v1 endpoint routers.
"""

from fastapi import APIRouter

from app.api.v1.endpoints import auth, password_reset

router = APIRouter()

# Include authentication routes
router.include_router(auth.router)

# Include password reset routes
router.include_router(password_reset.router)
