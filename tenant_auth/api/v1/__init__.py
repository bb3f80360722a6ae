"""
API v1 Router
"""

from fastapi import APIRouter

from . import auth

router = APIRouter()

router.include_router(auth.router, prefix="/auth", tags=["Authentication"])


@router.get("/", tags=["API"])
async def api_root():
    """API root: returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/auth/register",
            "/auth/login",
            "/auth/refresh",
            "/auth/logout",
        ],
    }
