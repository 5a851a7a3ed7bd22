"""Route definitions for the existence-check service.

Uses a factory so importing route modules never loads settings.
"""

from fastapi import APIRouter

from portal.api.routes.check_email_exists import router as check_email_router
from portal.api.routes.health import router as health_router


def create_api_router() -> APIRouter:
    """Create the router with every service route registered."""
    api_router = APIRouter()
    api_router.include_router(health_router, tags=["health"])
    api_router.include_router(check_email_router, tags=["auth"])
    return api_router


__all__ = ["create_api_router"]
