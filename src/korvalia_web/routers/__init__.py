"""
API routers for the Korvalia web front service.
"""

from korvalia_web.routers.admin_router import router as admin_router
from korvalia_web.routers.health_router import router as health_router
from korvalia_web.routers.public_router import router as public_router

__all__ = ["admin_router", "health_router", "public_router"]
