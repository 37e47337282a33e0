"""API routes package."""

from gateway.routes.container_routes import router as container_router
from gateway.routes.object_routes import router as object_router

__all__ = ["container_router", "object_router"]
