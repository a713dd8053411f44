# API module - HTTP routers
from .endpoints import router
from .workflows import notifications_router, router as workflows_router

__all__ = ["router", "workflows_router", "notifications_router"]
