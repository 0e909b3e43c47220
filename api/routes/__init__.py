"""API route modules."""

from .dashboard_routes import router as dashboard_router
from .health_routes import router as health_router
from .inventory_routes import router as inventory_router
from .projects_routes import router as projects_router
from .providers_routes import router as providers_router
from .requests_routes import router as requests_router
from .users_routes import router as users_router

__all__ = [
    "dashboard_router",
    "health_router",
    "inventory_router",
    "projects_router",
    "providers_router",
    "requests_router",
    "users_router",
]
