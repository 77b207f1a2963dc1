"""
API Routes Module
"""
from .dashboard import router as dashboard_router
from .health import router as health_router
from .notifications import router as notifications_router
from .orders import alerts_router
from .orders import router as orders_router

__all__ = [
    "dashboard_router",
    "health_router",
    "notifications_router",
    "alerts_router",
    "orders_router",
]
