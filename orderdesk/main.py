"""
FastAPI Production Application

Main entry point for the OrderDesk API.
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from prometheus_client import make_asgi_app
import structlog

from orderdesk.analytics.dashboard import Dashboard
from orderdesk.config import get_settings
from orderdesk.config.logging import configure_logging
from orderdesk.notifications.registry import FeedRegistry
from orderdesk.orders.service import OrderService
from orderdesk.serving.api.middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from orderdesk.serving.api.routes import (
    alerts_router,
    dashboard_router,
    health_router,
    notifications_router,
    orders_router,
)
from orderdesk.store.base import DocumentStore
from orderdesk.store.memory import InMemoryDocumentStore

settings = get_settings()
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    configure_logging()

    logger.info("Starting OrderDesk API", environment=settings.app_env)
    app.state.dashboard.start()

    yield

    logger.info("Shutting down...")
    app.state.feeds.close_all()
    app.state.dashboard.stop()


def create_app(store: Optional[DocumentStore] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        store: Document store backing the dashboard; an in-memory store when omitted

    Returns:
        Configured FastAPI app instance
    """
    app = FastAPI(
        title="OrderDesk API",
        description="Live order dashboard: team metrics and notification feeds",
        version=settings.version,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )

    store = store or InMemoryDocumentStore()
    app.state.store = store
    app.state.dashboard = Dashboard(store)
    app.state.order_service = OrderService(store)
    app.state.feeds = FeedRegistry(store)

    # CORS Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Compression
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    # Custom middleware
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)

    # API routes
    app.include_router(health_router, prefix="/api/v1", tags=["Health"])
    app.include_router(dashboard_router, prefix="/api/v1/dashboard", tags=["Dashboard"])
    app.include_router(orders_router, prefix="/api/v1/orders", tags=["Orders"])
    app.include_router(alerts_router, prefix="/api/v1/alerts", tags=["Alerts"])
    app.include_router(notifications_router, prefix="/api/v1/notifications", tags=["Notifications"])

    if settings.monitoring.enable_metrics:
        app.mount("/metrics", make_asgi_app())

    @app.get("/api/v1/info")
    async def api_info():
        """API information endpoint."""
        return {
            "name": "OrderDesk API",
            "version": settings.version,
            "environment": settings.app_env,
            "documentation": "/docs",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.api_host, port=settings.api_port)
