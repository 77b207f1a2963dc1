"""
Health Check Endpoints

Liveness and readiness checks for orchestration systems.
"""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel

from orderdesk.analytics.dashboard import Dashboard
from orderdesk.config import get_settings
from orderdesk.serving.api.dependencies import get_dashboard, get_feed_registry
from orderdesk.notifications.registry import FeedRegistry

router = APIRouter()


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    version: str
    environment: str
    timestamp: datetime
    checks: Dict[str, Any]


def _mirror_check(dashboard: Dashboard) -> Dict[str, Any]:
    checks = {}
    for mirror in (dashboard.orders, dashboard.editors):
        if mirror.error is not None:
            checks[mirror.name] = {"status": "unhealthy", "error": str(mirror.error)}
        elif not mirror.ready:
            checks[mirror.name] = {"status": "starting"}
        else:
            checks[mirror.name] = {"status": "healthy", "documents": len(mirror.documents)}
    return checks


@router.get("/health", response_model=HealthResponse)
async def health_check(
    dashboard: Dashboard = Depends(get_dashboard),
    feeds: FeedRegistry = Depends(get_feed_registry),
) -> HealthResponse:
    """
    Comprehensive health check endpoint.

    Checks:
    - Live order and editor subscriptions
    - Open notification feeds
    """
    settings = get_settings()
    checks = _mirror_check(dashboard)
    checks["feeds"] = {"status": "healthy", "active": len(feeds)}

    statuses = {c["status"] for c in checks.values()}
    if "unhealthy" in statuses:
        overall_status = "degraded"
    elif "starting" in statuses:
        overall_status = "starting"
    else:
        overall_status = "healthy"

    return HealthResponse(
        status=overall_status,
        version=settings.version,
        environment=settings.app_env,
        timestamp=datetime.now(timezone.utc),
        checks=checks,
    )


@router.get("/health/live")
async def liveness_check() -> Dict[str, str]:
    """
    Kubernetes liveness probe endpoint.

    Returns 200 if the application is running.
    """
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_check(response: Response, dashboard: Dashboard = Depends(get_dashboard)) -> Dict[str, str]:
    """
    Kubernetes readiness probe endpoint.

    Returns 200 once both live mirrors hold their initial snapshot.
    """
    for mirror in (dashboard.orders, dashboard.editors):
        if mirror.error is not None:
            response.status_code = 503
            return {"status": "not_ready", "reason": f"{mirror.name}_subscription_failed"}
        if not mirror.ready:
            response.status_code = 503
            return {"status": "not_ready", "reason": f"{mirror.name}_loading"}
    return {"status": "ready"}
