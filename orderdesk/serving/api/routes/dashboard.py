"""
Dashboard API Endpoints

Team metrics derived from the live order and editor snapshot.
"""

from typing import Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel

import structlog

from orderdesk.analytics.dashboard import Dashboard
from orderdesk.analytics.metrics import DerivedMetrics
from orderdesk.domain.models import Viewer
from orderdesk.serving.api.dependencies import get_dashboard, require_team_leader

router = APIRouter()
logger = structlog.get_logger(__name__)


class DashboardResponse(BaseModel):
    """Metrics plus any subscription errors behind them"""
    metrics: DerivedMetrics
    errors: Dict[str, str]


@router.get("/metrics", response_model=DashboardResponse)
async def get_dashboard_metrics(
    viewer: Viewer = Depends(require_team_leader),
    dashboard: Dashboard = Depends(get_dashboard),
) -> DashboardResponse:
    """
    Team and per-editor metrics.

    Recomputed from the current snapshot on every request. When a
    subscription has failed the last-known-good documents are used and the
    error is reported alongside.
    """
    metrics = dashboard.metrics()
    logger.debug("Dashboard metrics served", viewer=viewer.email, total_orders=metrics.team.total_orders)
    return DashboardResponse(metrics=metrics, errors=dashboard.errors)
