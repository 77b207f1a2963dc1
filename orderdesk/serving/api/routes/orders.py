"""
Orders API Endpoints

Order board listing, headline counts, status changes and manual alerts.
"""

from datetime import date, datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field
import structlog

from orderdesk.analytics.dashboard import Dashboard
from orderdesk.analytics.order_views import OrderFilter, SortBy
from orderdesk.config import get_settings
from orderdesk.domain.models import OrderStatus, Viewer
from orderdesk.orders.service import (
    AlertDeliveryError,
    OrderAccessError,
    OrderLockedError,
    OrderNotFoundError,
    OrderService,
    StatusUpdateError,
)
from orderdesk.serving.api.dependencies import get_dashboard, get_order_service, get_viewer, require_team_leader

router = APIRouter()
alerts_router = APIRouter()
logger = structlog.get_logger(__name__)
settings = get_settings()


# =============================================================================
# REQUEST/RESPONSE MODELS
# =============================================================================

class OrderSummary(BaseModel):
    """Order as shown on the board"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: Optional[str]
    telecaller: Optional[str]
    status: OrderStatus
    assigned_editor_emails: List[str]
    created_at: Optional[datetime]
    completed_at: Optional[datetime]


class OrderListResponse(BaseModel):
    """Paginated order list"""
    items: List[OrderSummary]
    total: int
    page: int
    page_size: int
    total_pages: int


class BoardSummaryResponse(BaseModel):
    """Headline counts of the order board"""
    pending: int
    completed_today: int


class StatusUpdateRequest(BaseModel):
    """Requested status change"""
    status: OrderStatus


class StatusUpdateResponse(BaseModel):
    """Outcome of a status change request"""
    order_id: str
    status: OrderStatus
    updated: bool


class AlertRequest(BaseModel):
    """Manual alert addressed to one viewer"""
    recipient_email: str = Field(min_length=3)
    order_id: str
    message: str = Field(min_length=1)
    order_name: Optional[str] = None


class AlertResponse(BaseModel):
    alert_id: str


# =============================================================================
# ENDPOINTS
# =============================================================================

@router.get("", response_model=OrderListResponse)
async def list_orders(
    search: Optional[str] = None,
    days: Optional[int] = Query(None, ge=1),
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    sort: SortBy = SortBy.DATE_DESC,
    page: int = Query(0, ge=0),
    page_size: int = Query(settings.dashboard.page_size, ge=1, le=settings.dashboard.max_page_size),
    viewer: Viewer = Depends(get_viewer),
    dashboard: Dashboard = Depends(get_dashboard),
) -> OrderListResponse:
    """
    List the caller's orders with search, date filters, sorting and paging.

    Team leaders see every order; editors see their own assignments. An
    explicit date range overrides ``days``.
    """
    filters = OrderFilter(search=search, window_days=days, start_date=start_date, end_date=end_date)
    result = dashboard.board(viewer, filters=filters, sort_by=sort, page=page, page_size=page_size)

    return OrderListResponse(
        items=[OrderSummary.model_validate(o) for o in result.items],
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )


@router.get("/summary", response_model=BoardSummaryResponse)
async def get_board_summary(
    viewer: Viewer = Depends(get_viewer),
    dashboard: Dashboard = Depends(get_dashboard),
) -> BoardSummaryResponse:
    """Pending orders and orders completed today for the caller"""
    summary = dashboard.summary(viewer)
    return BoardSummaryResponse(pending=summary.pending, completed_today=summary.completed_today)


@router.patch("/{order_id}/status", response_model=StatusUpdateResponse)
async def update_order_status(
    order_id: str,
    body: StatusUpdateRequest,
    viewer: Viewer = Depends(get_viewer),
    service: OrderService = Depends(get_order_service),
) -> StatusUpdateResponse:
    """
    Change an order's status.

    Completed orders are locked. Failures leave dashboard state untouched.
    """
    try:
        updated = service.update_status(order_id, body.status, actor=viewer)
    except OrderNotFoundError:
        raise HTTPException(status_code=404, detail="Order not found")
    except OrderAccessError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except OrderLockedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except StatusUpdateError as e:
        raise HTTPException(status_code=502, detail=str(e))

    return StatusUpdateResponse(order_id=order_id, status=body.status, updated=updated)


@alerts_router.post("", response_model=AlertResponse, status_code=201)
async def send_alert(
    body: AlertRequest,
    viewer: Viewer = Depends(require_team_leader),
    service: OrderService = Depends(get_order_service),
) -> AlertResponse:
    """Push a manual alert into a viewer's notification feed"""
    sender = viewer.display_name or viewer.email
    try:
        alert_id = service.send_alert(
            recipient_email=body.recipient_email,
            order_id=body.order_id,
            sender_name=sender,
            message=body.message,
            order_name=body.order_name,
        )
    except AlertDeliveryError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return AlertResponse(alert_id=alert_id)
