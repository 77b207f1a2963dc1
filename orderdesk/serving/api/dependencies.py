"""
Request Dependencies

Viewer identity comes from headers set by the authenticating front end;
shared services live on ``app.state``.
"""

from typing import Optional

from fastapi import Depends, Header, HTTPException, Request

from orderdesk.analytics.dashboard import Dashboard
from orderdesk.domain.models import UserRole, Viewer
from orderdesk.notifications.feed import NotificationFeed
from orderdesk.notifications.registry import FeedRegistry
from orderdesk.orders.service import OrderService


def get_viewer(
    x_user_email: Optional[str] = Header(default=None),
    x_user_role: UserRole = Header(default=UserRole.EDITOR),
    x_user_name: Optional[str] = Header(default=None),
) -> Viewer:
    """Identity of the caller"""
    if not x_user_email:
        raise HTTPException(status_code=401, detail="Missing X-User-Email header")
    return Viewer(email=x_user_email, role=x_user_role, display_name=x_user_name)


def require_team_leader(viewer: Viewer = Depends(get_viewer)) -> Viewer:
    if not viewer.is_team_leader:
        raise HTTPException(status_code=403, detail="Team leader access required")
    return viewer


def get_dashboard(request: Request) -> Dashboard:
    return request.app.state.dashboard


def get_order_service(request: Request) -> OrderService:
    return request.app.state.order_service


def get_feed_registry(request: Request) -> FeedRegistry:
    return request.app.state.feeds


def get_feed(
    viewer: Viewer = Depends(get_viewer),
    feeds: FeedRegistry = Depends(get_feed_registry),
) -> NotificationFeed:
    """The caller's live feed, started on first use"""
    return feeds.feed_for(viewer)
