"""
Notification API Endpoints

The caller's live notification feed and its read/clear actions.
"""

from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel

from orderdesk.domain.models import Notification, Viewer
from orderdesk.notifications.feed import FeedState, NotificationFeed
from orderdesk.notifications.registry import FeedRegistry
from orderdesk.serving.api.dependencies import get_feed, get_feed_registry, get_viewer

router = APIRouter()


class FeedResponse(BaseModel):
    """Notification feed view"""
    notifications: List[Notification]
    unread_count: int
    state: FeedState
    errors: Dict[str, str]


class SelectionResponse(BaseModel):
    order_id: str


def _render(feed: NotificationFeed) -> FeedResponse:
    snapshot = feed.snapshot()
    return FeedResponse(
        notifications=snapshot.notifications,
        unread_count=snapshot.unread_count,
        state=snapshot.state,
        errors=snapshot.errors,
    )


@router.get("", response_model=FeedResponse)
async def get_notifications(full_page: bool = False, feed: NotificationFeed = Depends(get_feed)) -> FeedResponse:
    """
    Notifications newest first with the unread count.

    ``full_page=true`` marks the full notification page as on screen, which
    keeps the unread count at zero.
    """
    feed.set_full_page(full_page)
    return _render(feed)


@router.post("/open", response_model=FeedResponse)
async def open_feed(feed: NotificationFeed = Depends(get_feed)) -> FeedResponse:
    """Open the notification menu and mark everything read"""
    feed.open_feed()
    return _render(feed)


@router.post("/close", response_model=FeedResponse)
async def close_feed(feed: NotificationFeed = Depends(get_feed)) -> FeedResponse:
    feed.close_feed()
    return _render(feed)


@router.post("/clear", response_model=FeedResponse)
async def clear_feed(feed: NotificationFeed = Depends(get_feed)) -> FeedResponse:
    """Remove every notification and reset the unread count"""
    feed.clear_feed()
    return _render(feed)


@router.post("/{notification_id}/select", response_model=SelectionResponse)
async def select_notification(notification_id: str, feed: NotificationFeed = Depends(get_feed)) -> SelectionResponse:
    """Resolve a notification to the order it refers to"""
    order_id = feed.select_notification(notification_id)
    if order_id is None:
        raise HTTPException(status_code=404, detail="Notification not found")
    return SelectionResponse(order_id=order_id)


@router.delete("/session", status_code=204)
async def end_session(
    viewer: Viewer = Depends(get_viewer),
    feeds: FeedRegistry = Depends(get_feed_registry),
) -> Response:
    """Tear down the caller's feed and its subscriptions"""
    feeds.release(viewer.email)
    return Response(status_code=204)
