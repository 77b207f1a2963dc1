"""
Notification Feed

Merges two live sources into one per-viewer notification feed:

- the order stream: changes to the orders the viewer can see
- the alert stream: manual alerts addressed to the viewer

Lifecycle:
    uninitialized -> skipping_initial_snapshot -> live -> torn_down

The order stream always opens with a snapshot of every existing order tagged
as added. That first batch is dropped; otherwise each page load would announce
every pre-existing order. The alert stream has no such suppression.

Subscription callbacks only enqueue messages. A single drain loop applies
them in arrival order, one whole batch at a time, so a callback that fires
while another batch is being applied waits its turn instead of interleaving.
"""

import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Deque, Dict, List, Optional, Tuple, Union
import uuid

import structlog

from orderdesk.config import get_settings
from orderdesk.domain.models import Notification, NotificationType, OrderStatus, Viewer, coerce_instant
from orderdesk.monitoring import ACTIVE_FEEDS, BATCHES_RECEIVED, NOTIFICATIONS_PRODUCED, SUBSCRIPTION_ERRORS
from orderdesk.store.base import (
    ChangeBatch,
    ChangeKind,
    DocumentChange,
    DocumentStore,
    FieldFilter,
    FilterOp,
    OrderBy,
    Subscription,
    SubscriptionError,
)

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


class FeedState(str, Enum):
    """Subscription lifecycle of a feed"""
    UNINITIALIZED = "uninitialized"
    SKIPPING_INITIAL_SNAPSHOT = "skipping_initial_snapshot"
    LIVE = "live"
    TORN_DOWN = "torn_down"


class FeedSource(str, Enum):
    """Streams feeding the notification list"""
    ORDERS = "orders"
    ALERTS = "alerts"


@dataclass(frozen=True)
class FeedSnapshot:
    """Read-only view handed to the consumer"""
    notifications: List[Notification]
    unread_count: int
    state: FeedState
    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def has_error(self) -> bool:
        return bool(self.errors)


@dataclass(frozen=True)
class _Message:
    generation: int
    source: FeedSource
    payload: Union[ChangeBatch, Exception]


# =============================================================================
# CLASSIFICATION
# =============================================================================

def classify_order_change(
    change: DocumentChange,
    is_team_leader: bool,
) -> Optional[Tuple[NotificationType, str]]:
    """
    Map a live order change to a notification type and title.

    Removals produce nothing.
    """
    if change.kind == ChangeKind.ADDED:
        title = "New Order Assigned" if is_team_leader else "New Order Assigned by Team Leader"
        return NotificationType.ASSIGNED, title

    if change.kind == ChangeKind.MODIFIED:
        status = change.data.get("status")
        if status == OrderStatus.COMPLETED.value:
            return NotificationType.COMPLETED, "Order Completed"
        if status == OrderStatus.IN_PROGRESS.value:
            return NotificationType.ACCEPTED, "Order Accepted"
        title = "Order Details Updated" if is_team_leader else "Order Details Updated by Team Leader"
        return NotificationType.UPDATE, title

    return None


def _alert_type(raw: Optional[str]) -> NotificationType:
    try:
        return NotificationType(raw)
    except ValueError:
        return NotificationType.DANGER


# =============================================================================
# FEED
# =============================================================================

class NotificationFeed:
    """
    Live notification feed for one viewer.

    Example:
        feed = NotificationFeed(store)
        feed.start(Viewer(email="ed@example.com", role="editor"))
        feed.snapshot().unread_count
        feed.open_feed()
        feed.stop()
    """

    def __init__(
        self,
        store: DocumentStore,
        clock: Optional[Clock] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        settings = get_settings()
        self.store = store
        self.orders_collection = settings.store.orders_collection
        self.alerts_collection = settings.store.alerts_collection

        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._new_id = id_factory or (lambda: uuid.uuid4().hex)

        self._lock = threading.RLock()
        self._viewer: Optional[Viewer] = None
        self._state = FeedState.UNINITIALIZED
        self._generation = 0
        self._subscriptions: Dict[FeedSource, Subscription] = {}

        self._items: List[Notification] = []
        self._unread = 0
        self._errors: Dict[str, str] = {}
        self._menu_open = False
        self._full_page = False

        self._inbox: Deque[_Message] = deque()
        self._draining = False

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def viewer(self) -> Optional[Viewer]:
        return self._viewer

    @property
    def state(self) -> FeedState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state in (FeedState.SKIPPING_INITIAL_SNAPSHOT, FeedState.LIVE)

    def start(self, viewer: Viewer) -> None:
        """
        Subscribe both streams for a viewer.

        A running feed is torn down first, so switching identity never
        leaves a stale subscription behind.
        """
        with self._lock:
            if self.is_running:
                self.stop()

            self._viewer = viewer
            self._generation += 1
            self._state = FeedState.SKIPPING_INITIAL_SNAPSHOT
            ACTIVE_FEEDS.inc()

            logger.info(
                "Starting notification feed",
                viewer=viewer.email,
                role=viewer.role.value,
                generation=self._generation,
            )

            self._subscribe(FeedSource.ORDERS, self._orders_query(viewer))
            if viewer.email:
                self._subscribe(FeedSource.ALERTS, self._alerts_query(viewer))

    def stop(self) -> None:
        """Cancel both subscriptions and discard feed state. Idempotent."""
        with self._lock:
            if not self.is_running:
                return

            subscriptions, self._subscriptions = self._subscriptions, {}
            for subscription in subscriptions.values():
                self.store.unsubscribe(subscription)

            # Messages queued by the old subscriptions are dropped by generation
            self._generation += 1
            self._state = FeedState.TORN_DOWN
            self._items = []
            self._unread = 0
            self._errors = {}
            self._menu_open = False
            self._full_page = False
            ACTIVE_FEEDS.dec()

            logger.info("Notification feed stopped", viewer=self._viewer.email if self._viewer else None)

    def _orders_query(self, viewer: Viewer):
        if viewer.is_team_leader:
            return self.store.query(self.orders_collection)
        return self.store.query(
            self.orders_collection,
            filters=[FieldFilter("assignedEditorEmails", FilterOp.ARRAY_CONTAINS, viewer.email)],
        )

    def _alerts_query(self, viewer: Viewer):
        return self.store.query(
            self.alerts_collection,
            filters=[FieldFilter("recipientEmail", FilterOp.EQ, viewer.email)],
            order_by=OrderBy("createdAt", descending=True),
        )

    def _subscribe(self, source: FeedSource, query) -> None:
        generation = self._generation
        try:
            subscription = self.store.subscribe(
                query,
                on_batch=lambda batch: self._enqueue(_Message(generation, source, batch)),
                on_error=lambda error: self._enqueue(_Message(generation, source, error)),
            )
        except SubscriptionError as e:
            self._enqueue(_Message(generation, source, e))
            return
        self._subscriptions[source] = subscription

    # -------------------------------------------------------------------------
    # Inbox
    # -------------------------------------------------------------------------

    def _enqueue(self, message: _Message) -> None:
        with self._lock:
            self._inbox.append(message)
            if self._draining:
                return
            self._draining = True
            try:
                while self._inbox:
                    self._apply(self._inbox.popleft())
            finally:
                self._draining = False

    def _apply(self, message: _Message) -> None:
        if message.generation != self._generation or not self.is_running:
            logger.debug("Dropping message from stale subscription", source=message.source.value)
            return

        if isinstance(message.payload, Exception):
            self._record_error(message.source, message.payload)
            return

        BATCHES_RECEIVED.labels(source=f"feed:{message.source.value}").inc()
        self._errors.pop(message.source.value, None)

        if message.source == FeedSource.ORDERS:
            self._apply_order_batch(message.payload)
        else:
            self._apply_alert_batch(message.payload)

    def _record_error(self, source: FeedSource, error: Exception) -> None:
        self._errors[source.value] = str(error) or type(error).__name__
        SUBSCRIPTION_ERRORS.labels(source=f"feed:{source.value}").inc()
        logger.error(
            "Notification stream failed",
            source=source.value,
            viewer=self._viewer.email if self._viewer else None,
            error=str(error),
        )

    def _apply_order_batch(self, batch: ChangeBatch) -> None:
        if self._state == FeedState.SKIPPING_INITIAL_SNAPSHOT:
            self._state = FeedState.LIVE
            logger.debug("Initial order snapshot suppressed", size=len(batch))
            return

        is_leader = self._viewer is not None and self._viewer.is_team_leader
        now = self._clock()
        produced = []

        for change in batch:
            classified = classify_order_change(change, is_leader)
            if classified is None:
                continue
            kind, title = classified
            emails = change.data.get("assignedEditorEmails") or []
            produced.append(
                Notification(
                    id=self._new_id(),
                    order_id=change.id,
                    order_name=change.data.get("name") or "Unnamed Order",
                    editor_description=", ".join(emails) if emails else "Unassigned",
                    status=change.data.get("status"),
                    timestamp=now,
                    type=kind,
                    title=title,
                )
            )

        self._push(produced)

    def _apply_alert_batch(self, batch: ChangeBatch) -> None:
        produced = []
        for change in batch:
            if change.kind != ChangeKind.ADDED:
                continue
            data = change.data
            created = coerce_instant(data.get("createdAt"))
            produced.append(
                Notification(
                    id=change.id,
                    order_id=data.get("orderId"),
                    order_name=data.get("orderName"),
                    editor_description=f"From: {data.get('senderName') or 'Unknown'}",
                    status=data.get("message"),
                    timestamp=created if isinstance(created, datetime) else self._clock(),
                    type=_alert_type(data.get("type")),
                    title="Manual Alert",
                )
            )
        self._push(produced)

    def _push(self, produced: List[Notification]) -> None:
        if not produced:
            return
        # Newest first in the underlying list
        self._items = list(reversed(produced)) + self._items
        if not self._viewing:
            self._unread += len(produced)

        for notification in produced:
            NOTIFICATIONS_PRODUCED.labels(type=notification.type.value).inc()
        logger.info(
            "Notifications added",
            viewer=self._viewer.email if self._viewer else None,
            count=len(produced),
            unread=self._unread,
        )

    # -------------------------------------------------------------------------
    # Consumer actions
    # -------------------------------------------------------------------------

    @property
    def _viewing(self) -> bool:
        return self._menu_open or self._full_page

    @property
    def notifications(self) -> List[Notification]:
        """Notifications sorted newest first, recomputed on every access"""
        with self._lock:
            return sorted(self._items, key=lambda n: n.timestamp, reverse=True)

    @property
    def unread_count(self) -> int:
        return self._unread

    @property
    def errors(self) -> Dict[str, str]:
        return dict(self._errors)

    def snapshot(self) -> FeedSnapshot:
        with self._lock:
            return FeedSnapshot(
                notifications=self.notifications,
                unread_count=self._unread,
                state=self._state,
                errors=dict(self._errors),
            )

    def open_feed(self) -> None:
        """Open the menu: everything shown counts as read until it closes"""
        with self._lock:
            self._menu_open = True
            self._unread = 0

    def close_feed(self) -> None:
        with self._lock:
            self._menu_open = False

    def set_full_page(self, enabled: bool) -> None:
        """While the full-page view is shown the unread count stays at zero"""
        with self._lock:
            self._full_page = enabled
            if enabled:
                self._unread = 0

    def clear_feed(self) -> None:
        """Empty the list and the counter. Subscriptions stay as they are."""
        with self._lock:
            self._items = []
            self._unread = 0
            self._menu_open = False
        logger.info("Notification feed cleared", viewer=self._viewer.email if self._viewer else None)

    def select_notification(self, notification_id: str) -> Optional[str]:
        """Close the menu and return the order to navigate to, if any"""
        with self._lock:
            self._menu_open = False
            for notification in self._items:
                if notification.id == notification_id:
                    return notification.order_id
        return None
