"""
Order Write Path

Writes issued by the dashboard: status changes, manual alerts and user
profile documents. Nothing here touches read-side state; the store's change
stream is the only way results reach the metrics and notification feeds.
"""

from typing import Any, Dict, Optional, Union

import structlog

from orderdesk.config import get_settings
from orderdesk.domain.models import EditorStatus, NotificationType, OrderStatus, UserRole, Viewer
from orderdesk.store.base import SERVER_TIMESTAMP, DocumentStore, StoreError

logger = structlog.get_logger(__name__)


# =============================================================================
# ERRORS
# =============================================================================

class OrderServiceError(Exception):
    """Base class for write-path failures"""


class OrderNotFoundError(OrderServiceError):
    """The order does not exist"""

    def __init__(self, order_id: str):
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id


class OrderAccessError(OrderServiceError):
    """The viewer is not assigned to the order"""

    def __init__(self, order_id: str, email: Optional[str]):
        super().__init__(f"{email or 'Anonymous viewer'} is not assigned to order {order_id}")
        self.order_id = order_id
        self.email = email


class OrderLockedError(OrderServiceError):
    """Completed orders cannot change status"""

    def __init__(self, order_id: str):
        super().__init__(f"Order {order_id} is completed and locked")
        self.order_id = order_id


class StatusUpdateError(OrderServiceError):
    """The store rejected a status change"""


class AlertDeliveryError(OrderServiceError):
    """The store rejected a manual alert"""


class ProfileWriteError(OrderServiceError):
    """The store rejected a profile write"""


# =============================================================================
# SERVICE
# =============================================================================

class OrderService:
    """
    Dashboard write operations against the document store.

    Example:
        service = OrderService(store)
        service.update_status("order-1", OrderStatus.IN_PROGRESS)
    """

    def __init__(self, store: DocumentStore):
        settings = get_settings()
        self.store = store
        self.orders_collection = settings.store.orders_collection
        self.users_collection = settings.store.users_collection
        self.alerts_collection = settings.store.alerts_collection

    def update_status(
        self,
        order_id: str,
        new_status: Union[OrderStatus, str],
        actor: Optional[Viewer] = None,
    ) -> bool:
        """
        Change an order's status.

        Completing stamps ``completedAt`` with the server time; any other
        status clears it.

        Returns:
            True if a write was issued, False when the status is unchanged

        Raises:
            OrderNotFoundError: no such order
            OrderAccessError: a non-leader actor is not assigned to the order
            OrderLockedError: the order is already completed
            StatusUpdateError: the store failed the write
        """
        new_status = OrderStatus(new_status)

        try:
            current = self.store.get(self.orders_collection, order_id)
        except StoreError as e:
            raise StatusUpdateError(f"Could not read order {order_id}: {e}") from e
        if current is None:
            raise OrderNotFoundError(order_id)
        if actor is not None and not actor.is_team_leader:
            if actor.email not in (current.get("assignedEditorEmails") or []):
                raise OrderAccessError(order_id, actor.email)

        current_status = current.get("status")
        if current_status == new_status.value:
            return False
        if current_status == OrderStatus.COMPLETED.value:
            raise OrderLockedError(order_id)

        update: Dict[str, Any] = {"status": new_status.value}
        update["completedAt"] = SERVER_TIMESTAMP if new_status == OrderStatus.COMPLETED else None

        try:
            self.store.update(self.orders_collection, order_id, update)
        except StoreError as e:
            logger.error("Status update failed", order_id=order_id, status=new_status.value, error=str(e))
            raise StatusUpdateError(f"Error updating status: {e}") from e

        logger.info("Order status updated", order_id=order_id, previous=current_status, status=new_status.value)
        return True

    def send_alert(
        self,
        recipient_email: str,
        order_id: str,
        sender_name: str,
        message: str,
        order_name: Optional[str] = None,
    ) -> str:
        """Push a manual alert to one viewer's notification feed"""
        data = {
            "recipientEmail": recipient_email,
            "orderId": order_id,
            "orderName": order_name,
            "senderName": sender_name,
            "message": message,
            "type": NotificationType.DANGER.value,
            "createdAt": SERVER_TIMESTAMP,
        }
        try:
            alert_id = self.store.add(self.alerts_collection, data)
        except StoreError as e:
            logger.error("Alert delivery failed", recipient=recipient_email, error=str(e))
            raise AlertDeliveryError(str(e)) from e

        logger.info("Manual alert sent", alert_id=alert_id, recipient=recipient_email, order_id=order_id)
        return alert_id

    def create_user_profile(
        self,
        uid: str,
        email: str,
        display_name: str,
        role: Union[UserRole, str] = UserRole.EDITOR,
        photo_url: str = "",
    ) -> None:
        """Write the profile document of a newly created account"""
        data = {
            "email": email,
            "displayName": display_name,
            "role": UserRole(role).value,
            "photoURL": photo_url,
            "status": EditorStatus.ACTIVE.value,
            "performance": {"ordersCompleted": 0, "rating": 5.0},
            "createdAt": SERVER_TIMESTAMP,
            "updatedAt": SERVER_TIMESTAMP,
        }
        try:
            self.store.set(self.users_collection, uid, data)
        except StoreError as e:
            raise ProfileWriteError(str(e)) from e
        logger.info("User profile created", uid=uid, email=email, role=data["role"])

    def grant_team_leader(self, uid: str, email: str, display_name: Optional[str] = None) -> None:
        """Merge a team-leader role into the caller's own profile"""
        data = {
            "email": email,
            "displayName": display_name or email.split("@")[0],
            "role": UserRole.TEAM_LEADER.value,
            "createdAt": SERVER_TIMESTAMP,
            "updatedAt": SERVER_TIMESTAMP,
        }
        try:
            self.store.set(self.users_collection, uid, data, merge=True)
        except StoreError as e:
            raise ProfileWriteError(str(e)) from e
        logger.info("Team leader access granted", uid=uid, email=email)
