"""
Domain Module
"""
from .models import (
    Editor,
    EditorStatus,
    Notification,
    NotificationType,
    Order,
    OrderStatus,
    UserRole,
    Viewer,
    parse_editors,
    parse_orders,
)

__all__ = [
    "Editor",
    "EditorStatus",
    "Notification",
    "NotificationType",
    "Order",
    "OrderStatus",
    "UserRole",
    "Viewer",
    "parse_editors",
    "parse_orders",
]
