"""
Orders Module
"""
from .service import (
    AlertDeliveryError,
    OrderAccessError,
    OrderLockedError,
    OrderNotFoundError,
    OrderService,
    OrderServiceError,
    ProfileWriteError,
    StatusUpdateError,
)

__all__ = [
    "AlertDeliveryError",
    "OrderAccessError",
    "OrderLockedError",
    "OrderNotFoundError",
    "OrderService",
    "OrderServiceError",
    "ProfileWriteError",
    "StatusUpdateError",
]
