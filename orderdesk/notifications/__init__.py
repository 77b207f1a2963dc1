"""
Notifications Module
"""
from .feed import FeedSnapshot, FeedSource, FeedState, NotificationFeed, classify_order_change
from .registry import FeedRegistry

__all__ = [
    "FeedSnapshot",
    "FeedSource",
    "FeedState",
    "NotificationFeed",
    "classify_order_change",
    "FeedRegistry",
]
