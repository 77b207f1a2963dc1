"""
Prometheus Metrics

Process-wide counters for the live subscription and notification layers.
"""

from prometheus_client import Counter, Gauge

BATCHES_RECEIVED = Counter(
    "orderdesk_change_batches_total",
    "Change batches received from document store subscriptions",
    ["source"],
)

SUBSCRIPTION_ERRORS = Counter(
    "orderdesk_subscription_errors_total",
    "Subscriptions that failed to establish or were dropped",
    ["source"],
)

NOTIFICATIONS_PRODUCED = Counter(
    "orderdesk_notifications_total",
    "Notifications added to viewer feeds",
    ["type"],
)

ACTIVE_FEEDS = Gauge(
    "orderdesk_active_feeds",
    "Notification feeds currently subscribed",
)
