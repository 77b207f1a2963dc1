"""
Analytics Module
"""
from .dashboard import Dashboard
from .metrics import DerivedMetrics, EditorMetrics, TeamMetrics, TopPerformer, compute_derived_metrics
from .order_views import OrderFilter, Page, SortBy, board_summary, filter_orders, paginate, sort_orders

__all__ = [
    "Dashboard",
    "DerivedMetrics",
    "EditorMetrics",
    "TeamMetrics",
    "TopPerformer",
    "compute_derived_metrics",
    "OrderFilter",
    "Page",
    "SortBy",
    "board_summary",
    "filter_orders",
    "paginate",
    "sort_orders",
]
