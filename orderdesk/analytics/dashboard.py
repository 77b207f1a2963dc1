"""
Dashboard Facade

Keeps live mirrors of the orders and editor profiles and derives metrics
from whatever the mirrors hold at call time.
"""

from datetime import datetime
from typing import Callable, Dict, List, Optional

import structlog

from orderdesk.analytics.metrics import DerivedMetrics, compute_derived_metrics
from orderdesk.analytics.order_views import (
    BoardSummary,
    OrderFilter,
    Page,
    SortBy,
    board_summary,
    filter_orders,
    paginate,
    sort_orders,
)
from orderdesk.config import get_settings
from orderdesk.domain.models import Editor, Order, UserRole, Viewer, parse_editors, parse_orders
from orderdesk.store.base import DocumentStore, FieldFilter, FilterOp
from orderdesk.store.live import LiveCollection

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


class Dashboard:
    """
    Push-fed dashboard state.

    Example:
        dashboard = Dashboard(store)
        dashboard.start()
        metrics = dashboard.metrics()
    """

    def __init__(self, store: DocumentStore, clock: Optional[Clock] = None):
        settings = get_settings()
        self.store = store
        self._tz = settings.dashboard.tzinfo
        self._clock = clock or (lambda: datetime.now(self._tz))

        self.orders = LiveCollection(store, store.query(settings.store.orders_collection), name="orders")
        self.editors = LiveCollection(
            store,
            store.query(
                settings.store.users_collection,
                filters=[FieldFilter("role", FilterOp.EQ, UserRole.EDITOR.value)],
            ),
            name="editors",
        )

    def start(self) -> None:
        self.orders.start()
        self.editors.start()

    def stop(self) -> None:
        self.orders.stop()
        self.editors.stop()

    def now(self) -> datetime:
        return self._clock()

    @property
    def errors(self) -> Dict[str, str]:
        """Subscription errors of the mirrors; their last documents stay usable"""
        return {
            mirror.name: str(mirror.error)
            for mirror in (self.orders, self.editors)
            if mirror.error is not None
        }

    def current_orders(self) -> List[Order]:
        return parse_orders(self.orders.documents)

    def current_editors(self) -> List[Editor]:
        return parse_editors(self.editors.documents)

    def orders_for(self, viewer: Viewer) -> List[Order]:
        """Orders visible to a viewer: all for team leaders, own assignments otherwise"""
        orders = self.current_orders()
        if viewer.is_team_leader:
            return orders
        return [o for o in orders if o.is_assigned_to(viewer.email)]

    def metrics(self) -> DerivedMetrics:
        """Recompute metrics from the current snapshot"""
        return compute_derived_metrics(self.current_orders(), self.current_editors(), now=self.now())

    def board(
        self,
        viewer: Viewer,
        filters: Optional[OrderFilter] = None,
        sort_by: SortBy = SortBy.DATE_DESC,
        page: int = 0,
        page_size: Optional[int] = None,
    ) -> Page[Order]:
        """Filtered, sorted and paginated orders for a viewer"""
        page_size = page_size or get_settings().dashboard.page_size
        orders = sort_orders(self.orders_for(viewer), sort_by)
        visible = filter_orders(orders, filters or OrderFilter(), self.now())
        return paginate(visible, page, page_size)

    def summary(self, viewer: Viewer) -> BoardSummary:
        return board_summary(self.orders_for(viewer), self.now())
