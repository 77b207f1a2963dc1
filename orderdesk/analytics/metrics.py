"""
Dashboard Metrics Aggregation

Derives team and per-editor metrics from the current snapshot of orders and
editor profiles. Everything is recomputed from the full inputs on each call;
data volumes are tens to low hundreds of orders.

Metrics:
- Per editor: assigned / completed / pending counts, completion rate,
  workload percentage, availability label, new-editor flag
- Team: totals, orders this month, completion rate, shared orders,
  top performer of the current month
- Monthly order counts for the current year
"""

import calendar
import math
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional, Sequence

import structlog
from pydantic import BaseModel, ConfigDict

from orderdesk.config import get_settings
from orderdesk.domain.models import Editor, Order, OrderStatus

logger = structlog.get_logger(__name__)


# =============================================================================
# RESULT MODELS
# =============================================================================

class EditorMetrics(BaseModel):
    """Workload and throughput for one editor"""
    model_config = ConfigDict(frozen=True)

    editor_id: str
    email: Optional[str]
    name: str
    photo_url: Optional[str]
    status: Optional[str]
    is_new: bool
    assigned: int
    completed: int
    pending: int
    completion_rate: int
    workload_percentage: float
    availability: str


class TopPerformer(BaseModel):
    """Editor with the most completions this month"""
    model_config = ConfigDict(frozen=True)

    email: str
    name: str
    photo_url: Optional[str]
    count: int


class TeamMetrics(BaseModel):
    """Team-wide summary"""
    model_config = ConfigDict(frozen=True)

    total_orders: int
    orders_this_month: int
    pending_orders: int
    in_progress_orders: int
    completed_orders: int
    open_workload: int
    completion_rate: int
    shared_orders: int
    shared_workload: int
    top_performer: Optional[TopPerformer]


class MonthlyCount(BaseModel):
    """Orders created in one calendar month"""
    model_config = ConfigDict(frozen=True)

    month: int
    label: str
    orders: int


class DerivedMetrics(BaseModel):
    """Complete dashboard metrics for one snapshot"""
    model_config = ConfigDict(frozen=True)

    team: TeamMetrics
    editors: List[EditorMetrics]
    monthly_orders: List[MonthlyCount]
    pending_by_editor: List[EditorMetrics]
    computed_at: datetime


# =============================================================================
# HELPERS
# =============================================================================

def round_half_up(value: float) -> int:
    """Round a non-negative ratio the way percentages are displayed"""
    return int(math.floor(value + 0.5))


def percentage(part: int, whole: int) -> int:
    """Rounded part/whole percentage, 0 when whole is 0"""
    if whole == 0:
        return 0
    return round_half_up(part / whole * 100)


def workload_percentage(pending: int, assigned: int) -> float:
    """Share of assigned orders still open, capped at 100"""
    if assigned == 0:
        return 0.0
    return min(pending / assigned * 100, 100.0)


def availability_label(pending: int, busy_threshold: int = 5, active_threshold: int = 2) -> str:
    if pending > busy_threshold:
        return "Busy"
    if pending > active_threshold:
        return "Active"
    return "Available"


def _local(moment: datetime, now: datetime) -> datetime:
    if now.tzinfo is not None and moment.tzinfo is not None:
        return moment.astimezone(now.tzinfo)
    return moment


def in_month(moment: Optional[datetime], now: datetime) -> bool:
    """True when moment falls in the calendar month/year of now"""
    if moment is None:
        return False
    local = _local(moment, now)
    return local.year == now.year and local.month == now.month


def is_new_editor(created_at: Optional[datetime], now: datetime, days: int = 30) -> bool:
    """
    Editors whose profile timestamp is still pending, or who joined within
    the last ``days`` days, count as new.
    """
    if created_at is None:
        return True
    return created_at > now - timedelta(days=days)


def _default_now() -> datetime:
    return datetime.now(get_settings().dashboard.tzinfo)


# =============================================================================
# AGGREGATION
# =============================================================================

def compute_editor_metrics(
    editor: Editor,
    orders: Sequence[Order],
    now: datetime,
    new_editor_days: int = 30,
    busy_threshold: int = 5,
    active_threshold: int = 2,
) -> EditorMetrics:
    """Metrics for one editor. An order counts for every editor it lists."""
    editor_orders = [o for o in orders if o.is_assigned_to(editor.email)]
    assigned = len(editor_orders)
    completed = sum(1 for o in editor_orders if o.status == OrderStatus.COMPLETED)
    pending = sum(1 for o in editor_orders if o.is_open)

    return EditorMetrics(
        editor_id=editor.id,
        email=editor.email,
        name=editor.name,
        photo_url=editor.photo_url,
        status=editor.status,
        is_new=is_new_editor(editor.created_at, now, new_editor_days),
        assigned=assigned,
        completed=completed,
        pending=pending,
        completion_rate=percentage(completed, assigned),
        workload_percentage=workload_percentage(pending, assigned),
        availability=availability_label(pending, busy_threshold, active_threshold),
    )


def find_top_performer(
    orders: Iterable[Order],
    editors: Sequence[Editor],
    now: datetime,
) -> Optional[TopPerformer]:
    """
    Editor with the most completed orders created this month.

    Completions fan out to every assignee. Ties go to the lexicographically
    smallest email so the result does not depend on input order.
    """
    counts: Dict[str, int] = Counter()
    for order in orders:
        if order.status != OrderStatus.COMPLETED or not in_month(order.created_at, now):
            continue
        for email in set(order.assigned_editor_emails):
            counts[email] += 1

    if not counts:
        return None

    email, count = min(counts.items(), key=lambda item: (-item[1], item[0]))
    editor = next((e for e in editors if e.email == email), None)

    return TopPerformer(
        email=email,
        name=editor.name if editor else email.split("@")[0],
        photo_url=editor.photo_url if editor else None,
        count=count,
    )


def compute_team_metrics(orders: Sequence[Order], editors: Sequence[Editor], now: datetime) -> TeamMetrics:
    total = len(orders)
    completed = sum(1 for o in orders if o.status == OrderStatus.COMPLETED)

    return TeamMetrics(
        total_orders=total,
        orders_this_month=sum(1 for o in orders if in_month(o.created_at, now)),
        pending_orders=sum(1 for o in orders if o.status == OrderStatus.PENDING),
        in_progress_orders=sum(1 for o in orders if o.status == OrderStatus.IN_PROGRESS),
        completed_orders=completed,
        open_workload=sum(1 for o in orders if o.is_open),
        completion_rate=percentage(completed, total),
        shared_orders=sum(1 for o in orders if o.is_shared),
        shared_workload=sum(1 for o in orders if o.is_shared and o.is_open),
        top_performer=find_top_performer(orders, editors, now),
    )


def compute_monthly_orders(orders: Iterable[Order], now: datetime) -> List[MonthlyCount]:
    """Order counts for each month of the current year"""
    counts: Dict[int, int] = Counter()
    for order in orders:
        if order.created_at is None:
            continue
        local = _local(order.created_at, now)
        if local.year == now.year:
            counts[local.month] += 1

    return [
        MonthlyCount(month=month, label=calendar.month_abbr[month], orders=counts.get(month, 0))
        for month in range(1, 13)
    ]


def compute_derived_metrics(
    orders: Sequence[Order],
    editors: Sequence[Editor],
    now: Optional[datetime] = None,
    new_editor_days: Optional[int] = None,
) -> DerivedMetrics:
    """
    Compute all dashboard metrics from the current snapshot.

    Pure: identical orders, editors and ``now`` always give identical output.

    Args:
        orders: Every order visible to the dashboard
        editors: Editor profiles
        now: Reference instant; defaults to the wall clock in the dashboard timezone
        new_editor_days: Window for the new-editor flag; defaults to settings

    Returns:
        DerivedMetrics for this snapshot
    """
    dashboard = get_settings().dashboard
    now = now or _default_now()
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    days = dashboard.new_editor_days if new_editor_days is None else new_editor_days

    editor_metrics = [
        compute_editor_metrics(
            editor,
            orders,
            now,
            new_editor_days=days,
            busy_threshold=dashboard.busy_threshold,
            active_threshold=dashboard.active_threshold,
        )
        for editor in editors
    ]

    metrics = DerivedMetrics(
        team=compute_team_metrics(orders, editors, now),
        editors=editor_metrics,
        monthly_orders=compute_monthly_orders(orders, now),
        pending_by_editor=[m for m in editor_metrics if m.pending > 0],
        computed_at=now,
    )

    logger.debug(
        "Derived metrics computed",
        orders=len(orders),
        editors=len(editors),
        completion_rate=metrics.team.completion_rate,
    )
    return metrics
