"""
Order Board Views

Search, date filtering, sorting and pagination of the in-memory order list
shown on the editor board, plus the board's headline counts.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Generic, List, Optional, Sequence, TypeVar, Union

from orderdesk.domain.models import Order, OrderStatus

T = TypeVar("T")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

STATUS_RANK = {
    OrderStatus.PENDING: 1,
    OrderStatus.IN_PROGRESS: 2,
    OrderStatus.COMPLETED: 3,
}


class SortBy(str, Enum):
    """Board sort options"""
    DATE_DESC = "dateDesc"
    DATE_ASC = "dateAsc"
    STATUS = "status"


@dataclass
class OrderFilter:
    """
    Board filter state.

    An explicit start/end date range takes precedence over the rolling
    ``window_days`` tab; ``window_days=None`` means all time.
    """
    search: Optional[str] = None
    window_days: Optional[int] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


@dataclass
class Page(Generic[T]):
    """One page of a list"""
    items: List[T]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        return (self.total + self.page_size - 1) // self.page_size


@dataclass
class BoardSummary:
    """Headline counts of the editor board"""
    pending: int
    completed_today: int


def _created(order: Order) -> datetime:
    return order.created_at or _EPOCH


def sort_orders(orders: Sequence[Order], sort_by: Union[SortBy, str] = SortBy.DATE_DESC) -> List[Order]:
    """Sort a copy of the orders. Orders without a timestamp sort as oldest."""
    sort_by = SortBy(sort_by)
    if sort_by == SortBy.DATE_ASC:
        return sorted(orders, key=_created)
    if sort_by == SortBy.STATUS:
        return sorted(orders, key=lambda o: STATUS_RANK.get(o.status, 99))
    return sorted(orders, key=_created, reverse=True)


def _matches_search(order: Order, search: str) -> bool:
    needle = search.lower()
    return any(
        field is not None and needle in field.lower()
        for field in (order.name, order.telecaller)
    )


def filter_orders(orders: Sequence[Order], filters: OrderFilter, now: datetime) -> List[Order]:
    """
    Apply search and date filters, keeping input order.

    Orders still waiting for their creation timestamp are never shown.
    """
    tz = now.tzinfo or timezone.utc
    result = []

    for order in orders:
        if filters.search and not _matches_search(order, filters.search):
            continue

        if order.created_at is None:
            continue
        created = order.created_at.astimezone(tz)

        if filters.start_date or filters.end_date:
            if filters.start_date and created < datetime.combine(filters.start_date, time.min, tzinfo=tz):
                continue
            if filters.end_date and created > datetime.combine(filters.end_date, time(23, 59, 59), tzinfo=tz):
                continue
        elif filters.window_days is not None:
            if created < now - timedelta(days=filters.window_days):
                continue

        result.append(order)

    return result


def paginate(items: Sequence[T], page: int, page_size: int) -> Page[T]:
    """Slice a zero-based page out of items"""
    if page < 0:
        raise ValueError("page must be >= 0")
    if page_size < 1:
        raise ValueError("page_size must be >= 1")

    start = page * page_size
    return Page(
        items=list(items[start:start + page_size]),
        total=len(items),
        page=page,
        page_size=page_size,
    )


def board_summary(orders: Sequence[Order], now: datetime) -> BoardSummary:
    """Pending orders and orders completed on today's calendar date"""
    tz = now.tzinfo or timezone.utc
    today = now.date()

    completed_today = sum(
        1
        for o in orders
        if o.status == OrderStatus.COMPLETED
        and o.completed_at is not None
        and o.completed_at.astimezone(tz).date() == today
    )
    return BoardSummary(
        pending=sum(1 for o in orders if o.status == OrderStatus.PENDING),
        completed_today=completed_today,
    )


_UNITS = (
    ("year", 31536000),
    ("month", 2592000),
    ("day", 86400),
    ("hour", 3600),
    ("minute", 60),
)


def format_relative(moment: datetime, now: datetime) -> str:
    """Human-readable distance such as '3 days ago'"""
    seconds = int((now - moment).total_seconds())
    for unit, length in _UNITS:
        # Largest unit that fits more than once
        if seconds / length > 1:
            count = seconds // length
            return f"{count} {unit}{'s' if count > 1 else ''} ago"
    return f"{seconds} second{'s' if seconds != 1 else ''} ago"
