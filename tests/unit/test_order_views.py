"""
Unit Tests - Order Board Views
"""
from datetime import date, datetime, timedelta, timezone

import pytest

from orderdesk.analytics.order_views import (
    OrderFilter,
    SortBy,
    board_summary,
    filter_orders,
    format_relative,
    paginate,
    sort_orders,
)
from orderdesk.domain.models import parse_orders


class TestSorting:
    """Tests for sort_orders"""

    def test_date_desc_and_asc(self, make_order, now):
        old = make_order(id="old", created_at=now - timedelta(days=9))
        new = make_order(id="new", created_at=now - timedelta(hours=1))
        undated = make_order(id="undated", created_at=None)
        orders = [old, undated, new]

        assert [o.id for o in sort_orders(orders, SortBy.DATE_DESC)] == ["new", "old", "undated"]
        assert [o.id for o in sort_orders(orders, "dateAsc")] == ["undated", "old", "new"]

    def test_status_order(self, make_order):
        orders = [
            make_order(id="c", status="completed"),
            make_order(id="p", status="pending"),
            make_order(id="i", status="in-progress"),
        ]

        assert [o.id for o in sort_orders(orders, SortBy.STATUS)] == ["p", "i", "c"]

    def test_unknown_sort_rejected(self, make_order):
        with pytest.raises(ValueError):
            sort_orders([make_order()], "priority")


class TestFiltering:
    """Tests for filter_orders"""

    def test_search_matches_name_or_telecaller(self, make_order, now):
        orders = [
            make_order(id="a", name="Smith Wedding", telecaller="Tom"),
            make_order(id="b", name="Jones Birthday", telecaller="Sally Smith"),
            make_order(id="c", name="Corporate", telecaller=None),
        ]

        result = filter_orders(orders, OrderFilter(search="smith"), now)

        assert [o.id for o in result] == ["a", "b"]

    def test_orders_without_timestamp_are_hidden(self, make_order, now):
        orders = [make_order(id="a"), make_order(id="b", created_at=None)]

        assert [o.id for o in filter_orders(orders, OrderFilter(), now)] == ["a"]

    def test_rolling_window(self, make_order, now):
        orders = [
            make_order(id="recent", created_at=now - timedelta(days=2)),
            make_order(id="stale", created_at=now - timedelta(days=10)),
        ]

        result = filter_orders(orders, OrderFilter(window_days=7), now)

        assert [o.id for o in result] == ["recent"]

    def test_date_range_is_inclusive_and_beats_window(self, make_order, now):
        orders = [
            make_order(id="start", created_at=datetime(2024, 5, 1, 0, 0, tzinfo=timezone.utc)),
            make_order(id="end", created_at=datetime(2024, 5, 31, 23, 59, 59, tzinfo=timezone.utc)),
            make_order(id="after", created_at=datetime(2024, 6, 1, 0, 0, 1, tzinfo=timezone.utc)),
        ]
        filters = OrderFilter(window_days=1, start_date=date(2024, 5, 1), end_date=date(2024, 5, 31))

        assert [o.id for o in filter_orders(orders, filters, now)] == ["start", "end"]


class TestPagination:
    """Tests for paginate"""

    def test_pages(self):
        items = list(range(20))

        first = paginate(items, 0, 9)
        last = paginate(items, 2, 9)

        assert first.items == list(range(9))
        assert first.total == 20
        assert first.total_pages == 3
        assert last.items == [18, 19]

    def test_page_past_end_is_empty(self):
        assert paginate([1, 2], 5, 9).items == []

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            paginate([], -1, 9)
        with pytest.raises(ValueError):
            paginate([], 0, 0)


class TestBoardSummary:
    """Tests for board_summary"""

    def test_counts(self, make_order, now):
        orders = [
            make_order(status="pending"),
            make_order(status="pending"),
            make_order(status="in-progress"),
            make_order(status="completed", completed_at=now - timedelta(hours=2)),
            make_order(status="completed", completed_at=now - timedelta(days=1)),
            make_order(status="completed", completed_at=None),
        ]

        summary = board_summary(orders, now)

        assert summary.pending == 2
        assert summary.completed_today == 1


class TestFormatRelative:
    """Tests for format_relative"""

    @pytest.mark.parametrize(
        "delta, expected",
        [
            (timedelta(seconds=1), "1 second ago"),
            (timedelta(seconds=45), "45 seconds ago"),
            (timedelta(minutes=5), "5 minutes ago"),
            (timedelta(hours=3), "3 hours ago"),
            (timedelta(days=2), "2 days ago"),
            (timedelta(days=400), "1 year ago"),
        ],
    )
    def test_format(self, now, delta, expected):
        assert format_relative(now - delta, now) == expected


class TestStoredTimestamps:
    """Sorting and filtering orders parsed from raw documents"""

    def test_naive_iso_timestamps_sort_with_aware_ones(self, make_order, now):
        parsed = parse_orders([
            ("iso", {"status": "pending", "createdAt": "2024-06-14T08:00:00"}),
            ("undated", {"status": "pending"}),
        ])
        orders = parsed + [make_order(id="aware", created_at=now - timedelta(hours=1))]

        assert [o.id for o in sort_orders(orders, SortBy.DATE_DESC)] == ["aware", "iso", "undated"]
        assert [o.id for o in filter_orders(orders, OrderFilter(window_days=7), now)] == ["iso", "aware"]
