"""
Unit Tests - Dashboard Facade
"""
from datetime import timedelta

import pytest

from orderdesk.analytics.dashboard import Dashboard
from orderdesk.analytics.order_views import OrderFilter, SortBy


@pytest.fixture
def dashboard(store, clock, order_doc):
    store.set("users", "u-alice", {"email": "alice@example.com", "role": "editor", "createdAt": clock.now - timedelta(days=100)})
    store.set("users", "u-lead", {"email": "lead@example.com", "role": "team-leader"})
    store.set("orders", "o1", order_doc(assignedEditorEmails=["alice@example.com"]))
    store.set("orders", "o2", order_doc(assignedEditorEmails=["bob@example.com"], status="completed", completedAt=clock.now))
    store.set("orders", "bad", order_doc(status="archived"))

    dashboard = Dashboard(store, clock=clock)
    dashboard.start()
    yield dashboard
    dashboard.stop()


class TestDashboard:
    """Tests for Dashboard"""

    def test_mirrors_only_editor_profiles(self, dashboard):
        assert [e.email for e in dashboard.current_editors()] == ["alice@example.com"]

    def test_malformed_orders_are_skipped(self, dashboard):
        assert {o.id for o in dashboard.current_orders()} == {"o1", "o2"}

    def test_unknown_status_is_left_out_of_totals(self, dashboard, leader):
        metrics = dashboard.metrics()

        assert metrics.team.total_orders == 2
        assert dashboard.board(leader).total == 2

    def test_orders_for_viewer(self, dashboard, leader, editor_viewer):
        assert len(dashboard.orders_for(leader)) == 2
        assert [o.id for o in dashboard.orders_for(editor_viewer)] == ["o1"]

    def test_metrics_recomputed_on_each_call(self, dashboard, store, order_doc):
        assert dashboard.metrics().team.total_orders == 2

        store.set("orders", "o3", order_doc())

        assert dashboard.metrics().team.total_orders == 3

    def test_board(self, dashboard, leader):
        page = dashboard.board(leader, OrderFilter(search="wedding"), SortBy.STATUS, page=0, page_size=1)

        assert page.total == 2
        assert page.total_pages == 2
        assert page.items[0].id == "o1"

    def test_summary(self, dashboard, leader):
        summary = dashboard.summary(leader)

        assert summary.pending == 1
        assert summary.completed_today == 1

    def test_errors_keep_snapshot(self, dashboard, store):
        store.disconnect()

        assert set(dashboard.errors) == {"orders", "editors"}
        assert dashboard.metrics().team.total_orders == 2

    def test_stop_releases_listeners(self, dashboard, store):
        dashboard.stop()

        assert store.listener_count == 0
