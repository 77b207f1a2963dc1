"""
Unit Tests - HTTP API
"""
import pytest
from fastapi.testclient import TestClient

from orderdesk.main import create_app
from orderdesk.store.base import SERVER_TIMESTAMP
from orderdesk.store.memory import InMemoryDocumentStore

LEADER = {"X-User-Email": "lead@example.com", "X-User-Role": "team-leader", "X-User-Name": "Lena Lead"}
ALICE = {"X-User-Email": "alice@example.com", "X-User-Role": "editor"}


@pytest.fixture
def live_store() -> InMemoryDocumentStore:
    """Store on the wall clock, seeded with two editors and three orders"""
    store = InMemoryDocumentStore()
    store.set("users", "u-alice", {"email": "alice@example.com", "displayName": "Alice", "role": "editor", "createdAt": SERVER_TIMESTAMP})
    store.set("users", "u-bob", {"email": "bob@example.com", "displayName": "Bob", "role": "editor", "createdAt": SERVER_TIMESTAMP})
    store.set("users", "u-lead", {"email": "lead@example.com", "role": "team-leader"})

    store.set("orders", "o1", {"name": "Smith Wedding", "telecaller": "Tom", "status": "pending", "assignedEditorEmails": ["alice@example.com"], "createdAt": SERVER_TIMESTAMP})
    store.set("orders", "o2", {"name": "Jones Birthday", "telecaller": "Sue", "status": "completed", "assignedEditorEmails": ["alice@example.com", "bob@example.com"], "createdAt": SERVER_TIMESTAMP, "completedAt": SERVER_TIMESTAMP})
    store.set("orders", "o3", {"name": "Corporate Reel", "telecaller": "Tom", "status": "in-progress", "assignedEditorEmails": ["bob@example.com"], "createdAt": SERVER_TIMESTAMP})
    return store


@pytest.fixture
def client(live_store):
    with TestClient(create_app(live_store)) as client:
        yield client


class TestHealth:
    """Health endpoints"""

    def test_health(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["checks"]["orders"]["documents"] == 3
        assert data["checks"]["editors"]["documents"] == 2

    def test_ready(self, client):
        assert client.get("/api/v1/health/ready").json() == {"status": "ready"}

    def test_not_ready_after_disconnect(self, client, live_store):
        live_store.disconnect()

        response = client.get("/api/v1/health/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"

    def test_info(self, client):
        assert client.get("/api/v1/info").json()["name"] == "OrderDesk API"

    def test_request_id_is_echoed(self, client):
        response = client.get("/api/v1/health/live", headers={"X-Request-ID": "req-42"})

        assert response.headers["X-Request-ID"] == "req-42"
        assert response.headers["X-Content-Type-Options"] == "nosniff"


class TestDashboardEndpoint:
    """Metrics endpoint"""

    def test_metrics(self, client):
        response = client.get("/api/v1/dashboard/metrics", headers=LEADER)

        assert response.status_code == 200
        team = response.json()["metrics"]["team"]
        assert team["total_orders"] == 3
        assert team["completed_orders"] == 1
        assert team["completion_rate"] == 33
        assert team["shared_orders"] == 1
        assert team["top_performer"]["email"] == "alice@example.com"

    def test_metrics_follow_live_changes(self, client, live_store):
        live_store.update("orders", "o1", {"status": "completed", "completedAt": SERVER_TIMESTAMP})

        team = client.get("/api/v1/dashboard/metrics", headers=LEADER).json()["metrics"]["team"]

        assert team["completed_orders"] == 2

    def test_metrics_survive_lost_subscription(self, client, live_store):
        live_store.disconnect()

        data = client.get("/api/v1/dashboard/metrics", headers=LEADER).json()

        assert data["metrics"]["team"]["total_orders"] == 3
        assert set(data["errors"]) == {"orders", "editors"}

    def test_requires_team_leader(self, client):
        assert client.get("/api/v1/dashboard/metrics", headers=ALICE).status_code == 403

    def test_requires_identity(self, client):
        assert client.get("/api/v1/dashboard/metrics").status_code == 401


class TestOrdersEndpoint:
    """Order board endpoints"""

    def test_editor_sees_own_orders(self, client):
        data = client.get("/api/v1/orders", headers=ALICE).json()

        assert data["total"] == 2
        assert {o["id"] for o in data["items"]} == {"o1", "o2"}

    def test_search_sort_and_page(self, client):
        data = client.get(
            "/api/v1/orders",
            headers=LEADER,
            params={"search": "tom", "sort": "status", "page": 0, "page_size": 1},
        ).json()

        assert data["total"] == 2
        assert data["total_pages"] == 2
        assert data["items"][0]["id"] == "o1"

    def test_invalid_page(self, client):
        assert client.get("/api/v1/orders", headers=LEADER, params={"page": -1}).status_code == 422

    def test_summary(self, client):
        data = client.get("/api/v1/orders/summary", headers=ALICE).json()

        assert data == {"pending": 1, "completed_today": 1}

    def test_accept_order(self, client, live_store):
        response = client.patch("/api/v1/orders/o1/status", headers=ALICE, json={"status": "in-progress"})

        assert response.status_code == 200
        assert response.json()["updated"] is True
        assert live_store.get("orders", "o1")["status"] == "in-progress"

    def test_completed_order_is_locked(self, client):
        response = client.patch("/api/v1/orders/o2/status", headers=LEADER, json={"status": "pending"})

        assert response.status_code == 409

    def test_unassigned_editor_forbidden(self, client):
        response = client.patch("/api/v1/orders/o3/status", headers=ALICE, json={"status": "completed"})

        assert response.status_code == 403

    def test_missing_order(self, client):
        response = client.patch("/api/v1/orders/nope/status", headers=LEADER, json={"status": "completed"})

        assert response.status_code == 404


class TestNotificationsEndpoint:
    """Notification feed endpoints"""

    def test_feed_starts_empty(self, client):
        data = client.get("/api/v1/notifications", headers=LEADER).json()

        assert data["notifications"] == []
        assert data["unread_count"] == 0
        assert data["state"] == "live"

    def test_order_change_reaches_feed(self, client):
        client.get("/api/v1/notifications", headers=ALICE)
        client.patch("/api/v1/orders/o1/status", headers=LEADER, json={"status": "in-progress"})

        data = client.get("/api/v1/notifications", headers=ALICE).json()

        assert data["unread_count"] == 1
        assert data["notifications"][0]["type"] == "accepted"
        assert data["notifications"][0]["title"] == "Order Accepted"

    def test_alert_open_select_and_clear(self, client):
        client.get("/api/v1/notifications", headers=ALICE)

        response = client.post(
            "/api/v1/alerts",
            headers=LEADER,
            json={"recipient_email": "alice@example.com", "order_id": "o1", "message": "Call the client"},
        )
        assert response.status_code == 201

        feed = client.get("/api/v1/notifications", headers=ALICE).json()
        [alert] = feed["notifications"]
        assert alert["editor_description"] == "From: Lena Lead"
        assert feed["unread_count"] == 1

        assert client.post("/api/v1/notifications/open", headers=ALICE).json()["unread_count"] == 0

        selected = client.post(f"/api/v1/notifications/{alert['id']}/select", headers=ALICE)
        assert selected.json() == {"order_id": "o1"}
        assert client.post("/api/v1/notifications/missing/select", headers=ALICE).status_code == 404

        cleared = client.post("/api/v1/notifications/clear", headers=ALICE).json()
        assert cleared["notifications"] == []

    def test_full_page_keeps_unread_at_zero(self, client, live_store):
        client.get("/api/v1/notifications", headers=LEADER)
        live_store.update("orders", "o3", {"status": "completed"})

        data = client.get("/api/v1/notifications", headers=LEADER, params={"full_page": True}).json()

        assert len(data["notifications"]) == 1
        assert data["unread_count"] == 0

    def test_only_leaders_send_alerts(self, client):
        response = client.post(
            "/api/v1/alerts",
            headers=ALICE,
            json={"recipient_email": "bob@example.com", "order_id": "o3", "message": "hi"},
        )
        assert response.status_code == 403

    def test_end_session(self, client, live_store):
        client.get("/api/v1/notifications", headers=ALICE)
        before = live_store.listener_count

        assert client.delete("/api/v1/notifications/session", headers=ALICE).status_code == 204
        assert live_store.listener_count == before - 2
