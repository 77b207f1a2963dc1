"""
Test Suite Configuration
"""
from datetime import datetime, timedelta, timezone
from typing import Callable, List

import pytest

from orderdesk.config import Settings
from orderdesk.domain.models import Editor, Order, UserRole, Viewer
from orderdesk.store.memory import InMemoryDocumentStore

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Settable clock shared by the store and the components under test"""

    def __init__(self, start: datetime = NOW):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


@pytest.fixture(scope="session")
def test_settings() -> Settings:
    """Create test settings"""
    return Settings(
        app_env="testing",
        debug=True,
    )


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock) -> InMemoryDocumentStore:
    """Empty in-memory store driven by the test clock"""
    return InMemoryDocumentStore(clock=clock)


@pytest.fixture
def leader() -> Viewer:
    return Viewer(email="lead@example.com", role=UserRole.TEAM_LEADER, display_name="Lena Lead")


@pytest.fixture
def editor_viewer() -> Viewer:
    return Viewer(email="alice@example.com", role=UserRole.EDITOR, display_name="Alice")


@pytest.fixture
def make_order() -> Callable[..., Order]:
    """Build an Order with sensible defaults"""
    counter = iter(range(1, 10_000))

    def _make(**fields) -> Order:
        fields.setdefault("id", f"ord-{next(counter)}")
        fields.setdefault("name", f"Order {fields['id']}")
        fields.setdefault("created_at", NOW - timedelta(days=1))
        return Order(**fields)

    return _make


@pytest.fixture
def sample_editors() -> List[Editor]:
    """Three editors: two veterans and one who joined last week"""
    return [
        Editor(
            id="u-alice",
            email="alice@example.com",
            display_name="Alice",
            status="Active",
            created_at=NOW - timedelta(days=200),
        ),
        Editor(
            id="u-bob",
            email="bob@example.com",
            display_name="Bob",
            status="Active",
            created_at=NOW - timedelta(days=90),
        ),
        Editor(
            id="u-carol",
            email="carol@example.com",
            status="Active",
            created_at=NOW - timedelta(days=7),
        ),
    ]


@pytest.fixture
def sample_orders(make_order) -> List[Order]:
    """Orders across statuses, assignees and months"""
    return [
        make_order(
            id="o1",
            status="completed",
            assigned_editor_emails=["alice@example.com"],
            created_at=NOW - timedelta(days=3),
            completed_at=NOW - timedelta(days=1),
        ),
        make_order(
            id="o2",
            status="completed",
            assigned_editor_emails=["alice@example.com", "bob@example.com"],
            created_at=NOW - timedelta(days=5),
            completed_at=NOW - timedelta(days=2),
        ),
        make_order(
            id="o3",
            status="in-progress",
            assigned_editor_emails=["bob@example.com"],
            created_at=NOW - timedelta(days=2),
        ),
        make_order(
            id="o4",
            status="pending",
            assigned_editor_emails=["bob@example.com", "carol@example.com"],
            created_at=NOW - timedelta(days=1),
        ),
        make_order(
            id="o5",
            status="completed",
            assigned_editor_emails=["carol@example.com"],
            created_at=datetime(2024, 3, 10, tzinfo=timezone.utc),
            completed_at=datetime(2024, 3, 12, tzinfo=timezone.utc),
        ),
    ]


def _order_doc(**fields) -> dict:
    doc = {
        "name": "Wedding album",
        "telecaller": "Tom",
        "status": "pending",
        "assignedEditorEmails": [],
        "createdAt": NOW,
    }
    doc.update(fields)
    return doc


@pytest.fixture
def order_doc() -> Callable[..., dict]:
    """Raw order document as stored, with camelCase keys"""
    return _order_doc
