"""
Document Store Interface

The dashboard treats its backend as an opaque document store offering
queries, push subscriptions and writes. This module defines that contract:

- Query / FieldFilter / OrderBy: declarative query handles
- DocumentChange / ChangeBatch: what a subscription delivers
- Subscription: cancellable token returned by subscribe()
- DocumentStore: abstract base for concrete stores
"""

import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple
import uuid


# =============================================================================
# ERRORS
# =============================================================================

class StoreError(Exception):
    """Base class for document store failures"""


class DocumentNotFoundError(StoreError):
    """Raised when a write targets a document that does not exist"""

    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"{collection}/{doc_id} not found")
        self.collection = collection
        self.doc_id = doc_id


class SubscriptionError(StoreError):
    """A live subscription failed to establish or was dropped"""


# =============================================================================
# SENTINELS
# =============================================================================

class _ServerTimestamp:
    """Placeholder replaced by the store's clock when a write is applied"""

    def __repr__(self) -> str:
        return "SERVER_TIMESTAMP"


SERVER_TIMESTAMP = _ServerTimestamp()


# =============================================================================
# QUERIES
# =============================================================================

class FilterOp(str, Enum):
    """Supported filter operators"""
    EQ = "=="
    ARRAY_CONTAINS = "array-contains"


@dataclass(frozen=True)
class FieldFilter:
    """Single field predicate"""
    field: str
    op: FilterOp
    value: Any

    def matches(self, data: Dict[str, Any]) -> bool:
        actual = data.get(self.field)
        if self.op == FilterOp.EQ:
            return actual == self.value
        if self.op == FilterOp.ARRAY_CONTAINS:
            return isinstance(actual, (list, tuple)) and self.value in actual
        raise ValueError(f"Unsupported filter operator: {self.op}")


@dataclass(frozen=True)
class OrderBy:
    """Result ordering"""
    field: str
    descending: bool = False


@dataclass(frozen=True)
class Query:
    """Query handle over one collection"""
    collection: str
    filters: Tuple[FieldFilter, ...] = ()
    order_by: Optional[OrderBy] = None

    def matches(self, data: Dict[str, Any]) -> bool:
        return all(f.matches(data) for f in self.filters)


# =============================================================================
# CHANGE STREAM
# =============================================================================

class ChangeKind(str, Enum):
    """Document change kinds"""
    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"


@dataclass(frozen=True)
class DocumentChange:
    """One document change inside a batch"""
    kind: ChangeKind
    id: str
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ChangeBatch:
    """Changes delivered together by one subscription callback"""
    changes: Tuple[DocumentChange, ...] = ()

    def __iter__(self):
        return iter(self.changes)

    def __len__(self) -> int:
        return len(self.changes)

    @property
    def is_empty(self) -> bool:
        return not self.changes


BatchCallback = Callable[[ChangeBatch], None]
ErrorCallback = Callable[[Exception], None]


class Subscription:
    """
    Token for a live query listener.

    Cancelling is idempotent: the release hook runs at most once.
    """

    def __init__(self, query: Query, release: Callable[["Subscription"], None]):
        self.id = uuid.uuid4().hex
        self.query = query
        self._release = release
        self._active = True
        self._lock = threading.Lock()

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False
        self._release(self)

    def __repr__(self) -> str:
        state = "active" if self._active else "closed"
        return f"<Subscription {self.query.collection} {state}>"


# =============================================================================
# STORE INTERFACE
# =============================================================================

class DocumentStore(ABC):
    """Abstract document store with live queries"""

    def query(
        self,
        collection: str,
        filters: Iterable[FieldFilter] = (),
        order_by: Optional[OrderBy] = None,
    ) -> Query:
        """Build a query handle"""
        return Query(collection=collection, filters=tuple(filters), order_by=order_by)

    @abstractmethod
    def subscribe(
        self,
        query: Query,
        on_batch: BatchCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        """
        Listen to a query.

        The first batch is the initial snapshot with every matching document
        tagged ``added``; later batches carry incremental changes.
        """

    def unsubscribe(self, subscription: Subscription) -> None:
        """Cancel a subscription. Safe to call more than once."""
        subscription.unsubscribe()

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        """Fetch one document, or None"""

    @abstractmethod
    def documents(self, query: Query) -> List[Tuple[str, Dict[str, Any]]]:
        """Run a query once"""

    @abstractmethod
    def add(self, collection: str, data: Dict[str, Any]) -> str:
        """Create a document with a generated id"""

    @abstractmethod
    def set(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = False) -> None:
        """Create or overwrite a document"""

    @abstractmethod
    def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        """Update fields of an existing document"""

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> None:
        """Remove a document"""
