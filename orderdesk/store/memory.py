"""
In-Memory Document Store

Process-local implementation of the DocumentStore contract, used for local
development, demos and tests. It mirrors the behaviour the dashboard relies
on from a hosted document database:

- subscribe() first delivers the full matching snapshot as ``added`` changes
- every write is turned into per-listener added/modified/removed changes
- write_batch() groups several writes into a single batch per listener
- SERVER_TIMESTAMP placeholders are resolved with the store clock
- disconnect() drops all live listeners with an error, like a lost stream

Deliveries go through one FIFO outbox, so a listener that writes back to the
store from its callback never sees changes out of order.
"""

import copy
import threading
from collections import defaultdict, deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Deque, Dict, Iterator, List, Optional, Set, Tuple
import uuid

import structlog

from orderdesk.store.base import (
    SERVER_TIMESTAMP,
    BatchCallback,
    ChangeBatch,
    ChangeKind,
    DocumentChange,
    DocumentNotFoundError,
    DocumentStore,
    ErrorCallback,
    Query,
    Subscription,
    SubscriptionError,
)

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


@dataclass
class _Listener:
    subscription: Subscription
    on_batch: BatchCallback
    on_error: Optional[ErrorCallback]
    matched: Set[str] = field(default_factory=set)


class InMemoryDocumentStore(DocumentStore):
    """
    Thread-safe dictionary-backed document store.

    Example:
        store = InMemoryDocumentStore()
        q = store.query("orders")
        sub = store.subscribe(q, on_batch=print)
        store.add("orders", {"status": "pending"})
        sub.unsubscribe()
    """

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = defaultdict(dict)
        self._listeners: Dict[str, _Listener] = {}
        self._lock = threading.RLock()
        self._connected = True

        # (collection, doc_id) -> document before the first write of the batch
        self._pending: Optional[Dict[Tuple[str, str], Optional[Dict[str, Any]]]] = None
        self._outbox: Deque[Tuple[Callable[..., None], Any]] = deque()
        self._delivering = False

    # -------------------------------------------------------------------------
    # Subscriptions
    # -------------------------------------------------------------------------

    def subscribe(
        self,
        query: Query,
        on_batch: BatchCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        with self._lock:
            if not self._connected:
                raise SubscriptionError(f"Store unavailable, cannot listen to '{query.collection}'")

            subscription = Subscription(query, self._release)
            listener = _Listener(subscription=subscription, on_batch=on_batch, on_error=on_error)
            self._listeners[subscription.id] = listener

            snapshot = self._run_query(query)
            listener.matched = {doc_id for doc_id, _ in snapshot}
            initial = ChangeBatch(
                tuple(DocumentChange(ChangeKind.ADDED, doc_id, data) for doc_id, data in snapshot)
            )

            logger.debug(
                "Listener registered",
                collection=query.collection,
                subscription=subscription.id,
                initial_size=len(initial),
            )

            self._outbox.append((self._deliver_batch, (listener, initial)))
            self._flush()

        return subscription

    def _release(self, subscription: Subscription) -> None:
        with self._lock:
            if self._listeners.pop(subscription.id, None) is not None:
                logger.debug("Listener released", subscription=subscription.id)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def disconnect(self, error: Optional[Exception] = None) -> None:
        """Drop every live listener with an error and refuse new ones"""
        error = error or SubscriptionError("Connection to document store lost")
        with self._lock:
            self._connected = False
            dropped = list(self._listeners.values())
            for listener in dropped:
                listener.subscription.unsubscribe()
                self._outbox.append((self._deliver_error, (listener, error)))

            logger.warning("Document store disconnected", dropped_listeners=len(dropped))
            self._flush()

    def reconnect(self) -> None:
        """Accept new listeners again"""
        with self._lock:
            self._connected = True
        logger.info("Document store reconnected")

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            doc = self._collections[collection].get(doc_id)
            return copy.deepcopy(doc) if doc is not None else None

    def documents(self, query: Query) -> List[Tuple[str, Dict[str, Any]]]:
        with self._lock:
            return self._run_query(query)

    def _run_query(self, query: Query) -> List[Tuple[str, Dict[str, Any]]]:
        matches = [
            (doc_id, copy.deepcopy(data))
            for doc_id, data in self._collections[query.collection].items()
            if query.matches(data)
        ]
        if query.order_by is None:
            return matches

        key = query.order_by.field
        present = [m for m in matches if m[1].get(key) is not None]
        missing = [m for m in matches if m[1].get(key) is None]
        present.sort(key=lambda m: m[1][key], reverse=query.order_by.descending)
        return present + missing

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    def add(self, collection: str, data: Dict[str, Any]) -> str:
        doc_id = uuid.uuid4().hex[:20]
        self.set(collection, doc_id, data)
        return doc_id

    def set(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = False) -> None:
        with self._lock:
            docs = self._collections[collection]
            resolved = self._resolve(data)
            if merge and doc_id in docs:
                new_doc = {**docs[doc_id], **resolved}
            else:
                new_doc = resolved
            self._write(collection, doc_id, new_doc)

    def update(self, collection: str, doc_id: str, data: Dict[str, Any]) -> None:
        with self._lock:
            docs = self._collections[collection]
            if doc_id not in docs:
                raise DocumentNotFoundError(collection, doc_id)
            self._write(collection, doc_id, {**docs[doc_id], **self._resolve(data)})

    def delete(self, collection: str, doc_id: str) -> None:
        with self._lock:
            if doc_id not in self._collections[collection]:
                return
            self._write(collection, doc_id, None)

    @contextmanager
    def write_batch(self) -> Iterator["InMemoryDocumentStore"]:
        """
        Group writes so each listener receives them as one batch.

        Example:
            with store.write_batch():
                store.update("orders", "a", {"status": "completed"})
                store.update("orders", "b", {"status": "completed"})
        """
        with self._lock:
            if self._pending is not None:
                # Nested batch joins the outer one
                yield self
                return

            self._pending = {}
            try:
                yield self
            finally:
                touched, self._pending = self._pending, None
                self._publish(touched)

    def _write(self, collection: str, doc_id: str, new_doc: Optional[Dict[str, Any]]) -> None:
        docs = self._collections[collection]
        before = docs.get(doc_id)

        if new_doc is None:
            docs.pop(doc_id, None)
        else:
            docs[doc_id] = new_doc

        if self._pending is not None:
            self._pending.setdefault((collection, doc_id), before)
        else:
            self._publish({(collection, doc_id): before})

    def _resolve(self, data: Dict[str, Any]) -> Dict[str, Any]:
        now = self._clock()

        def resolve(value: Any) -> Any:
            if value is SERVER_TIMESTAMP:
                return now
            if isinstance(value, dict):
                return {k: resolve(v) for k, v in value.items()}
            if isinstance(value, list):
                return [resolve(v) for v in value]
            return copy.deepcopy(value)

        return {k: resolve(v) for k, v in data.items()}

    # -------------------------------------------------------------------------
    # Change propagation
    # -------------------------------------------------------------------------

    def _publish(self, touched: Dict[Tuple[str, str], Optional[Dict[str, Any]]]) -> None:
        for listener in list(self._listeners.values()):
            query = listener.subscription.query
            changes = []

            for (collection, doc_id), before in touched.items():
                if collection != query.collection:
                    continue

                after = self._collections[collection].get(doc_id)
                was_in = doc_id in listener.matched
                now_in = after is not None and query.matches(after)

                if now_in and not was_in:
                    listener.matched.add(doc_id)
                    changes.append(DocumentChange(ChangeKind.ADDED, doc_id, copy.deepcopy(after)))
                elif now_in and was_in:
                    if after != before:
                        changes.append(DocumentChange(ChangeKind.MODIFIED, doc_id, copy.deepcopy(after)))
                elif was_in:
                    listener.matched.discard(doc_id)
                    changes.append(DocumentChange(ChangeKind.REMOVED, doc_id, copy.deepcopy(before or {})))

            if changes:
                self._outbox.append((self._deliver_batch, (listener, ChangeBatch(tuple(changes)))))

        self._flush()

    def _flush(self) -> None:
        if self._delivering:
            return
        self._delivering = True
        try:
            while self._outbox:
                deliver, args = self._outbox.popleft()
                deliver(*args)
        finally:
            self._delivering = False

    def _deliver_batch(self, listener: _Listener, batch: ChangeBatch) -> None:
        if not listener.subscription.active:
            return
        listener.on_batch(batch)

    def _deliver_error(self, listener: _Listener, error: Exception) -> None:
        if listener.on_error is None:
            logger.error(
                "Listener dropped without error handler",
                collection=listener.subscription.query.collection,
                error=str(error),
            )
            return
        listener.on_error(error)
