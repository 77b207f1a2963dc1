"""
Live Collections

Local mirror of a store query kept current by its change stream.
"""

import threading
from typing import Any, Dict, List, Optional, Tuple

import structlog

from orderdesk.store.base import ChangeBatch, ChangeKind, DocumentStore, Query, Subscription, SubscriptionError
from orderdesk.monitoring import BATCHES_RECEIVED, SUBSCRIPTION_ERRORS

logger = structlog.get_logger(__name__)


class LiveCollection:
    """
    Mirror of the documents matching a query.

    Batches replace the mirrored documents in place; a dropped subscription
    keeps the last-known-good documents and records the error.
    """

    def __init__(self, store: DocumentStore, query: Query, name: Optional[str] = None):
        self.store = store
        self.query = query
        self.name = name or query.collection
        self._docs: Dict[str, Dict[str, Any]] = {}
        self._subscription: Optional[Subscription] = None
        self._ready = False
        self._error: Optional[Exception] = None
        self._lock = threading.RLock()

    @property
    def ready(self) -> bool:
        """True once the initial snapshot has arrived"""
        return self._ready

    @property
    def error(self) -> Optional[Exception]:
        return self._error

    @property
    def active(self) -> bool:
        return self._subscription is not None and self._subscription.active

    @property
    def documents(self) -> List[Tuple[str, Dict[str, Any]]]:
        with self._lock:
            return list(self._docs.items())

    def start(self) -> None:
        """(Re)subscribe. An existing subscription is torn down first."""
        self.stop()
        with self._lock:
            self._error = None
        try:
            subscription = self.store.subscribe(self.query, self._apply, self._fail)
        except SubscriptionError as e:
            self._fail(e)
            return
        with self._lock:
            self._subscription = subscription
        logger.info("Live collection started", collection=self.name)

    def stop(self) -> None:
        with self._lock:
            subscription, self._subscription = self._subscription, None
            self._ready = False
        if subscription is not None:
            self.store.unsubscribe(subscription)
            logger.info("Live collection stopped", collection=self.name)

    def _apply(self, batch: ChangeBatch) -> None:
        with self._lock:
            if not self._ready:
                # Initial snapshot replaces whatever a previous subscription left
                self._docs = {c.id: c.data for c in batch if c.kind != ChangeKind.REMOVED}
                self._ready = True
            else:
                for change in batch:
                    if change.kind == ChangeKind.REMOVED:
                        self._docs.pop(change.id, None)
                    else:
                        self._docs[change.id] = change.data
            self._error = None
        BATCHES_RECEIVED.labels(source=self.name).inc()

    def _fail(self, error: Exception) -> None:
        with self._lock:
            self._error = error
        SUBSCRIPTION_ERRORS.labels(source=self.name).inc()
        logger.error("Live collection subscription failed", collection=self.name, error=str(error))
