"""
Document Store Module
"""
from .base import (
    SERVER_TIMESTAMP,
    ChangeBatch,
    ChangeKind,
    DocumentChange,
    DocumentNotFoundError,
    DocumentStore,
    FieldFilter,
    FilterOp,
    OrderBy,
    Query,
    StoreError,
    Subscription,
    SubscriptionError,
)
from .live import LiveCollection
from .memory import InMemoryDocumentStore

__all__ = [
    "SERVER_TIMESTAMP",
    "ChangeBatch",
    "ChangeKind",
    "DocumentChange",
    "DocumentNotFoundError",
    "DocumentStore",
    "FieldFilter",
    "FilterOp",
    "OrderBy",
    "Query",
    "StoreError",
    "Subscription",
    "SubscriptionError",
    "LiveCollection",
    "InMemoryDocumentStore",
]
