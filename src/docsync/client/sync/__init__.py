"""Document synchronization.

Architecture:
    CollectionRegistry → DocumentCollection → BulkMutationPlanner → BatchBroadcaster

Components:
- **CollectionRegistry**: One DocumentCollection per watched document type
- **DocumentCollection**: Local mirror plus refresh/fetch/mutate operations
- **BulkMutationPlanner**: Classifies raw items as create/replace/delete
- **BatchBroadcaster**: Submits operations in budget-sized chunks
- **LazyResource**: One-shot initialization of the account and identity
- **AccountActivityListener**: Re-stamps the account on transactions

Page-by-page retrieval lives in ``fetch_all``; payload budgets in
``docsync.core.regulator``.
"""

from docsync.client.sync.activity import AccountActivityListener
from docsync.client.sync.broadcaster import BatchBroadcaster
from docsync.client.sync.collection import DocumentCollection
from docsync.client.sync.mirror import LocalMirror
from docsync.client.sync.pagination import DEFAULT_MAX_PAGES, fetch_all
from docsync.client.sync.planner import BulkMutationPlanner, is_delete, user_fields
from docsync.client.sync.registry import CollectionRegistry
from docsync.client.sync.resources import LazyResource, once
from docsync.client.sync.retry import (
    DEFAULT_BACKOFF_MULTIPLIER,
    DEFAULT_INITIAL_BACKOFF,
    DEFAULT_MAX_BACKOFF,
    DEFAULT_MAX_RETRIES,
    retry_with_backoff,
)
from docsync.client.sync.types import (
    ID_KEY,
    BroadcastOutcome,
    FailurePolicy,
    Item,
    MutationResult,
    OperationSet,
    PaginationError,
    SyncError,
)

__all__ = [
    # Retry functions and constants
    "DEFAULT_BACKOFF_MULTIPLIER",
    "DEFAULT_INITIAL_BACKOFF",
    "DEFAULT_MAX_BACKOFF",
    "DEFAULT_MAX_RETRIES",
    "retry_with_backoff",
    # Types and dataclasses
    "ID_KEY",
    "BroadcastOutcome",
    "FailurePolicy",
    "Item",
    "MutationResult",
    "OperationSet",
    "PaginationError",
    "SyncError",
    # Pagination
    "DEFAULT_MAX_PAGES",
    "fetch_all",
    # Planning and broadcasting
    "BatchBroadcaster",
    "BulkMutationPlanner",
    "is_delete",
    "user_fields",
    # Collections
    "CollectionRegistry",
    "DocumentCollection",
    "LocalMirror",
    # Resources
    "AccountActivityListener",
    "LazyResource",
    "once",
]
