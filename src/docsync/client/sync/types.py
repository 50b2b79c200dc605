"""Shared types and dataclasses for document sync.

This module provides:
- SyncError, PaginationError: Exception classes
- OperationSet: Documents to create, replace and delete in one unit
- BroadcastOutcome: Result of submitting an OperationSet in chunks
- MutationResult: Result of a public mutating operation
- FailurePolicy: What the broadcaster does when a chunk fails
- Type aliases for remote capabilities
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from docsync.client.api import Document, Identity

# Raw record exchanged with callers. ``$id`` is the identity key.
Item = dict[str, Any]

ID_KEY = "$id"
OPERATION_KEYS = ("create", "replace", "delete")


class SyncError(Exception):
    """Base exception for sync errors."""


class PaginationError(SyncError):
    """A paginated query did not terminate."""


class FailurePolicy(Enum):
    """Behaviour of the broadcaster when a chunk submission fails."""

    HALT = "halt"  # Stop at the first failed chunk
    RETRY = "retry"  # Retry the chunk with backoff, then stop


@dataclass
class OperationSet:
    """Documents to create, replace and delete.

    A document appears in at most one of the three lists.
    """

    create: list[Any] = field(default_factory=list)
    replace: list[Any] = field(default_factory=list)
    delete: list[Any] = field(default_factory=list)

    def is_empty(self) -> bool:
        """Check if there is nothing to submit."""
        return not (self.create or self.replace or self.delete)

    def __len__(self) -> int:
        return len(self.create) + len(self.replace) + len(self.delete)

    def as_payload(self) -> dict[str, list[Any]]:
        """Return the lists keyed by operation name, in submit order."""
        return {
            "create": list(self.create),
            "replace": list(self.replace),
            "delete": list(self.delete),
        }

    @classmethod
    def from_payload(cls, payload: dict[str, list[Any]]) -> OperationSet:
        """Build from a mapping keyed by operation name."""
        return cls(
            create=list(payload.get("create", [])),
            replace=list(payload.get("replace", [])),
            delete=list(payload.get("delete", [])),
        )


@dataclass
class BroadcastOutcome:
    """Result of broadcasting an OperationSet.

    Attributes:
        success: Whether every chunk was accepted.
        chunks_sent: Number of chunks accepted by the platform.
        error: Error message of the failed chunk.
        unsent: Operations not accepted (failed chunk and everything after).
    """

    success: bool
    chunks_sent: int = 0
    error: str | None = None
    unsent: OperationSet = field(default_factory=OperationSet)


@dataclass
class MutationResult:
    """Result of create, replace, delete or bulk apply.

    Attributes:
        success: Whether every submitted chunk was accepted.
        error: Error message if failed.
        committed: Items written to the local mirror.
        evicted: Ids removed from the local mirror.
        skipped: Raw items dropped because their lookup or compose failed.
        pending: Raw items whose chunk failed or was never submitted.
    """

    success: bool
    error: str | None = None
    committed: list[Item] = field(default_factory=list)
    evicted: list[str] = field(default_factory=list)
    skipped: list[Item] = field(default_factory=list)
    pending: list[Item] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.success


# Remote capabilities used by the core
QueryFunction = Callable[[dict[str, Any]], list[Any]]
LookupFunction = Callable[[str], "Document | None"]
ComposeFunction = Callable[[Item], "Document"]
BroadcastFunction = Callable[[OperationSet, "Identity"], None]
IdentityProvider = Callable[[], "Identity | None"]
