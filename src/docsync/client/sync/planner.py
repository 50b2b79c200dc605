"""Bulk mutation planning for one document collection.

Raw items are classified before they are broadcast:
- ``{"$id": ...}`` and nothing else: delete the existing document
- ``$id`` plus other fields: replace the existing document's fields
- no ``$id``: compose a new document

A lookup or compose failure only drops that item; the rest of the plan is
still submitted. Large inputs are regulated into chunks and each chunk is
planned, broadcast and committed before the next one starts.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from docsync.client.api import RESERVED_PREFIX
from docsync.client.sync.types import (
    ID_KEY,
    ComposeFunction,
    Item,
    LookupFunction,
    MutationResult,
    OperationSet,
)
from docsync.core.regulator import (
    MAX_DOCUMENTS_PER_PAYLOAD,
    MAX_KILOBYTES_PER_PAYLOAD,
    regulate_payload,
)

if TYPE_CHECKING:
    from docsync.client.sync.broadcaster import BatchBroadcaster
    from docsync.client.sync.mirror import LocalMirror

logger = logging.getLogger(__name__)


def is_delete(item: Item) -> bool:
    """Check if a raw item only carries its id."""
    return set(item) == {ID_KEY}


def user_fields(item: Item) -> dict[str, Any]:
    """Return the fields of a raw item that are not reserved."""
    return {
        key: value
        for key, value in item.items()
        if not key.startswith(RESERVED_PREFIX)
    }


class BulkMutationPlanner:
    """Classify raw items into operations and apply them to a collection."""

    def __init__(
        self,
        lookup_fn: LookupFunction,
        compose_fn: ComposeFunction,
        broadcaster: BatchBroadcaster,
        mirror: LocalMirror,
        max_kilobytes: float = MAX_KILOBYTES_PER_PAYLOAD,
        max_items: int = MAX_DOCUMENTS_PER_PAYLOAD,
    ) -> None:
        """Initialize the planner.

        Args:
            lookup_fn: Returns the existing remote document for an id.
            compose_fn: Composes a new, unsubmitted document from fields.
            broadcaster: Submits planned operations.
            mirror: Local mirror committed to after each accepted chunk.
            max_kilobytes: Size budget used to chunk raw items.
            max_items: Item budget used to chunk raw items.
        """
        self._lookup_fn = lookup_fn
        self._compose_fn = compose_fn
        self._broadcaster = broadcaster
        self._mirror = mirror
        self._max_kilobytes = max_kilobytes
        self._max_items = max_items

    def plan(self, raw_items: list[Item]) -> OperationSet:
        """Classify raw items into create, replace and delete operations.

        Items whose lookup or compose fails are left out.
        """
        operations, _ = self._plan(raw_items)
        return operations

    def apply(self, raw_items: list[Item]) -> MutationResult:
        """Plan, broadcast and commit raw items chunk by chunk.

        Each regulated chunk is committed to the mirror once its broadcast
        succeeds. The first failed broadcast stops processing; nothing from
        that chunk or later ones is committed and their planned items are
        reported as pending. Items skipped during planning are only reported
        as skipped.

        Args:
            raw_items: Items to create, replace or delete.

        Returns:
            MutationResult with committed documents, evicted ids and any
            skipped or pending raw items.
        """
        result = MutationResult(success=True)
        pending = list(raw_items)

        while pending:
            batch = regulate_payload(
                {"items": pending},
                max_kilobytes=self._max_kilobytes,
                max_items=self._max_items,
                force_first=True,
            )
            included = batch.included["items"]
            pending = batch.remainder["items"]

            operations, skipped = self._plan(included)
            result.skipped.extend(skipped)

            if not self._execute(operations, result):
                unplanned = {id(item) for item in skipped}
                result.pending = [
                    item for item in included if id(item) not in unplanned
                ] + pending
                return result

        return result

    def execute(self, operations: OperationSet) -> MutationResult:
        """Broadcast already planned operations and commit them."""
        result = MutationResult(success=True)
        self._execute(operations, result)
        return result

    def _plan(self, raw_items: list[Item]) -> tuple[OperationSet, list[Item]]:
        operations = OperationSet()
        skipped: list[Item] = []

        for item in raw_items:
            try:
                if is_delete(item):
                    operations.delete.append(self._lookup(item[ID_KEY]))
                elif item.get(ID_KEY):
                    document = self._lookup(item[ID_KEY])
                    document.set_data(user_fields(item))
                    operations.replace.append(document)
                else:
                    operations.create.append(self._compose_fn(user_fields(item)))
            except Exception as e:
                logger.debug(f"Skipping item {item.get(ID_KEY, '<new>')}: {e}")
                skipped.append(item)

        return operations, skipped

    def _lookup(self, document_id: str) -> Any:
        document = self._lookup_fn(document_id)
        if document is None:
            raise LookupError(f"Document {document_id!r} not found")
        return document

    def _execute(self, operations: OperationSet, result: MutationResult) -> bool:
        outcome = self._broadcaster.submit(operations)
        if not outcome.success:
            result.success = False
            result.error = outcome.error
            return False

        for document in [*operations.create, *operations.replace]:
            snapshot = document.to_json()
            self._mirror.put(snapshot)
            result.committed.append(snapshot)

        for document in operations.delete:
            self._mirror.remove(document.id)
            result.evicted.append(document.id)

        return True
