"""Local mirror and operations for one document type.

Every public operation returns a value instead of raising: a remote
failure leaves the mirror untouched and is reported through the result.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from docsync.client.sync.broadcaster import BatchBroadcaster
from docsync.client.sync.mirror import LocalMirror
from docsync.client.sync.pagination import fetch_all
from docsync.client.sync.planner import BulkMutationPlanner, user_fields
from docsync.client.sync.types import (
    ID_KEY,
    FailurePolicy,
    IdentityProvider,
    Item,
    MutationResult,
    OperationSet,
)
from docsync.core.regulator import MAX_DOCUMENTS_PER_QUERY

if TYPE_CHECKING:
    from docsync.client.api import Document, PlatformClient

logger = logging.getLogger(__name__)


class DocumentCollection:
    """Mirror of one remote document type with its sync operations.

    Usage:
        notes = DocumentCollection("note", client, identity.ensure_initialized)
        notes.refresh_all()
        notes.apply_bulk([{"title": "new"}, {"$id": "abc"}])
        notes.all()
    """

    def __init__(
        self,
        name: str,
        client: PlatformClient,
        identity_provider: IdentityProvider,
        all_query: dict[str, Any] | None = None,
        page_size: int = MAX_DOCUMENTS_PER_QUERY,
        failure_policy: FailurePolicy = FailurePolicy.HALT,
    ) -> None:
        """Initialize an empty collection.

        Args:
            name: Document type name.
            client: Platform client providing the remote capabilities.
            identity_provider: Returns the identity owning and signing changes.
            all_query: Base query used by refresh_all().
            page_size: Documents per page when refreshing.
            failure_policy: Broadcaster behaviour on a failed chunk.
        """
        self._name = name
        self._client = client
        self._identity_provider = identity_provider
        self._all_query = dict(all_query or {})
        self._page_size = page_size
        self._refreshed = False

        self._mirror = LocalMirror()
        self._broadcaster = BatchBroadcaster(
            client.broadcast,
            identity_provider,
            failure_policy=failure_policy,
        )
        self._planner = BulkMutationPlanner(
            lookup_fn=self._lookup,
            compose_fn=self._compose_or_raise,
            broadcaster=self._broadcaster,
            mirror=self._mirror,
        )

    @property
    def name(self) -> str:
        """Get the document type name."""
        return self._name

    @property
    def documents(self) -> dict[str, Item]:
        """Get a copy of the mirror keyed by id."""
        return self._mirror.snapshot()

    @property
    def refreshed(self) -> bool:
        """Check if the last refresh_all() succeeded."""
        return self._refreshed

    @property
    def broadcaster(self) -> BatchBroadcaster:
        """Get the broadcaster used for this collection."""
        return self._broadcaster

    def all(self) -> list[Item]:
        """Get every mirrored document."""
        return list(self._mirror.snapshot().values())

    def one(self, document_id: str) -> Item | None:
        """Get a mirrored document without contacting the platform."""
        return self._mirror.get(document_id)

    def clear(self) -> None:
        """Drop the local mirror."""
        self._mirror.clear()

    # === Remote reads ===

    def retrieve(self, query: dict[str, Any] | None = None) -> list[Document]:
        """Query the platform for documents of this type.

        Raises:
            APIError: If the query fails.
        """
        return self._client.query_documents(self._name, query or {})

    def refresh_all(self) -> list[Item]:
        """Fetch every document and replace the mirror with them.

        Returns:
            The fetched documents, or an empty list if fetching failed (the
            mirror is left as it was).
        """
        try:
            documents = fetch_all(self.retrieve, self._all_query, self._page_size)
        except Exception as e:
            logger.warning(f"Failed to refresh {self._name} documents: {e}")
            self._refreshed = False
            return []

        snapshots = [document.to_json() for document in documents]
        self._mirror.replace_all(snapshots)
        self._refreshed = True
        logger.info(f"Refreshed {len(snapshots)} {self._name} document(s)")
        return snapshots

    def fetch_one(self, document_id: str) -> Item | None:
        """Fetch one document by id and store it in the mirror.

        Returns:
            The document, or None if it was not found or the query failed.
        """
        try:
            document = self._lookup(document_id)
        except Exception as e:
            logger.debug(f"Failed to fetch {self._name} {document_id}: {e}")
            return None

        if document is None:
            return None

        snapshot = document.to_json()
        self._mirror.put(snapshot)
        return snapshot

    def compose(self, fields: Item) -> Document | None:
        """Compose a new, unsubmitted document from fields.

        Returns:
            The composed document, or None if composing failed.
        """
        try:
            return self._compose_or_raise(fields)
        except Exception as e:
            logger.debug(f"Failed to compose {self._name} document: {e}")
            return None

    # === Mutations ===

    def apply_bulk(self, raw_items: list[Item]) -> MutationResult:
        """Create, replace and delete documents from raw items.

        See BulkMutationPlanner for how items are classified.
        """
        return self._planner.apply(raw_items)

    def create(self, fields: Item) -> MutationResult:
        """Create a document from fields."""
        created = self.compose(fields)
        if created is None:
            return MutationResult(success=False, error="Compose failed", skipped=[fields])
        return self._planner.execute(OperationSet(create=[created]))

    def replace(self, fields: Item) -> MutationResult:
        """Replace the fields of an existing document.

        Args:
            fields: New fields, including the document's ``$id``.
        """
        document_id = fields.get(ID_KEY)
        if not document_id:
            return MutationResult(success=False, error="Missing $id", skipped=[fields])

        document = self._lookup_or_none(document_id)
        if document is None:
            return MutationResult(success=False, error="Lookup failed", skipped=[fields])

        document.set_data(user_fields(fields))
        return self._planner.execute(OperationSet(replace=[document]))

    def delete(self, document_id: str) -> MutationResult:
        """Delete a document by id."""
        document = self._lookup_or_none(document_id)
        if document is None:
            return MutationResult(
                success=False,
                error="Lookup failed",
                skipped=[{ID_KEY: document_id}],
            )
        return self._planner.execute(OperationSet(delete=[document]))

    # === Remote capabilities ===

    def _lookup(self, document_id: str) -> Document | None:
        return self._client.get_document(self._name, document_id)

    def _lookup_or_none(self, document_id: str) -> Document | None:
        try:
            return self._lookup(document_id)
        except Exception as e:
            logger.debug(f"Failed to look up {self._name} {document_id}: {e}")
            return None

    def _compose_or_raise(self, fields: Item) -> Document:
        identity = self._identity_provider()
        if identity is None:
            raise LookupError("No identity available")
        return self._client.create_document(self._name, identity, user_fields(fields))
