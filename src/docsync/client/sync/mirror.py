"""In-memory mirror of one remote document collection.

Documents are stored as flat JSON dicts keyed by ``$id``. Reads return
copies so callers never hold a reference into the mirror.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable

from docsync.client.sync.types import ID_KEY, Item


class LocalMirror:
    """Thread-safe mapping of document id to last-known snapshot."""

    def __init__(self) -> None:
        self._documents: dict[str, Item] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._documents)

    def __contains__(self, document_id: object) -> bool:
        with self._lock:
            return document_id in self._documents

    def get(self, document_id: str) -> Item | None:
        """Get a snapshot by id."""
        with self._lock:
            document = self._documents.get(document_id)
        return dict(document) if document is not None else None

    def snapshot(self) -> dict[str, Item]:
        """Get a copy of every document keyed by id."""
        with self._lock:
            return {key: dict(value) for key, value in self._documents.items()}

    def put(self, document: Item) -> None:
        """Insert or overwrite a document."""
        with self._lock:
            self._documents[document[ID_KEY]] = dict(document)

    def remove(self, document_id: str) -> bool:
        """Remove a document.

        Returns:
            True if the document was present.
        """
        with self._lock:
            return self._documents.pop(document_id, None) is not None

    def replace_all(self, documents: Iterable[Item]) -> None:
        """Swap the whole mirror for the given documents."""
        fresh = {document[ID_KEY]: dict(document) for document in documents}
        with self._lock:
            self._documents = fresh

    def clear(self) -> None:
        """Drop every document."""
        with self._lock:
            self._documents = {}
