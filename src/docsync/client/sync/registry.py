"""Registry of per-type document collections.

The registry follows a watched list of document type names. Any change
to that list is a full, destructive resync: collections whose names left
are dropped, every current name gets a fresh collection (existing mirrors
are discarded), and every collection is then refreshed from the platform.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable, Iterator

from docsync.client.sync.collection import DocumentCollection
from docsync.client.sync.types import Item

logger = logging.getLogger(__name__)

# Builds a fresh collection for a document type name
CollectionFactory = Callable[[str], DocumentCollection]


class CollectionRegistry:
    """Own the lifetime of every DocumentCollection."""

    def __init__(self, factory: CollectionFactory) -> None:
        """Initialize an empty registry.

        Args:
            factory: Creates the collection for a document type name.
        """
        self._factory = factory
        self._collections: dict[str, DocumentCollection] = {}
        self._lock = threading.RLock()

    @property
    def names(self) -> list[str]:
        """Get the registered document type names, in registration order."""
        with self._lock:
            return list(self._collections)

    def __contains__(self, name: object) -> bool:
        with self._lock:
            return name in self._collections

    def __iter__(self) -> Iterator[DocumentCollection]:
        with self._lock:
            return iter(list(self._collections.values()))

    def __len__(self) -> int:
        with self._lock:
            return len(self._collections)

    def get(self, name: str) -> DocumentCollection:
        """Get the collection for a document type.

        Raises:
            KeyError: If the type is not registered.
        """
        with self._lock:
            return self._collections[name]

    def watch(self, names: Iterable[str]) -> dict[str, list[Item]]:
        """Apply a new list of watched document type names.

        Args:
            names: Document type names now watched. Duplicates are ignored.

        Returns:
            Documents fetched for each registered type.
        """
        wanted = list(dict.fromkeys(names))

        with self._lock:
            for name in list(self._collections):
                if name not in wanted:
                    self._unregister(name)

            for name in wanted:
                self._register(name)

        return self.refresh_all()

    def refresh_all(self) -> dict[str, list[Item]]:
        """Refresh every registered collection from the platform.

        Returns:
            Documents fetched for each type (empty for failed refreshes).
        """
        return {collection.name: collection.refresh_all() for collection in self}

    def close(self) -> None:
        """Drop every collection."""
        with self._lock:
            for name in list(self._collections):
                self._unregister(name)

    def _register(self, name: str) -> None:
        previous = self._collections.pop(name, None)
        if previous is not None:
            previous.clear()
        self._collections[name] = self._factory(name)
        logger.debug(f"Registered collection {name}")

    def _unregister(self, name: str) -> None:
        collection = self._collections.pop(name)
        collection.clear()
        logger.debug(f"Unregistered collection {name}")
