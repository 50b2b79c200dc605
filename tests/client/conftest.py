"""Shared fixtures for client tests."""

from __future__ import annotations

from typing import Any

import pytest

from docsync.client.api import Account, APIError, Document, Identity
from docsync.client.sync.types import OperationSet
from docsync.core.config import ServerConfig


class FakePlatform:
    """In-memory stand-in for PlatformClient.

    Stores documents per type, honours ``where``/``startAt``/``limit`` in
    queries, and records every broadcast. Broadcast number N (1-based)
    raises APIError if N is in ``fail_broadcasts``.
    """

    def __init__(self) -> None:
        self.config = ServerConfig(server_url="http://test", token="token123")
        self.contract_id: str | None = None
        self.mnemonic: str | None = None
        self.network = "livenet"
        self.documents: dict[str, dict[str, Document]] = {}
        self.queries: list[tuple[str, dict[str, Any]]] = []
        self.broadcasts: list[OperationSet] = []
        self.fail_broadcasts: set[int] = set()
        self.fail_queries = False
        self.fail_register = False
        self.registered: list[Identity] = []
        self.account_calls = 0
        self.identity_calls: list[str] = []
        self.closed = False
        self._next_id = 0

    # Test helpers

    def seed(self, document_type: str, count: int) -> list[Document]:
        seeded = []
        for i in range(count):
            document = Document(
                id=f"{document_type}-{i:04d}",
                type=document_type,
                owner_id="owner",
                data={"n": i},
            )
            self.documents.setdefault(document_type, {})[document.id] = document
            seeded.append(document)
        return seeded

    def queried_types(self) -> list[str]:
        return [document_type for document_type, _ in self.queries]

    # PlatformClient interface

    def configure(
        self,
        contract_id: str | None = None,
        mnemonic: str | None = None,
        network: str = "livenet",
    ) -> None:
        self.contract_id = contract_id
        self.mnemonic = mnemonic
        self.network = network

    def close(self) -> None:
        self.closed = True

    def health_check(self) -> bool:
        return not self.fail_queries

    def query_documents(
        self, document_type: str, query: dict[str, Any] | None = None
    ) -> list[Document]:
        query = dict(query or {})
        self.queries.append((document_type, query))
        if self.fail_queries:
            raise APIError("query failed", 500)

        results = list(self.documents.get(document_type, {}).values())
        for field, _, value in query.get("where", []):
            results = [d for d in results if d.to_json().get(field) == value]

        start = query.get("startAt", 0)
        limit = query.get("limit", len(results))
        return [
            Document(d.id, d.type, d.owner_id, d.revision, dict(d.data))
            for d in results[start : start + limit]
        ]

    def get_document(self, document_type: str, document_id: str) -> Document | None:
        documents = self.query_documents(document_type, {"where": [["$id", "==", document_id]]})
        return documents[0] if documents else None

    def create_document(
        self, document_type: str, identity: Identity, fields: dict[str, Any]
    ) -> Document:
        self._next_id += 1
        return Document(
            id=f"new-{self._next_id}",
            type=document_type,
            owner_id=identity.id,
            data=dict(fields),
        )

    def broadcast(self, operations: OperationSet, identity: Identity) -> None:
        self.broadcasts.append(operations)
        if len(self.broadcasts) in self.fail_broadcasts:
            raise APIError("broadcast rejected", 400)

        for document in [*operations.create, *operations.replace]:
            self.documents.setdefault(document.type, {})[document.id] = document
        for document in operations.delete:
            self.documents.get(document.type, {}).pop(document.id, None)

    def get_wallet_account(self) -> Account:
        self.account_calls += 1
        return Account(index=0, identity_ids=["identity-1", "identity-2"])

    def get_identity(self, identity_id: str) -> Identity:
        self.identity_calls.append(identity_id)
        return Identity(id=identity_id)

    def register_identity(self) -> Identity:
        if self.fail_register:
            raise APIError("insufficient balance", 400)
        identity = Identity(id=f"registered-{len(self.registered) + 1}")
        self.registered.append(identity)
        return identity


@pytest.fixture
def platform() -> FakePlatform:
    """Create an empty in-memory platform."""
    return FakePlatform()


@pytest.fixture
def identity() -> Identity:
    """Identity used to sign broadcasts."""
    return Identity(id="identity-1")
