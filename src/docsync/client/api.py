"""HTTP client for the document platform API.

This module provides:
- PlatformClient: HTTP client for communicating with the platform gateway
- Document query, compose and broadcast operations
- Wallet account and identity lookups, identity registration
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import httpx

if TYPE_CHECKING:
    from docsync.client.sync.types import OperationSet
    from docsync.core.config import ServerConfig

logger = logging.getLogger(__name__)

# Keys starting with this marker are managed by the platform
RESERVED_PREFIX = "$"

# Network selection travels with every request
NETWORK_HEADER = "X-Network"
DEFAULT_NETWORK = "livenet"


class APIError(Exception):
    """Base exception for API errors."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(APIError):
    """Authentication failed."""


class ConflictError(APIError):
    """Revision conflict detected."""


class NotFoundError(APIError):
    """Resource not found."""


@dataclass
class Document:
    """Document as stored by the platform.

    Attributes:
        id: Platform-assigned document id (``$id``).
        type: Document type name (``$type``).
        owner_id: Identity owning the document (``$ownerId``).
        revision: Revision number, bumped on every replace (``$revision``).
        data: User fields.
    """

    id: str
    type: str
    owner_id: str | None = None
    revision: int = 1
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Document:
        """Create from API response dictionary."""
        return cls(
            id=data["$id"],
            type=data.get("$type", ""),
            owner_id=data.get("$ownerId"),
            revision=data.get("$revision", 1),
            data={
                key: value
                for key, value in data.items()
                if not key.startswith(RESERVED_PREFIX)
            },
        )

    def to_json(self) -> dict[str, Any]:
        """Flatten into the platform's wire representation."""
        return {
            "$id": self.id,
            "$type": self.type,
            "$ownerId": self.owner_id,
            "$revision": self.revision,
            **self.data,
        }

    def set_data(self, fields: dict[str, Any]) -> None:
        """Merge user fields into the document, ignoring reserved keys."""
        self.data.update(
            {
                key: value
                for key, value in fields.items()
                if not key.startswith(RESERVED_PREFIX)
            }
        )


@dataclass
class Identity:
    """Identity used to sign document broadcasts."""

    id: str
    revision: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Identity:
        """Create from API response dictionary."""
        return cls(id=data["id"], revision=data.get("revision", 0))


@dataclass
class Account:
    """Wallet account derived from the configured mnemonic."""

    index: int
    identity_ids: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Account:
        """Create from API response dictionary."""
        return cls(
            index=data.get("index", 0),
            identity_ids=list(data.get("identity_ids", [])),
        )


class PlatformClient:
    """HTTP client for the document platform API."""

    def __init__(
        self,
        config: ServerConfig,
        contract_id: str | None = None,
        mnemonic: str | None = None,
        network: str = DEFAULT_NETWORK,
    ) -> None:
        """Initialize the platform client.

        Args:
            config: Server connection settings.
            contract_id: Data contract holding the document types.
            mnemonic: Wallet mnemonic sent when resolving the account.
            network: Network every request is routed to.
        """
        self._config = config
        self._contract_id = contract_id
        self._mnemonic = mnemonic
        self._client = httpx.Client(
            base_url=config.server_url,
            timeout=config.timeout,
            verify=config.verify_ssl,
            headers={
                "Authorization": f"Bearer {config.token}",
                NETWORK_HEADER: network,
            },
        )

    @property
    def config(self) -> ServerConfig:
        """Get the server configuration."""
        return self._config

    @property
    def network(self) -> str:
        """Get the network requests are routed to."""
        return self._client.headers[NETWORK_HEADER]

    def configure(
        self,
        contract_id: str | None = None,
        mnemonic: str | None = None,
        network: str = DEFAULT_NETWORK,
    ) -> None:
        """Switch the contract, wallet and network used by later calls."""
        self._contract_id = contract_id
        self._mnemonic = mnemonic
        self._client.headers[NETWORK_HEADER] = network

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self) -> PlatformClient:
        """Context manager entry."""
        return self

    def __exit__(self, *args: object) -> None:
        """Context manager exit."""
        self.close()

    def _handle_response(self, response: httpx.Response) -> httpx.Response:
        """Handle API response and raise appropriate exceptions."""
        if response.status_code == 401:
            raise AuthenticationError("Invalid or expired token", 401)
        if response.status_code == 404:
            raise NotFoundError("Resource not found", 404)
        if response.status_code == 409:
            detail = response.json().get("detail", "Conflict")
            raise ConflictError(detail, 409)
        if response.status_code >= 400:
            detail = response.json().get("detail", "Unknown error")
            raise APIError(detail, response.status_code)
        return response

    def _documents_url(self, document_type: str) -> str:
        if not self._contract_id:
            raise APIError("No contract configured")
        return f"/api/contracts/{self._contract_id}/documents/{document_type}"

    # === Health check ===

    def health_check(self) -> bool:
        """Check if the platform gateway is healthy.

        Returns:
            True if the gateway is healthy.
        """
        try:
            response = self._client.get("/health")
            return response.status_code == 200
        except httpx.RequestError:
            return False

    # === Document operations ===

    def query_documents(
        self,
        document_type: str,
        query: dict[str, Any] | None = None,
    ) -> list[Document]:
        """Query documents of a type.

        Args:
            document_type: Document type name.
            query: Query with optional ``where``, ``orderBy``, ``startAt``
                and ``limit``.

        Returns:
            Matching documents.
        """
        response = self._handle_response(
            self._client.post(
                f"{self._documents_url(document_type)}/query",
                json=query or {},
            )
        )
        return [Document.from_dict(d) for d in response.json()]

    def get_document(self, document_type: str, document_id: str) -> Document | None:
        """Get a single document by id.

        Returns:
            The document, or None if no document has this id.
        """
        documents = self.query_documents(
            document_type, {"where": [["$id", "==", document_id]]}
        )
        return documents[0] if documents else None

    def create_document(
        self,
        document_type: str,
        identity: Identity,
        fields: dict[str, Any],
    ) -> Document:
        """Compose a new document owned by an identity.

        The document is assigned an id but is not stored until it is
        broadcast.

        Args:
            document_type: Document type name.
            identity: Owner of the new document.
            fields: User fields of the document.

        Returns:
            Composed document.
        """
        response = self._handle_response(
            self._client.post(
                self._documents_url(document_type),
                json={"ownerId": identity.id, "data": fields},
            )
        )
        return Document.from_dict(response.json())

    def broadcast(self, operations: OperationSet, identity: Identity) -> None:
        """Submit a batch of document transitions.

        Args:
            operations: Documents to create, replace and delete.
            identity: Identity signing the batch.

        Raises:
            APIError: If the platform rejects the batch.
        """
        if not self._contract_id:
            raise APIError("No contract configured")
        self._handle_response(
            self._client.post(
                f"/api/contracts/{self._contract_id}/broadcast",
                json={
                    "identityId": identity.id,
                    "create": [d.to_json() for d in operations.create],
                    "replace": [d.to_json() for d in operations.replace],
                    "delete": [d.to_json() for d in operations.delete],
                },
            )
        )

    # === Wallet and identity ===

    def get_wallet_account(self) -> Account:
        """Resolve the wallet account for the configured mnemonic.

        Raises:
            AuthenticationError: If no mnemonic is configured.
        """
        if not self._mnemonic:
            raise AuthenticationError("No mnemonic configured")
        response = self._handle_response(
            self._client.get(
                "/api/wallet/account",
                headers={"X-Wallet-Mnemonic": self._mnemonic},
            )
        )
        return Account.from_dict(response.json())

    def get_identity(self, identity_id: str) -> Identity:
        """Get an identity by id.

        Raises:
            NotFoundError: If the identity does not exist.
        """
        response = self._handle_response(
            self._client.get(f"/api/identities/{identity_id}")
        )
        return Identity.from_dict(response.json())

    def register_identity(self) -> Identity:
        """Register a new identity funded by the configured wallet.

        Raises:
            AuthenticationError: If no mnemonic is configured.
            APIError: If the platform refuses the registration.
        """
        if not self._mnemonic:
            raise AuthenticationError("No mnemonic configured")
        response = self._handle_response(
            self._client.post(
                "/api/identities",
                headers={"X-Wallet-Mnemonic": self._mnemonic},
            )
        )
        return Identity.from_dict(response.json())
