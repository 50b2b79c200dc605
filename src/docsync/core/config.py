"""Shared configuration classes for docsync.

This module defines the connection settings for the platform HTTP API and
the document-sync options that drive the collection registry and the
account/identity resources.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any


@dataclass
class ServerConfig:
    """Configuration for connecting to the platform API.

    Used by both the HTTP client (PlatformClient) and the WebSocket client
    (AccountActivityListener) to ensure consistent connection settings.

    Attributes:
        server_url: Base URL of the platform gateway (e.g., "https://dapi.example.com").
        token: Authentication token for this client.
        timeout: Request/connection timeout in seconds.
        verify_ssl: Whether to verify SSL certificates (default True).
    """

    server_url: str
    token: str
    timeout: float = 30.0
    verify_ssl: bool = True

    def __post_init__(self) -> None:
        """Normalize server URL."""
        self.server_url = self.server_url.rstrip("/")

    @property
    def ws_url(self) -> str:
        """Get WebSocket URL for account activity notifications.

        Returns:
            WebSocket URL with token in path.
        """
        url = self.server_url
        if url.startswith("https://"):
            url = "wss://" + url[8:]
        elif url.startswith("http://"):
            url = "ws://" + url[7:]
        return f"{url}/ws/account/{self.token}"

    @property
    def is_secure(self) -> bool:
        """Check if using HTTPS/WSS.

        Returns:
            True if server uses HTTPS.
        """
        return self.server_url.startswith("https://")


@dataclass(frozen=True)
class SyncOptions:
    """Options for document synchronization.

    Attributes:
        documents: Document type names to mirror locally.
        network: Network to connect to ("livenet", "testnet", "evonet").
        contract_id: Data contract the document types belong to.
        identity_id: Identity used for creating, replacing and deleting
            documents. Mutations fail without it.
        mnemonic: Wallet mnemonic. The account resource is only resolved
            when it is set.
        all_query: Base query used when fetching every document of a type.
    """

    documents: tuple[str, ...] = ()
    network: str = "livenet"
    contract_id: str | None = None
    identity_id: str | None = None
    mnemonic: str | None = None
    all_query: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Store documents as a tuple so option changes are comparable."""
        object.__setattr__(self, "documents", tuple(self.documents))

    def merged(self, **changes: Any) -> SyncOptions:
        """Return a copy with the given fields replaced.

        Raises:
            TypeError: If an unknown option name is passed.
        """
        return replace(self, **changes)
