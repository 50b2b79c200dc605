"""Document sync facade.

This module provides:
- DocumentSync: Entry point tying options, the platform client, the
  account/identity resources and the collection registry together

Architecture:
    update_options() ─► init() ─► LazyResource.reset()/arm()
                     └► CollectionRegistry.watch(documents) ─► refresh_all()

    account()/identity() ─► LazyResource.ensure_initialized()
    collection(name).apply_bulk() ─► BulkMutationPlanner ─► BatchBroadcaster
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from docsync.client.sync.activity import AccountActivityListener
from docsync.client.sync.collection import DocumentCollection
from docsync.client.sync.registry import CollectionRegistry
from docsync.client.sync.resources import LazyResource
from docsync.client.sync.types import FailurePolicy, Item
from docsync.core.config import SyncOptions

if TYPE_CHECKING:
    from docsync.client.api import Account, Identity, PlatformClient

logger = logging.getLogger(__name__)


class DocumentSync:
    """Keep local mirrors of a contract's document types in sync.

    Usage:
        sync = DocumentSync(client, SyncOptions(contract_id="...", identity_id="..."))
        sync.update_options(documents=["note", "tag"])
        sync.collection("note").create({"title": "hello"})
        sync.close()
    """

    def __init__(
        self,
        client: PlatformClient,
        options: SyncOptions | None = None,
        failure_policy: FailurePolicy = FailurePolicy.HALT,
        listen_for_activity: bool = True,
    ) -> None:
        """Initialize the facade.

        Collections for ``options.documents`` are registered and refreshed
        immediately.

        Args:
            client: Platform client used for every remote call.
            options: Initial sync options.
            failure_policy: Broadcaster behaviour on a failed chunk.
            listen_for_activity: Start an account activity listener once the
                account is resolved.
        """
        self._client = client
        self._options = options or SyncOptions()
        self._failure_policy = failure_policy
        self._listen_for_activity = listen_for_activity
        self._listener: AccountActivityListener | None = None
        self._identity_registering = False

        self._account: LazyResource[Account] = LazyResource(
            "account",
            client.get_wallet_account,
            precondition=lambda: bool(self._options.mnemonic),
            on_resolved=self._on_account_resolved,
        )
        self._identity: LazyResource[Identity] = LazyResource(
            "identity",
            lambda: client.get_identity(self._options.identity_id or ""),
            precondition=lambda: bool(self._options.identity_id),
        )
        self._registry = CollectionRegistry(self.create_collection)

        self.init()
        if self._options.documents:
            self._registry.watch(self._options.documents)

    @property
    def options(self) -> SyncOptions:
        """Get the current options."""
        return self._options

    @property
    def client(self) -> PlatformClient:
        """Get the platform client."""
        return self._client

    @property
    def registry(self) -> CollectionRegistry:
        """Get the collection registry."""
        return self._registry

    @property
    def account_resource(self) -> LazyResource[Account]:
        """Get the account state machine."""
        return self._account

    @property
    def identity_resource(self) -> LazyResource[Identity]:
        """Get the identity state machine."""
        return self._identity

    def init(self) -> None:
        """Reset the account and identity and arm them for lazy resolution."""
        self._stop_listener()
        self._client.configure(
            contract_id=self._options.contract_id,
            mnemonic=self._options.mnemonic,
            network=self._options.network,
        )

        self._account.reset()
        self._identity.reset()
        self._account.arm()
        self._identity.arm()

    def update_options(self, **changes: Any) -> SyncOptions:
        """Change options and resync what depends on them.

        The account and identity are always reset. Collections are rebuilt
        and refreshed when the document list or the query changed.

        Raises:
            TypeError: If an unknown option name is passed.
        """
        previous = self._options
        self._options = previous.merged(**changes)
        self.init()

        if (
            self._options.documents != previous.documents
            or self._options.all_query != previous.all_query
            or self._options.contract_id != previous.contract_id
        ):
            self._registry.watch(self._options.documents)

        return self._options

    # === Singleton resources ===

    def account(self) -> Account | None:
        """Get the wallet account, resolving it on first use."""
        return self._account.ensure_initialized()

    def identity(self) -> Identity | None:
        """Get the identity, resolving it on first use."""
        return self._identity.ensure_initialized()

    @property
    def account_synced(self) -> bool:
        return self._account.synced

    @property
    def account_syncing(self) -> bool:
        return self._account.syncing

    @property
    def identity_synced(self) -> bool:
        return self._identity.synced

    @property
    def identity_syncing(self) -> bool:
        return self._identity.syncing

    @property
    def identity_registering(self) -> bool:
        """Check if an identity registration is in progress."""
        return self._identity_registering

    def register_identity(self) -> Identity | None:
        """Register a new identity funded by the wallet.

        The new identity is not selected; set ``identity_id`` through
        update_options() to use it.

        Returns:
            The registered identity, or None if registration failed.
        """
        self._identity_registering = True
        try:
            identity = self._client.register_identity()
        except Exception as e:
            logger.debug(f"Failed to register identity: {e}")
            return None
        finally:
            self._identity_registering = False

        logger.info(f"Registered identity {identity.id}")
        return identity

    def identities(self) -> list[str]:
        """Get the identity ids owned by the account (empty until synced)."""
        account = self.account()
        if account is None or not self._account.synced:
            return []
        return list(account.identity_ids)

    # === Collections ===

    def collection(self, name: str) -> DocumentCollection:
        """Get the collection for a watched document type.

        Raises:
            KeyError: If the type is not watched.
        """
        return self._registry.get(name)

    def refresh_all(self) -> dict[str, list[Item]]:
        """Refresh every watched document type."""
        return self._registry.refresh_all()

    def close(self) -> None:
        """Stop listening, drop collections and close the client."""
        self._stop_listener()
        self._registry.close()
        self._client.close()

    def create_collection(self, name: str) -> DocumentCollection:
        """Build a fresh collection bound to the current options.

        Used by the registry; commands may also use it for one-off access
        to a type that is not watched.
        """
        return DocumentCollection(
            name,
            self._client,
            self.identity,
            all_query=self._options.all_query,
            failure_policy=self._failure_policy,
        )

    def _on_account_resolved(self, account: Account) -> None:
        if not self._listen_for_activity:
            return
        self._stop_listener()
        self._listener = AccountActivityListener(self._client.config, self._account.touch)
        self._listener.start()

    def _stop_listener(self) -> None:
        if self._listener is not None:
            self._listener.stop()
            self._listener = None
