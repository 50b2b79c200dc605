"""Chunked broadcasting of document operations.

An OperationSet of any size is cut into budget-sized chunks by the payload
regulator and submitted one chunk per remote call, strictly in the order
the chunks were cut. The first chunk that fails stops everything after it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from docsync.client.sync.retry import DEFAULT_MAX_RETRIES, retry_with_backoff
from docsync.client.sync.types import (
    BroadcastFunction,
    BroadcastOutcome,
    FailurePolicy,
    IdentityProvider,
    OperationSet,
)
from docsync.core.regulator import (
    MAX_DOCUMENTS_PER_PAYLOAD,
    MAX_KILOBYTES_PER_PAYLOAD,
    regulate_payload,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from docsync.client.api import Identity

logger = logging.getLogger(__name__)


class BatchBroadcaster:
    """Submit operation sets through the platform in regulated chunks.

    Usage:
        broadcaster = BatchBroadcaster(client.broadcast, identity.ensure_initialized)
        if broadcaster.broadcast(OperationSet(create=[doc])):
            ...
    """

    def __init__(
        self,
        broadcast_fn: BroadcastFunction,
        identity_provider: IdentityProvider,
        max_kilobytes: float = MAX_KILOBYTES_PER_PAYLOAD,
        max_items: int = MAX_DOCUMENTS_PER_PAYLOAD,
        failure_policy: FailurePolicy = FailurePolicy.HALT,
        max_retries: int = DEFAULT_MAX_RETRIES,
        sleep: Callable[[float], None] | None = None,
    ) -> None:
        """Initialize the broadcaster.

        Args:
            broadcast_fn: Remote broadcast capability.
            identity_provider: Returns the identity signing each chunk.
            max_kilobytes: Size budget per chunk.
            max_items: Item budget per chunk.
            failure_policy: What to do when a chunk submission fails.
            max_retries: Retries per chunk under ``FailurePolicy.RETRY``.
            sleep: Wait function for retry backoff (defaults to time.sleep).
        """
        self._broadcast_fn = broadcast_fn
        self._identity_provider = identity_provider
        self._max_kilobytes = max_kilobytes
        self._max_items = max_items
        self._failure_policy = failure_policy
        self._max_retries = max_retries
        self._sleep = sleep

    @property
    def failure_policy(self) -> FailurePolicy:
        """Get the failure policy."""
        return self._failure_policy

    def broadcast(self, operations: OperationSet) -> bool:
        """Submit operations, returning True only if every chunk was accepted."""
        return self.submit(operations).success

    def submit(self, operations: OperationSet) -> BroadcastOutcome:
        """Submit operations chunk by chunk.

        Args:
            operations: Documents to create, replace and delete.

        Returns:
            BroadcastOutcome describing accepted chunks and what was left
            unsent.
        """
        if operations.is_empty():
            return BroadcastOutcome(success=True)

        identity = self._identity_provider()
        if identity is None:
            logger.warning("Cannot broadcast documents: no identity available")
            return BroadcastOutcome(
                success=False,
                error="No identity available",
                unsent=operations,
            )

        pending = operations
        chunks_sent = 0

        while not pending.is_empty():
            batch = regulate_payload(
                pending.as_payload(),
                max_kilobytes=self._max_kilobytes,
                max_items=self._max_items,
                force_first=True,
            )
            chunk = OperationSet.from_payload(batch.included)

            if not chunk.is_empty():
                try:
                    self._send(chunk, identity)
                except Exception as e:
                    logger.debug(f"Broadcast of chunk {chunks_sent + 1} failed: {e}")
                    logger.warning(
                        f"Broadcast halted after {chunks_sent} chunk(s); "
                        f"{len(pending)} operation(s) not submitted"
                    )
                    return BroadcastOutcome(
                        success=False,
                        chunks_sent=chunks_sent,
                        error=str(e),
                        unsent=pending,
                    )
                chunks_sent += 1

            pending = OperationSet.from_payload(batch.remainder)

        logger.debug(f"Broadcast {len(operations)} operation(s) in {chunks_sent} chunk(s)")
        return BroadcastOutcome(success=True, chunks_sent=chunks_sent)

    def _send(self, chunk: OperationSet, identity: Identity) -> None:
        """Submit one chunk according to the failure policy."""
        if self._failure_policy is FailurePolicy.RETRY:
            kwargs = {"sleep": self._sleep} if self._sleep else {}
            retry_with_backoff(
                lambda: self._broadcast_fn(chunk, identity),
                max_retries=self._max_retries,
                **kwargs,
            )
        else:
            self._broadcast_fn(chunk, identity)
