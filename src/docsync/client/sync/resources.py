"""Lazily initialized singleton resources (wallet account, identity).

This module provides:
- once: Wrap a function so only its first call runs
- LazyResource: One-shot, on-demand initialization state machine

State machine:
    UNINITIALIZED ──arm()──► INITIALIZING ──ensure_initialized()──► SYNCING
          ▲                                                           │
          └──────────── fetch failed ◄────────────────────────────────┤
                                                                      ▼
                                                         SYNCED(synced_at)

reset() returns to UNINITIALIZED from any state. A fetch that completes
after a reset is discarded.
"""

from __future__ import annotations

import functools
import logging
import threading
import time
from collections.abc import Callable
from typing import Any, Generic, TypeVar

from docsync.core.types import SyncState

logger = logging.getLogger(__name__)

T = TypeVar("T")


def once(func: Callable[..., Any]) -> Callable[..., Any]:
    """Wrap a function so that only the first call runs it.

    Later calls, including concurrent ones, return None without running
    the function.
    """
    lock = threading.Lock()
    called = False

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        nonlocal called
        with lock:
            if called:
                return None
            called = True
        return func(*args, **kwargs)

    return wrapper


class LazyResource(Generic[T]):
    """A remote singleton resolved on first use.

    The resource is armed when its precondition holds (e.g. a mnemonic is
    configured) and resolved by the first ensure_initialized() call. Reads
    through ``value`` never trigger a fetch.

    Usage:
        identity = LazyResource(
            "identity",
            lambda: client.get_identity(options.identity_id),
            precondition=lambda: bool(options.identity_id),
        )
        identity.arm()
        current = identity.ensure_initialized()  # None while unresolved
    """

    def __init__(
        self,
        name: str,
        fetch_fn: Callable[[], T],
        precondition: Callable[[], bool] = lambda: True,
        on_resolved: Callable[[T], None] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the resource.

        Args:
            name: Resource name used in log messages.
            fetch_fn: Remote fetch of the resource.
            precondition: Whether the resource can be fetched at all.
            on_resolved: Called with the value after a successful fetch.
            clock: Source of the synced timestamp.
        """
        self._name = name
        self._fetch_fn = fetch_fn
        self._precondition = precondition
        self._on_resolved = on_resolved
        self._clock = clock

        self._lock = threading.Lock()
        self._state = SyncState.UNINITIALIZED
        self._value: T | None = None
        self._trigger: Callable[[], Any] | None = None
        self._synced_at: float | None = None
        self._generation = 0

    @property
    def name(self) -> str:
        """Get the resource name."""
        return self._name

    @property
    def state(self) -> SyncState:
        """Get the current sync state."""
        return self._state

    @property
    def value(self) -> T | None:
        """Get the resolved value without triggering a fetch."""
        return self._value

    @property
    def synced(self) -> bool:
        """Check if the resource has been resolved."""
        return self._state == SyncState.SYNCED

    @property
    def syncing(self) -> bool:
        """Check if a fetch is in progress."""
        return self._state == SyncState.SYNCING

    @property
    def synced_at(self) -> float | None:
        """Get the time of the last sync or reported activity."""
        return self._synced_at

    @property
    def armed(self) -> bool:
        """Check if a trigger is waiting to fire."""
        return self._trigger is not None

    @property
    def trigger(self) -> Callable[[], Any] | None:
        """Get the armed single-execution trigger, if any."""
        return self._trigger

    def reset(self) -> None:
        """Forget the resolved value and any armed trigger."""
        with self._lock:
            self._generation += 1
            self._state = SyncState.UNINITIALIZED
            self._value = None
            self._trigger = None
            self._synced_at = None

    def arm(self) -> bool:
        """Install the one-shot initialization trigger.

        Does nothing if a trigger is already armed, the resource is being
        fetched or already resolved.

        Returns:
            True if a trigger is armed after the call.
        """
        if not self._precondition():
            logger.debug(f"Not arming {self._name}: precondition not met")
            return False

        with self._lock:
            if self._state == SyncState.UNINITIALIZED:
                generation = self._generation
                self._trigger = once(lambda: self._initialize(generation))
                self._state = SyncState.INITIALIZING
            return self._trigger is not None

    def ensure_initialized(self) -> T | None:
        """Fire the armed trigger if needed and return the current value.

        Returns:
            The resolved value, or None while unresolved (not armed, fetch
            in progress elsewhere, or fetch failed).
        """
        trigger = self._trigger
        if trigger is not None:
            trigger()
        return self._value

    def touch(self) -> bool:
        """Re-stamp the synced time after remote activity.

        Returns:
            True if the resource was synced and got a new timestamp.
        """
        with self._lock:
            if self._state != SyncState.SYNCED:
                return False
            self._synced_at = self._clock()
            return True

    def _initialize(self, generation: int) -> None:
        with self._lock:
            if generation != self._generation:
                return
            self._state = SyncState.SYNCING

        try:
            value = self._fetch_fn()
        except Exception as e:
            logger.debug(f"Failed to initialize {self._name}: {e}")
            with self._lock:
                if generation == self._generation:
                    self._trigger = None
                    self._state = SyncState.UNINITIALIZED
            return

        with self._lock:
            if generation != self._generation:
                logger.debug(f"Discarding {self._name} resolved after reset")
                return
            self._value = value
            self._trigger = None
            self._state = SyncState.SYNCED
            self._synced_at = self._clock()

        logger.info(f"{self._name.capitalize()} synced")

        if self._on_resolved is not None:
            try:
                self._on_resolved(value)
            except Exception as e:
                logger.warning(f"{self._name.capitalize()} resolved hook failed: {e}")
