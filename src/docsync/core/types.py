"""Shared types for docsync.

This module defines types and enums used across the client.
"""

from __future__ import annotations

from enum import Enum


class SyncState(str, Enum):
    """Sync state of a singleton remote resource (account, identity).

    Only the resource state machine changes these; consumers read them
    through the resource's ``state``, ``synced`` and ``syncing`` properties.
    """

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    SYNCING = "syncing"
    SYNCED = "synced"
