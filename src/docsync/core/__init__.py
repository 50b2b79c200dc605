"""Core module - Shared configuration, types and payload regulation."""

from docsync.core.config import ServerConfig, SyncOptions
from docsync.core.regulator import (
    MAX_DOCUMENTS_PER_PAYLOAD,
    MAX_DOCUMENTS_PER_QUERY,
    MAX_KILOBYTES_PER_PAYLOAD,
    PayloadBatch,
    encoded_size,
    regulate_payload,
)
from docsync.core.types import SyncState

__all__ = [
    # Config
    "ServerConfig",
    "SyncOptions",
    # Regulation
    "MAX_DOCUMENTS_PER_PAYLOAD",
    "MAX_DOCUMENTS_PER_QUERY",
    "MAX_KILOBYTES_PER_PAYLOAD",
    "PayloadBatch",
    "encoded_size",
    "regulate_payload",
    # Types
    "SyncState",
]
