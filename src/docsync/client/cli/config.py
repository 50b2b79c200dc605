"""Configuration utilities for the docsync CLI.

This module provides shared configuration functions used across CLI commands.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

from docsync.core.config import ServerConfig, SyncOptions

# The mnemonic is never written to the config file
MNEMONIC_ENV_VAR = "DOCSYNC_MNEMONIC"


def get_config_dir() -> Path:
    """Get the configuration directory for docsync.

    Returns:
        Path to ~/.docsync or equivalent.
    """
    return Path.home() / ".docsync"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def load_config() -> dict[str, str]:
    """Load configuration from config file."""
    config_file = get_config_file()
    if config_file.exists():
        return dict(json.loads(config_file.read_text()))
    return {}


def save_config(config: dict[str, str]) -> None:
    """Save configuration to config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2))


def parse_documents(value: str | None) -> tuple[str, ...]:
    """Split a comma-separated list of document type names."""
    if not value:
        return ()
    return tuple(name.strip() for name in value.split(",") if name.strip())


def server_config_from(config: dict[str, str]) -> ServerConfig:
    """Build the server configuration from a loaded config.

    Raises:
        KeyError: If the server URL or token is missing.
    """
    return ServerConfig(server_url=config["server_url"], token=config["auth_token"])


def sync_options_from(config: dict[str, str]) -> SyncOptions:
    """Build sync options from a loaded config and the environment."""
    all_query = json.loads(config["all_query"]) if config.get("all_query") else {}
    return SyncOptions(
        documents=parse_documents(config.get("documents")),
        network=config.get("network", "livenet"),
        contract_id=config.get("contract_id") or None,
        identity_id=config.get("identity_id") or None,
        mnemonic=os.environ.get(MNEMONIC_ENV_VAR) or None,
        all_query=all_query,
    )
