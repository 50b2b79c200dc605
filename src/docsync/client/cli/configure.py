"""Configuration command for the docsync CLI.

Commands:
- configure: Store platform connection and sync settings
"""

from __future__ import annotations

import json
import sys

import click

from docsync.client.cli.config import MNEMONIC_ENV_VAR, load_config, save_config


@click.command()
@click.option("--server", default=None, help="Platform gateway URL (e.g., https://dapi.example.com).")
@click.option("--token", default=None, help="API token for the gateway.")
@click.option("--contract", default=None, help="Data contract id.")
@click.option("--identity", default=None, help="Identity id used to sign changes.")
@click.option("--documents", default=None, help="Comma-separated document types to mirror.")
@click.option(
    "--network",
    type=click.Choice(["livenet", "testnet", "evonet"]),
    default=None,
    help="Network to connect to.",
)
@click.option("--all-query", default=None, help="JSON query used when fetching all documents.")
def configure(
    server: str | None,
    token: str | None,
    contract: str | None,
    identity: str | None,
    documents: str | None,
    network: str | None,
    all_query: str | None,
) -> None:
    """Store connection and sync settings.

    Only the given options are changed. The wallet mnemonic is read from
    the DOCSYNC_MNEMONIC environment variable and is never stored.
    """
    if all_query is not None:
        try:
            json.loads(all_query)
        except json.JSONDecodeError as e:
            click.echo(f"Error: --all-query is not valid JSON: {e}", err=True)
            sys.exit(1)

    config = load_config()
    changes = {
        "server_url": server,
        "auth_token": token,
        "contract_id": contract,
        "identity_id": identity,
        "documents": documents,
        "network": network,
        "all_query": all_query,
    }
    config.update({key: value for key, value in changes.items() if value is not None})
    save_config(config)

    click.echo("Configuration saved.")
    if not config.get("server_url") or not config.get("auth_token"):
        click.echo("Note: --server and --token are required before syncing.")
    click.echo(f"Set {MNEMONIC_ENV_VAR} to enable the wallet account.")
