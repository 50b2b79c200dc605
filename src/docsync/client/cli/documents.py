"""Document commands for the docsync CLI.

Commands:
- pull: Mirror every configured document type
- get: Fetch one document
- apply: Create, replace and delete documents from a JSON file
- status: Show gateway health and account and identity sync state
"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import click

from docsync.client.api import PlatformClient
from docsync.client.cli.config import (
    load_config,
    parse_documents,
    server_config_from,
    sync_options_from,
)
from docsync.client.store import DocumentSync
from docsync.client.sync.collection import DocumentCollection


def open_sync() -> DocumentSync:
    """Build a DocumentSync from the stored configuration.

    No collections are registered; commands decide what to mirror.
    """
    config = load_config()
    if not config.get("server_url") or not config.get("auth_token"):
        click.echo("Error: Not configured. Run 'docsync configure' first.", err=True)
        sys.exit(1)

    options = sync_options_from(config)
    client = PlatformClient(
        server_config_from(config),
        contract_id=options.contract_id,
        mnemonic=options.mnemonic,
        network=options.network,
    )
    return DocumentSync(
        client,
        options.merged(documents=()),
        listen_for_activity=False,
    )


def collection_for(sync: DocumentSync, document_type: str) -> DocumentCollection:
    """Build a standalone collection for a one-off command."""
    return sync.create_collection(document_type)


@click.command()
@click.option("--documents", default=None, help="Comma-separated types (default: configured).")
def pull(documents: str | None) -> None:
    """Mirror every document of the configured types."""
    config = load_config()
    names = parse_documents(documents or config.get("documents"))
    if not names:
        click.echo("Error: No document types configured.", err=True)
        sys.exit(1)

    sync = open_sync()
    try:
        sync.update_options(documents=names)
        failed: list[str] = []
        for name in names:
            collection = sync.collection(name)
            if not collection.refreshed:
                click.echo(f"Error: Failed to refresh {name}.", err=True)
                failed.append(name)
                continue
            click.echo(f"{name}: {len(collection.all())} document(s)")
    finally:
        sync.close()

    if failed:
        sys.exit(1)


@click.command()
@click.argument("document_type")
@click.argument("document_id")
def get(document_type: str, document_id: str) -> None:
    """Fetch one document and print it as JSON."""
    sync = open_sync()
    try:
        document = collection_for(sync, document_type).fetch_one(document_id)
    finally:
        sync.close()

    if document is None:
        click.echo(f"Error: {document_type} {document_id} not found.", err=True)
        sys.exit(1)
    click.echo(json.dumps(document, indent=2, default=str))


@click.command()
@click.argument("document_type")
@click.argument("items_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def apply(document_type: str, items_file: Path) -> None:
    """Apply a JSON list of raw items to a document type.

    Items without "$id" are created, items with only "$id" are deleted and
    items with "$id" and fields are replaced.
    """
    try:
        items = json.loads(items_file.read_text())
    except json.JSONDecodeError as e:
        click.echo(f"Error: {items_file} is not valid JSON: {e}", err=True)
        sys.exit(1)

    if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
        click.echo("Error: Expected a JSON list of objects.", err=True)
        sys.exit(1)

    sync = open_sync()
    try:
        result = collection_for(sync, document_type).apply_bulk(items)
    finally:
        sync.close()

    click.echo(f"Committed: {len(result.committed)}, deleted: {len(result.evicted)}")
    if result.skipped:
        click.echo(f"Skipped: {len(result.skipped)}", err=True)
    if not result.success:
        click.echo(
            f"Error: Broadcast failed ({result.error}); "
            f"{len(result.pending)} item(s) not applied.",
            err=True,
        )
        sys.exit(1)


@click.command()
def status() -> None:
    """Resolve and show the gateway, account and identity."""
    sync = open_sync()
    try:
        healthy = sync.client.health_check()
        click.echo(f"Gateway: {'ok' if healthy else 'unreachable'}")
        account = sync.account()
        identity = sync.identity()
        click.echo(f"Account: {sync.account_resource.state.value}")
        if account is not None:
            click.echo(f"  Identities: {', '.join(account.identity_ids) or '-'}")
        click.echo(f"Identity: {sync.identity_resource.state.value}")
        if identity is not None:
            click.echo(f"  Id: {identity.id}")
    finally:
        sync.close()
