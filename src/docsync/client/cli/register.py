"""Identity registration command for the docsync CLI.

Commands:
- register: Register a new identity funded by the wallet
"""

from __future__ import annotations

import sys

import click

from docsync.client.cli.config import MNEMONIC_ENV_VAR, load_config, save_config
from docsync.client.cli.documents import open_sync


@click.command()
@click.option(
    "--use/--no-use",
    default=True,
    help="Store the new identity as the one used to sign changes.",
)
def register(use: bool) -> None:
    """Register a new identity with the platform.

    The wallet mnemonic is read from the DOCSYNC_MNEMONIC environment
    variable and funds the registration.
    """
    sync = open_sync()
    try:
        if not sync.options.mnemonic:
            click.echo(f"Error: Set {MNEMONIC_ENV_VAR} to register an identity.", err=True)
            sys.exit(1)
        identity = sync.register_identity()
    finally:
        sync.close()

    if identity is None:
        click.echo("Error: Identity registration failed.", err=True)
        sys.exit(1)

    click.echo(f"Registered identity {identity.id}")
    if use:
        config = load_config()
        config["identity_id"] = identity.id
        save_config(config)
        click.echo("Identity saved to configuration.")
