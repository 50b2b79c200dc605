"""Command-line interface for docsync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- configure: Store platform connection and sync settings
- pull: Mirror every configured document type
- get: Fetch one document
- apply: Create, replace and delete documents from a JSON file
- status: Show gateway health and account and identity sync state
- register: Register a new identity funded by the wallet
"""

from __future__ import annotations

import logging

import click

from docsync.client.cli.config import (
    get_config_dir,
    get_config_file,
    load_config,
    save_config,
)
from docsync.client.cli.configure import configure
from docsync.client.cli.documents import apply, get, pull, status
from docsync.client.cli.register import register


@click.group()
@click.version_option(package_name="docsync")
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
def cli(verbose: bool) -> None:
    """docsync - Mirror platform documents locally."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


cli.add_command(configure)
cli.add_command(pull)
cli.add_command(get)
cli.add_command(apply)
cli.add_command(status)
cli.add_command(register)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    "cli",
    "main",
    "get_config_dir",
    "get_config_file",
    "load_config",
    "save_config",
]
