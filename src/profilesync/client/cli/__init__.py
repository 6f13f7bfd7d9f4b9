"""Command-line interface for profilesync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- sync: Load the cache and refresh it from the server
- list: Show cached profiles
- accept / decline: Record a decision
- status: Show cache counts
- clear: Delete every cached profile
- dedupe: Repair duplicate records
- config: Show or change settings
"""

from __future__ import annotations

import click

from profilesync.client.cli.config import (
    build_sync_config,
    get_config_dir,
    get_config_file,
    get_database_path,
    load_config,
    save_config,
    setup_logging,
)
from profilesync.client.cli.profiles import (
    accept,
    clear,
    decline,
    dedupe,
    list_profiles,
    status,
)
from profilesync.client.cli.settings import config
from profilesync.client.cli.sync import sync


@click.group()
@click.version_option(package_name="profilesync")
def cli() -> None:
    """profilesync - Offline-first profile synchronization."""


# Sync commands
cli.add_command(sync)

# Cache commands
cli.add_command(list_profiles)
cli.add_command(accept)
cli.add_command(decline)
cli.add_command(status)
cli.add_command(clear)
cli.add_command(dedupe)

# Settings
cli.add_command(config)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    # Main entry points
    "cli",
    "main",
    # Config utilities
    "build_sync_config",
    "get_config_dir",
    "get_config_file",
    "get_database_path",
    "load_config",
    "save_config",
    "setup_logging",
]
