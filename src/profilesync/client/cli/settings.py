"""Config command for profilesync CLI.

Commands:
- config: Show or change settings in ~/.profilesync/config.json
"""

from __future__ import annotations

import sys

import click

from profilesync.client.cli.config import (
    CONFIG_KEYS,
    build_sync_config,
    load_config,
    parse_config_value,
    save_config,
)


@click.command()
@click.argument("key", required=False)
@click.argument("value", required=False)
def config(key: str | None, value: str | None) -> None:
    """Show settings, or set KEY to VALUE.

    Keys: endpoint, batch_size, timeout, db_path, connectivity_interval.
    """
    current = load_config()

    if key is None:
        sync_config = build_sync_config(current)
        click.echo(f"endpoint: {sync_config.fetcher.endpoint}")
        click.echo(f"batch_size: {sync_config.fetcher.batch_size}")
        click.echo(f"timeout: {sync_config.fetcher.timeout}")
        click.echo(f"db_path: {sync_config.db_path}")
        click.echo(f"connectivity_interval: {sync_config.connectivity_interval}")
        return

    if key not in CONFIG_KEYS:
        click.echo(f"Error: Unknown setting '{key}'. Valid keys: {', '.join(CONFIG_KEYS)}", err=True)
        sys.exit(1)

    if value is None:
        click.echo(f"{key}: {current.get(key, '(default)')}")
        return

    try:
        current[key] = parse_config_value(key, value)
        build_sync_config(current)
    except ValueError as e:
        click.echo(f"Error: Invalid value for {key}: {e}", err=True)
        sys.exit(1)

    save_config(current)
    click.echo(f"{key} = {current[key]}")
