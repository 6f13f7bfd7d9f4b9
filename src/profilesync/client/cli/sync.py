"""Sync command for profilesync CLI.

Commands:
- sync: Load the cache and refresh it from the remote source
"""

from __future__ import annotations

import sys
from collections.abc import Iterable

import click

from profilesync.client.cli.config import build_sync_config, setup_logging
from profilesync.core.types import StoredProfile


def format_profile(profile: StoredProfile) -> str:
    """Render one cached profile as a single line."""
    return (
        f"{profile.id}  {profile.full_name:<28} {profile.age:>3}  "
        f"{profile.city:<20} {profile.decision.value}"
    )


def echo_profiles(profiles: Iterable[StoredProfile]) -> int:
    """Print profiles, one per line.

    Returns:
        Number of profiles printed.
    """
    count = 0
    for profile in profiles:
        click.echo(format_profile(profile))
        count += 1
    if count == 0:
        click.echo("No cached profiles.")
    return count


@click.command()
@click.option("--count", "-n", type=click.IntRange(min=1), default=None,
              help="Number of profiles to request (default: config batch_size).")
@click.option("--offline", is_flag=True, help="Skip the network and show the cache only.")
@click.option("--verbose", "-v", is_flag=True, help="Log progress to stderr.")
def sync(count: int | None, offline: bool, verbose: bool) -> None:
    """Load cached profiles and refresh them from the server.

    The cache is shown even when the server cannot be reached.
    """
    from profilesync.client.api import ProfileFetcher
    from profilesync.client.state import LocalProfileStore, StoreError
    from profilesync.client.sync import ConnectivityMonitor, SyncError, SyncOrchestrator

    setup_logging(verbose)

    try:
        sync_config = build_sync_config()
    except ValueError as e:
        click.echo(f"Error: Invalid configuration: {e}", err=True)
        sys.exit(1)

    batch_size = count or sync_config.fetcher.batch_size

    try:
        store = LocalProfileStore(sync_config.db_path)
    except StoreError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    fetcher = ProfileFetcher(sync_config.fetcher)
    monitor = ConnectivityMonitor(
        fetcher.health_check,
        check_interval=sync_config.connectivity_interval,
    )
    if offline:
        monitor.set_online(False)
    else:
        monitor.check_now()

    orchestrator = SyncOrchestrator(store, fetcher, monitor, batch_size=batch_size)
    try:
        orchestrator.load()
        snapshot = orchestrator.snapshot
    finally:
        orchestrator.close()
        fetcher.close()
        store.close()

    if not snapshot.is_online:
        click.echo("Offline - showing cached profiles.", err=True)

    echo_profiles(snapshot.profiles)

    if snapshot.error is not None:
        click.echo(f"Error: {snapshot.error_message}", err=True)
        if snapshot.error is SyncError.CACHE_LOAD_FAILED:
            sys.exit(1)
