"""Cache commands for profilesync CLI.

Commands:
- list: Show cached profiles
- accept / decline: Record a decision
- status: Show cache counts
- clear: Delete every cached profile
- dedupe: Repair duplicate records
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from contextlib import contextmanager

import click

from profilesync.client.cli.config import get_database_path
from profilesync.client.cli.sync import echo_profiles
from profilesync.client.state import LocalProfileStore, StoreError
from profilesync.core.types import Decision

DECISION_CHOICE = click.Choice([d.value for d in Decision])


@contextmanager
def open_store() -> Iterator[LocalProfileStore]:
    """Open the configured profile cache, exiting on failure."""
    try:
        store = LocalProfileStore(get_database_path())
    except StoreError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    try:
        yield store
    except StoreError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    finally:
        store.close()


@click.command("list")
@click.option("--decision", "-d", type=DECISION_CHOICE, default=None,
              help="Only show profiles with this decision.")
def list_profiles(decision: str | None) -> None:
    """Show cached profiles ordered by name."""
    with open_store() as store:
        if decision is None:
            profiles = store.fetch_all()
        else:
            profiles = store.list_by_decision(Decision(decision))
    echo_profiles(profiles)


def _record(profile_id: str, decision: Decision) -> None:
    with open_store() as store:
        if not store.set_decision(profile_id, decision):
            click.echo(f"Error: Unknown profile: {profile_id}", err=True)
            sys.exit(1)
    click.echo(f"{decision.value.capitalize()} {profile_id}")


@click.command()
@click.argument("profile_id")
def accept(profile_id: str) -> None:
    """Accept a cached profile."""
    _record(profile_id, Decision.ACCEPTED)


@click.command()
@click.argument("profile_id")
def decline(profile_id: str) -> None:
    """Decline a cached profile."""
    _record(profile_id, Decision.DECLINED)


@click.command()
def status() -> None:
    """Show the number of cached profiles per decision."""
    with open_store() as store:
        total = store.count()
        counts = {d: len(store.list_by_decision(d)) for d in Decision}
        db_path = store.db_path

    click.echo(f"Cache: {db_path}")
    click.echo(f"Profiles: {total}")
    for decision, n in counts.items():
        click.echo(f"  {decision.value}: {n}")


@click.command()
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
def clear(yes: bool) -> None:
    """Delete every cached profile and decision."""
    if not yes and not click.confirm("Delete all cached profiles and decisions?"):
        click.echo("Aborted.")
        return
    with open_store() as store:
        deleted = store.delete_all()
    click.echo(f"Deleted {deleted} profiles.")


@click.command()
def dedupe() -> None:
    """Remove duplicate records, keeping the most recent per id."""
    with open_store() as store:
        removed = store.remove_duplicates()
    if removed:
        click.echo(f"Removed {removed} duplicate records.")
    else:
        click.echo("No duplicates found.")
