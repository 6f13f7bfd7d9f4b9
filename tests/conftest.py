"""Shared test helpers for profilesync."""

from __future__ import annotations

from collections.abc import Generator
from pathlib import Path

import pytest

from profilesync.client.state import LocalProfileStore
from profilesync.core.types import Decision, Profile


class FakeClock:
    """Deterministic, strictly increasing clock for updated_at."""

    def __init__(self, start: float = 1_000.0, step: float = 1.0) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> float:
        self.now += self.step
        return self.now


def make_profile(
    profile_id: str = "a",
    full_name: str = "Jo Doe",
    age: int = 30,
    city: str = "NYC",
    image_url: str | None = None,
) -> Profile:
    """Create a Profile for testing."""
    return Profile(
        id=profile_id,
        full_name=full_name,
        age=age,
        city=city,
        image_url=image_url or f"https://x/{profile_id}.jpg",
    )


def make_remote_user(
    uuid: str = "a",
    first: str = "Jo",
    last: str = "Doe",
    age: int = 30,
    city: str = "NYC",
    picture: str | None = None,
) -> dict:
    """Create one record of the remote response body."""
    return {
        "login": {"uuid": uuid},
        "name": {"title": "Mx", "first": first, "last": last},
        "dob": {"date": "1995-01-01T00:00:00.000Z", "age": age},
        "location": {"city": city, "country": "US"},
        "picture": {"large": picture or f"https://x/{uuid}.jpg"},
    }


def insert_raw(
    store: LocalProfileStore,
    profile_id: str,
    updated_at: float,
    full_name: str = "Jo Doe",
    decision: Decision = Decision.NONE,
) -> None:
    """Insert a row directly, bypassing the upsert uniqueness logic."""
    store._conn.execute(
        """
        INSERT INTO profiles (id, full_name, age, city, image_url, decision, updated_at)
        VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        (profile_id, full_name, 30, "NYC", f"https://x/{profile_id}.jpg",
         decision.value, updated_at),
    )


@pytest.fixture
def clock() -> FakeClock:
    """Create a fake clock."""
    return FakeClock()


@pytest.fixture
def store(tmp_path: Path, clock: FakeClock) -> Generator[LocalProfileStore, None, None]:
    """Create a LocalProfileStore on disk with a fake clock."""
    s = LocalProfileStore(tmp_path / "profiles.db", clock=clock)
    yield s
    s.close()
