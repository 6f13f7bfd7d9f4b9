"""Shared types for profilesync.

This module defines the domain records used by the fetcher, the local
store and the sync orchestrator.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from enum import Enum


class Decision(str, Enum):
    """User decision recorded against a profile id."""

    NONE = "none"
    ACCEPTED = "accepted"
    DECLINED = "declined"


@dataclass(frozen=True)
class Profile:
    """A candidate profile as delivered by the remote source.

    Attributes:
        id: Opaque stable identifier (unique key).
        full_name: Given and family name separated by a single space.
        age: Age in years.
        city: City name.
        image_url: Absolute URL of the profile picture.
    """

    id: str
    full_name: str
    age: int
    city: str
    image_url: str

    def __post_init__(self) -> None:
        if self.age < 0:
            raise ValueError(f"age must be non-negative, got {self.age}")


@dataclass
class StoredProfile:
    """A profile as persisted in the local store.

    Attributes:
        id: Profile identifier.
        full_name: Display name.
        age: Age in years.
        city: City name.
        image_url: Absolute URL of the profile picture.
        decision: Current user decision.
        updated_at: Timestamp of the last write (epoch seconds).
    """

    id: str
    full_name: str
    age: int
    city: str
    image_url: str
    decision: Decision
    updated_at: float

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> StoredProfile:
        """Create StoredProfile from database row."""
        return cls(
            id=row["id"],
            full_name=row["full_name"],
            age=row["age"],
            city=row["city"],
            image_url=row["image_url"],
            decision=Decision(row["decision"]),
            updated_at=row["updated_at"],
        )

    def to_profile(self) -> Profile:
        """Strip the local-only fields."""
        return Profile(
            id=self.id,
            full_name=self.full_name,
            age=self.age,
            city=self.city,
            image_url=self.image_url,
        )
