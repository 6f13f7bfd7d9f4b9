"""Core module - Domain types and shared configuration."""

from profilesync.core.config import DEFAULT_ENDPOINT, FetcherConfig, SyncConfig
from profilesync.core.types import Decision, Profile, StoredProfile

__all__ = [
    # Config
    "DEFAULT_ENDPOINT",
    "FetcherConfig",
    "SyncConfig",
    # Types
    "Decision",
    "Profile",
    "StoredProfile",
]
