"""Shared types and dataclasses for sync operations.

This module provides:
- SyncCancelled: Raised when a cycle notices its token was cancelled
- CancelToken: Explicit cancellation handle passed through a sync cycle
- SyncError: User-facing error kinds published by the orchestrator
- CyclePhase: Per-cycle state machine
- SyncSnapshot: Published state observed by the presentation layer
- ReconcileResult: Summary of a merge
- Type aliases for callbacks
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum

from profilesync.core.types import StoredProfile


class SyncCancelled(Exception):
    """The running sync cycle was superseded or shut down."""


class CancelToken:
    """Cancellation handle for one sync cycle.

    Wraps a threading.Event so that waits (retry backoff) wake up as soon
    as the cycle is cancelled.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        """Check if cancellation was requested."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    def raise_if_cancelled(self) -> None:
        """Raise SyncCancelled if cancellation was requested."""
        if self._event.is_set():
            raise SyncCancelled()

    def wait(self, timeout: float) -> bool:
        """Sleep for up to timeout seconds.

        Returns:
            True if the token was cancelled while waiting.
        """
        return self._event.wait(timeout)


class SyncError(str, Enum):
    """Error kinds surfaced to the presentation layer."""

    CACHE_LOAD_FAILED = "cache_load_failed"
    NETWORK_REFRESH_FAILED = "network_refresh_failed"
    DECISION_SAVE_FAILED = "decision_save_failed"

    @property
    def message(self) -> str:
        """Get the user-facing message."""
        return _SYNC_ERROR_MESSAGES[self]


_SYNC_ERROR_MESSAGES = {
    SyncError.CACHE_LOAD_FAILED: "Failed to load cached data.",
    SyncError.NETWORK_REFRESH_FAILED: "Couldn't refresh from server. Working offline.",
    SyncError.DECISION_SAVE_FAILED: "Failed to save your decision. Try again.",
}


class CyclePhase(str, Enum):
    """Phase of the current load cycle."""

    IDLE = "idle"
    LOADING_CACHE = "loading_cache"
    REFRESHING_NETWORK = "refreshing_network"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class SyncSnapshot:
    """Published orchestrator state.

    Attributes:
        profiles: Cached profiles ordered by display name.
        error: Current error, until cleared by the consumer.
        is_online: Last known connectivity.
        phase: Phase of the most recent cycle.
    """

    profiles: tuple[StoredProfile, ...] = ()
    error: SyncError | None = None
    is_online: bool = True
    phase: CyclePhase = CyclePhase.IDLE

    @property
    def error_message(self) -> str | None:
        """Get the user-facing message of the current error."""
        return self.error.message if self.error else None


@dataclass
class ReconcileResult:
    """Result of merging one fetched batch into the store."""

    inserted: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    duplicates_removed: int = 0

    @property
    def total(self) -> int:
        """Number of distinct profiles merged."""
        return len(self.inserted) + len(self.updated)


# Type aliases for callbacks
SnapshotCallback = Callable[[SyncSnapshot], None]
