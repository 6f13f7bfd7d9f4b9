"""Sync orchestrator: cache-first load, gated network refresh, decisions.

This module provides:
- SyncOrchestrator: Drives load cycles and publishes SyncSnapshot state

Cycle:
    IDLE -> LOADING_CACHE -> (online ? REFRESHING_NETWORK : IDLE) -> IDLE
    Any non-terminal phase may end in CANCELLED.

Each cycle owns a CancelToken. Starting a new cycle cancels the previous
token, and every publish re-checks the token while holding the
orchestrator lock, so a superseded cycle can never overwrite state
published by a newer one. Store reads that feed a publish happen under
the same lock; network calls never do.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import TYPE_CHECKING, Any, Protocol

from profilesync.client.state import StoreError
from profilesync.client.sync.reconciler import Reconciler
from profilesync.client.sync.types import (
    CancelToken,
    CyclePhase,
    SnapshotCallback,
    SyncCancelled,
    SyncError,
    SyncSnapshot,
)
from profilesync.core.types import Decision

if TYPE_CHECKING:
    from collections.abc import Callable

    from profilesync.client.state import LocalProfileStore
    from profilesync.client.sync.connectivity import ConnectivityMonitor
    from profilesync.core.types import Profile, StoredProfile

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 10


class FetcherProtocol(Protocol):
    """Protocol for remote fetchers used by the orchestrator."""

    def fetch(self, count: int, token: CancelToken | None = None) -> list[Profile]:
        """Fetch a batch of profiles or raise."""
        ...


class SyncOrchestrator:
    """Coordinates the local store, the fetcher and connectivity.

    Usage:
        orchestrator = SyncOrchestrator(store, fetcher, monitor)
        orchestrator.subscribe(render)
        orchestrator.start()

        orchestrator.record_decision(profile_id, Decision.ACCEPTED)
        orchestrator.refresh()

        orchestrator.close()
    """

    def __init__(
        self,
        store: LocalProfileStore,
        fetcher: FetcherProtocol,
        monitor: ConnectivityMonitor | None = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            store: Local profile cache (shared, owned by the caller).
            fetcher: Remote profile source.
            monitor: Connectivity monitor; without one the orchestrator
                always considers itself online.
            batch_size: Number of profiles requested per refresh.
        """
        self._store = store
        self._fetcher = fetcher
        self._reconciler = Reconciler(store)
        self._monitor = monitor
        self._batch_size = batch_size

        self._lock = threading.RLock()
        self._snapshot = SyncSnapshot(
            is_online=monitor.is_online if monitor else True,
        )
        self._subscribers: list[SnapshotCallback] = []

        self._token: CancelToken | None = None
        self._thread: threading.Thread | None = None
        self._unsubscribe_monitor: Callable[[], None] | None = None
        self._closed = False

    # === Observable state ===

    @property
    def snapshot(self) -> SyncSnapshot:
        """Latest published state."""
        with self._lock:
            return self._snapshot

    @property
    def profiles(self) -> tuple[StoredProfile, ...]:
        return self.snapshot.profiles

    @property
    def error(self) -> SyncError | None:
        return self.snapshot.error

    @property
    def is_online(self) -> bool:
        if self._monitor is not None:
            return self._monitor.is_online
        return self.snapshot.is_online

    def subscribe(self, callback: SnapshotCallback) -> Callable[[], None]:
        """Register a callback invoked with every new snapshot.

        Callbacks run on the publishing thread while the orchestrator lock
        is held; they must return quickly.

        Returns:
            A function that removes the subscription.
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def clear_error(self) -> None:
        """Clear the current error (done by the consumer once shown)."""
        self._publish(None, error=None)

    # === Lifecycle ===

    def start(self) -> threading.Thread:
        """Start connectivity monitoring and the first load cycle."""
        if self._monitor is not None and self._unsubscribe_monitor is None:
            self._unsubscribe_monitor = self._monitor.subscribe(self._on_connectivity_change)
            self._monitor.start()
        return self.refresh()

    def close(self) -> None:
        """Cancel any in-flight cycle and stop the connectivity monitor."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            thread = self._thread
            if self._token is not None:
                self._token.cancel()
                if thread is not None and thread.is_alive():
                    self._publish(None, phase=CyclePhase.CANCELLED)

        if self._unsubscribe_monitor is not None:
            self._unsubscribe_monitor()
            self._unsubscribe_monitor = None
        if self._monitor is not None:
            self._monitor.stop()

        if thread is not None and thread is not threading.current_thread():
            # A hanging network call cannot be interrupted; it is abandoned
            thread.join(timeout=1.0)
        logger.debug("SyncOrchestrator closed")

    def __enter__(self) -> SyncOrchestrator:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    # === Load cycles ===

    def load(self) -> CyclePhase:
        """Run one cycle synchronously on the calling thread.

        Cancels any cycle already in flight.

        Returns:
            CyclePhase.IDLE when the cycle completed, CANCELLED otherwise.
        """
        token = self._begin_cycle()
        return self._run_cycle(token)

    def refresh(self) -> threading.Thread:
        """Cancel the in-flight cycle and start a new one in the background.

        Returns:
            The worker thread running the new cycle.
        """
        with self._lock:
            token = self._begin_cycle()
            thread = threading.Thread(
                target=self._run_cycle,
                args=(token,),
                name="SyncCycle",
                daemon=True,
            )
            self._thread = thread
            thread.start()
        return thread

    def wait(self, timeout: float | None = None) -> bool:
        """Wait for the latest background cycle to finish.

        Returns:
            True if no cycle is running anymore.
        """
        with self._lock:
            thread = self._thread
        if thread is None:
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def _begin_cycle(self) -> CancelToken:
        with self._lock:
            if self._closed:
                raise RuntimeError("SyncOrchestrator is closed")
            if self._token is not None:
                self._token.cancel()
            self._token = CancelToken()
            return self._token

    def _run_cycle(self, token: CancelToken) -> CyclePhase:
        try:
            self._publish(token, phase=CyclePhase.LOADING_CACHE)

            try:
                self._reload_from_cache(token)
            except StoreError as e:
                logger.error(f"Failed to load cached profiles: {e}")
                self._publish(token, error=SyncError.CACHE_LOAD_FAILED)

            token.raise_if_cancelled()

            if self.is_online:
                logger.info("Online - attempting network refresh...")
                self._publish(token, phase=CyclePhase.REFRESHING_NETWORK)
                self._refresh_from_network(token)
            else:
                logger.info("Offline - skipping network refresh")

            self._publish(token, phase=CyclePhase.IDLE)
            token.raise_if_cancelled()
            return CyclePhase.IDLE
        except SyncCancelled:
            logger.debug("Sync cycle cancelled")
            return CyclePhase.CANCELLED

    def _refresh_from_network(self, token: CancelToken) -> None:
        try:
            fetched = self._fetcher.fetch(self._batch_size, token=token)
            logger.info(f"Fetcher returned {len(fetched)} profiles")

            with self._lock:
                token.raise_if_cancelled()
                self._reconciler.reconcile(fetched)
                self._reload_from_cache(token)
        except SyncCancelled:
            raise
        except Exception as e:
            if token.cancelled:
                raise SyncCancelled() from e
            logger.warning(f"Network refresh failed: {e}")
            self._publish(token, error=SyncError.NETWORK_REFRESH_FAILED)

    def _reload_from_cache(self, token: CancelToken | None) -> None:
        """Read the store and publish it, atomically w.r.t. other publishers."""
        with self._lock:
            if token is not None:
                token.raise_if_cancelled()
            profiles = self._store.fetch_all()
            self._publish(token, profiles=tuple(profiles))

    # === Decisions ===

    def record_decision(self, profile_id: str, decision: Decision) -> bool:
        """Persist a decision and republish the cache.

        Never touches the network and never retries.

        Returns:
            True if the decision was saved (or the id is unknown).
        """
        try:
            with self._lock:
                self._store.set_decision(profile_id, Decision(decision))
                self._reload_from_cache(None)
        except StoreError as e:
            logger.error(f"Failed to save decision for {profile_id}: {e}")
            self._publish(None, error=SyncError.DECISION_SAVE_FAILED)
            return False
        logger.info(f"Recorded decision {Decision(decision).value} for {profile_id}")
        return True

    def accept(self, profile_id: str) -> bool:
        return self.record_decision(profile_id, Decision.ACCEPTED)

    def decline(self, profile_id: str) -> bool:
        return self.record_decision(profile_id, Decision.DECLINED)

    # === Publishing ===

    def _on_connectivity_change(self, online: bool) -> None:
        self._publish(None, is_online=online)

    def _publish(self, token: CancelToken | None, **changes: Any) -> bool:
        """Replace the snapshot unless the publishing cycle was cancelled.

        Returns:
            True if the snapshot was published.
        """
        with self._lock:
            if token is not None and token.cancelled:
                return False
            if self._monitor is not None and "is_online" not in changes:
                changes["is_online"] = self._monitor.is_online
            self._snapshot = replace(self._snapshot, **changes)
            snapshot = self._snapshot
            for callback in list(self._subscribers):
                try:
                    callback(snapshot)
                except Exception as e:
                    logger.warning(f"Snapshot subscriber failed: {e}")
        return True
