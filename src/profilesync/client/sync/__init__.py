"""Sync engine for profilesync.

This package provides:
- types: Cancellation token, published snapshot, error kinds
- retry: Linear backoff retry
- reconciler: Merge fetched batches into the local store
- connectivity: Background reachability monitor
- orchestrator: Cache-first load cycles and decision recording
"""

from profilesync.client.sync.connectivity import ConnectivityMonitor
from profilesync.client.sync.orchestrator import SyncOrchestrator
from profilesync.client.sync.reconciler import Reconciler
from profilesync.client.sync.retry import backoff_delay, retry_with_backoff
from profilesync.client.sync.types import (
    CancelToken,
    CyclePhase,
    ReconcileResult,
    SyncCancelled,
    SyncError,
    SyncSnapshot,
)

__all__ = [
    # Connectivity
    "ConnectivityMonitor",
    # Orchestration
    "SyncOrchestrator",
    "Reconciler",
    "ReconcileResult",
    # Retry
    "backoff_delay",
    "retry_with_backoff",
    # Types
    "CancelToken",
    "CyclePhase",
    "SyncCancelled",
    "SyncError",
    "SyncSnapshot",
]
