"""Merge fetched profile batches into the local store.

The reconciler never touches records directly: it first collapses
repeated ids with remove_duplicates(), then hands the batch to upsert(),
which refreshes remote fields and leaves decisions alone.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from profilesync.client.sync.types import ReconcileResult

if TYPE_CHECKING:
    from profilesync.client.state import LocalProfileStore
    from profilesync.core.types import Profile

logger = logging.getLogger(__name__)


class Reconciler:
    """Upserts fetched profiles while preserving user decisions."""

    def __init__(self, store: LocalProfileStore) -> None:
        self._store = store

    def reconcile(self, fetched: Sequence[Profile]) -> ReconcileResult:
        """Merge a fetched batch.

        Args:
            fetched: Profiles returned by the fetcher.

        Returns:
            Summary of inserted/updated ids and repaired duplicates.

        Raises:
            StoreError: If the store could not be repaired or written.
        """
        removed = self._store.remove_duplicates()
        inserted, updated = self._store.upsert(fetched)

        result = ReconcileResult(
            inserted=inserted,
            updated=updated,
            duplicates_removed=removed,
        )
        logger.info(
            f"Reconciled {result.total} profiles "
            f"({len(inserted)} new, {len(updated)} refreshed, {removed} duplicates removed)"
        )
        return result
