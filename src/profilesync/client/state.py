"""Local profile cache for the sync client.

This module provides:
- LocalProfileStore: SQLite-based durable cache of profiles and decisions
- StoreError: Raised when the underlying storage fails

Architecture:
    Every operation runs under a single re-entrant lock and, for writes,
    inside one SQL transaction. Readers therefore never observe a half
    applied batch.

    Rows are keyed by an internal rowid; the profile id is indexed but
    not declared UNIQUE. Uniqueness is maintained by upsert() and can be
    repaired with remove_duplicates() if another writer bypassed it.
"""

from __future__ import annotations

import logging
import sqlite3
import threading
import time
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path

from profilesync.core.types import Decision, Profile, StoredProfile

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Local storage failed (I/O, corruption, locked database...)."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class LocalProfileStore:
    """SQLite-based local cache of profiles.

    The store is the only owner of persisted records. Callers receive
    detached StoredProfile copies and never hold database rows.
    """

    def __init__(
        self,
        db_path: Path | str,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize local profile database.

        Args:
            db_path: Path to SQLite database file, or ":memory:".
            clock: Source of updated_at timestamps.
        """
        self._clock = clock
        if str(db_path) == ":memory:":
            self._db_path: Path | None = None
            target = ":memory:"
        else:
            self._db_path = Path(db_path)
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            target = str(self._db_path)

        # Lock for thread-safe database access
        self._lock = threading.RLock()

        try:
            self._conn = sqlite3.connect(
                target,
                check_same_thread=False,
                isolation_level=None,  # Transactions are managed explicitly
            )
            self._conn.row_factory = sqlite3.Row
            if self._db_path is not None:
                self._conn.execute("PRAGMA journal_mode=WAL")
            self._create_tables()
        except sqlite3.Error as e:
            raise StoreError(f"Cannot open profile store at {target}: {e}", e) from e

    @property
    def db_path(self) -> Path | None:
        return self._db_path

    def _create_tables(self) -> None:
        """Create database tables if they don't exist."""
        self._conn.executescript("""
            CREATE TABLE IF NOT EXISTS profiles (
                row_id INTEGER PRIMARY KEY AUTOINCREMENT,
                id TEXT NOT NULL,
                full_name TEXT NOT NULL,
                age INTEGER NOT NULL,
                city TEXT NOT NULL,
                image_url TEXT NOT NULL,
                decision TEXT NOT NULL DEFAULT 'none',
                updated_at REAL NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_profiles_id ON profiles(id);
            CREATE INDEX IF NOT EXISTS idx_profiles_full_name ON profiles(full_name);
        """)

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._conn.close()

    def __enter__(self) -> LocalProfileStore:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    @contextmanager
    def _transaction(self, operation: str) -> Iterator[sqlite3.Connection]:
        """Run a block inside one locked transaction.

        Rolls back on any error and re-raises sqlite errors as StoreError.
        """
        with self._lock:
            try:
                self._conn.execute("BEGIN IMMEDIATE")
            except sqlite3.Error as e:
                raise StoreError(f"{operation} failed: {e}", e) from e
            try:
                yield self._conn
                self._conn.execute("COMMIT")
            except BaseException as e:
                # SQLite has already rolled back on errors such as SQLITE_FULL
                if self._conn.in_transaction:
                    try:
                        self._conn.execute("ROLLBACK")
                    except sqlite3.Error as rollback_error:
                        logger.error(f"{operation} rollback failed: {rollback_error}")
                if isinstance(e, sqlite3.Error):
                    raise StoreError(f"{operation} failed: {e}", e) from e
                raise

    def _query(self, operation: str, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        with self._lock:
            try:
                return self._conn.execute(sql, params).fetchall()
            except sqlite3.Error as e:
                raise StoreError(f"{operation} failed: {e}", e) from e

    def _to_records(self, operation: str, rows: list[sqlite3.Row]) -> list[StoredProfile]:
        """Convert rows, treating unreadable values as storage corruption."""
        try:
            return [StoredProfile.from_row(row) for row in rows]
        except (KeyError, TypeError, ValueError) as e:
            raise StoreError(f"{operation} failed: corrupt record: {e}", e) from e

    # === Reads ===

    def fetch_all(self) -> list[StoredProfile]:
        """List all profiles ordered by display name.

        Returns:
            StoredProfile records sorted by full_name ascending.
        """
        rows = self._query(
            "fetch_all",
            "SELECT * FROM profiles ORDER BY full_name ASC, id ASC, row_id ASC",
        )
        return self._to_records("fetch_all", rows)

    def count(self) -> int:
        """Count distinct profile ids."""
        rows = self._query("count", "SELECT COUNT(DISTINCT id) AS n FROM profiles")
        return int(rows[0]["n"])

    def get(self, profile_id: str) -> StoredProfile | None:
        """Get a profile by id.

        Returns:
            The most recently written record for the id, None if unknown.
        """
        rows = self._query(
            "get",
            "SELECT * FROM profiles WHERE id = ? ORDER BY updated_at DESC, row_id DESC LIMIT 1",
            (profile_id,),
        )
        return self._to_records("get", rows)[0] if rows else None

    def list_by_decision(self, decision: Decision) -> list[StoredProfile]:
        """List profiles carrying a given decision, ordered by display name."""
        rows = self._query(
            "list_by_decision",
            "SELECT * FROM profiles WHERE decision = ? ORDER BY full_name ASC, id ASC",
            (Decision(decision).value,),
        )
        return self._to_records("list_by_decision", rows)

    # === Writes ===

    def upsert(self, profiles: Iterable[Profile]) -> tuple[list[str], list[str]]:
        """Insert new profiles and refresh existing ones, as one unit.

        Existing records keep their decision; only the remote fields and
        updated_at change. New records start with Decision.NONE.

        Args:
            profiles: Incoming batch. Repeated ids collapse to the last one.

        Returns:
            (inserted ids, updated ids), in first-seen order.

        Raises:
            StoreError: If the batch could not be written; nothing is applied.
        """
        batch: dict[str, Profile] = {}
        for profile in profiles:
            batch[profile.id] = profile

        inserted: list[str] = []
        updated: list[str] = []
        now = self._clock()

        with self._transaction("upsert") as conn:
            for profile in batch.values():
                cursor = conn.execute(
                    """
                    UPDATE profiles
                    SET full_name = ?, age = ?, city = ?, image_url = ?, updated_at = ?
                    WHERE id = ?
                    """,
                    (profile.full_name, profile.age, profile.city, profile.image_url,
                     now, profile.id),
                )
                if cursor.rowcount > 0:
                    updated.append(profile.id)
                    continue
                conn.execute(
                    """
                    INSERT INTO profiles (
                        id, full_name, age, city, image_url, decision, updated_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (profile.id, profile.full_name, profile.age, profile.city,
                     profile.image_url, Decision.NONE.value, now),
                )
                inserted.append(profile.id)

        logger.debug(f"Upserted {len(inserted)} new and {len(updated)} existing profiles")
        return inserted, updated

    def set_decision(self, profile_id: str, decision: Decision) -> bool:
        """Record a decision for a profile.

        Args:
            profile_id: Profile id.
            decision: New decision.

        Returns:
            True if a record was updated, False if the id is unknown.
        """
        decision = Decision(decision)
        with self._transaction("set_decision") as conn:
            cursor = conn.execute(
                "UPDATE profiles SET decision = ?, updated_at = ? WHERE id = ?",
                (decision.value, self._clock(), profile_id),
            )
            changed = cursor.rowcount > 0

        if not changed:
            logger.debug(f"set_decision ignored unknown profile {profile_id}")
        return changed

    def delete_all(self) -> int:
        """Remove every stored profile.

        Returns:
            Number of rows deleted.
        """
        with self._transaction("delete_all") as conn:
            cursor = conn.execute("DELETE FROM profiles")
            deleted = cursor.rowcount
        logger.info(f"Deleted {deleted} cached profiles")
        return deleted

    def remove_duplicates(self) -> int:
        """Keep one record per id, dropping superseded duplicates.

        The survivor is the record with the greatest updated_at; ties go to
        the most recently inserted row. Safe to call at any time.

        Returns:
            Number of rows removed (0 when the store is already clean).
        """
        with self._transaction("remove_duplicates") as conn:
            rows = conn.execute(
                """
                SELECT row_id, id FROM profiles
                WHERE id IN (SELECT id FROM profiles GROUP BY id HAVING COUNT(*) > 1)
                ORDER BY id, updated_at DESC, row_id DESC
                """
            ).fetchall()

            stale: list[int] = []
            kept: set[str] = set()
            for row in rows:
                if row["id"] in kept:
                    stale.append(row["row_id"])
                else:
                    kept.add(row["id"])

            conn.executemany(
                "DELETE FROM profiles WHERE row_id = ?",
                [(row_id,) for row_id in stale],
            )

        if stale:
            logger.warning(
                f"Removed {len(stale)} duplicate records for {len(kept)} profile ids"
            )
        return len(stale)
