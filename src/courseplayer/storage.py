"""SQLite-backed keyed record storage for persisted JSON state."""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime
from pathlib import Path

SCHEMA_VERSION = 1


class RecordStore:
    """Key to JSON-text store; every operation is one transaction.

    Several stores may be opened on the same database file. Each ``put`` or
    ``delete`` is atomic, but there is no ordering between stores.
    """

    def __init__(self, db_path: Path | str) -> None:
        """Open database and apply schema migrations."""
        if isinstance(db_path, Path):
            db_path.parent.mkdir(parents=True, exist_ok=True)
            target = str(db_path)
        else:
            target = db_path
        self._conn = sqlite3.connect(target)
        self._conn.row_factory = sqlite3.Row
        self._apply_migrations()

    def _apply_migrations(self) -> None:
        """Apply forward-only schema migrations to latest version."""
        current = int(self._conn.execute("PRAGMA user_version").fetchone()[0])
        if current > SCHEMA_VERSION:
            raise RuntimeError(f"Database schema version {current} is newer than supported {SCHEMA_VERSION}.")

        for version in range(current + 1, SCHEMA_VERSION + 1):
            if version == 1:
                self._migrate_to_v1()
            with self._conn:
                self._conn.execute(f"PRAGMA user_version = {version}")

    def _migrate_to_v1(self) -> None:
        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS records (
                    key TEXT PRIMARY KEY,
                    payload TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """)

    def get(self, key: str) -> str | None:
        """Return stored payload for key, or None when absent."""
        row = self._conn.execute("SELECT payload FROM records WHERE key = ?", (key,)).fetchone()
        if row is None:
            return None
        return str(row["payload"])

    def put(self, key: str, payload: str) -> None:
        """Store payload under key, replacing any prior value."""
        now = datetime.now(UTC).isoformat()
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO records (key, payload, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    payload = excluded.payload,
                    updated_at = excluded.updated_at
                """,
                (key, payload, now),
            )

    def delete(self, key: str) -> bool:
        """Delete key and return whether a record existed."""
        with self._conn:
            cursor = self._conn.execute("DELETE FROM records WHERE key = ?", (key,))
        return cursor.rowcount > 0

    def close(self) -> None:
        """Close db connection."""
        self._conn.close()
