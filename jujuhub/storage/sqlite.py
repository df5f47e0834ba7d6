"""SQLite storage backend.

Blobs live in a single key/value table so the whole application state is one
file. Every ``save`` commits on its own: a collection write is durable as soon
as the call returns.

CONNECTION LIFECYCLE:
- The connection opens lazily on first use and stays open
- ``close()`` releases it; the next call reopens
- WAL mode keeps readers (e.g. a backup tool) from blocking writes
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

from ..exceptions import PersistenceError
from ..host.time import now_iso
from .base import Storage

SCHEMA = """
    CREATE TABLE IF NOT EXISTS collections (
        key         TEXT PRIMARY KEY,
        data        TEXT NOT NULL,
        updated_at  TEXT NOT NULL
    )
"""


class SqliteStorage(Storage):
    """Key/value storage in a local SQLite database.

    Attributes:
        db_path: Path to the SQLite database file (':memory:' allowed)
    """

    def __init__(self, db_path: str | Path) -> None:
        """Initialize the store with a database path.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = db_path
        self._conn: sqlite3.Connection | None = None

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create the database connection."""
        if self._conn is None:
            if str(self.db_path) != ":memory:":
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
            conn.row_factory = sqlite3.Row
            if str(self.db_path) != ":memory:":
                conn.execute("PRAGMA journal_mode = WAL")
            conn.execute(SCHEMA)
            conn.commit()
            self._conn = conn
        return self._conn

    def load(self, key: str) -> str | None:
        try:
            row = self._get_connection().execute(
                "SELECT data FROM collections WHERE key = ?", (key,)
            ).fetchone()
        except (sqlite3.Error, OSError) as e:
            raise PersistenceError(f"Failed to read '{key}': {e}", key=key) from e
        return row["data"] if row else None

    def save(self, key: str, data: str) -> None:
        try:
            conn = self._get_connection()
            with conn:
                conn.execute(
                    """
                    INSERT INTO collections (key, data, updated_at)
                    VALUES (?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        data = excluded.data,
                        updated_at = excluded.updated_at
                    """,
                    (key, data, now_iso()),
                )
        except (sqlite3.Error, OSError) as e:
            raise PersistenceError(f"Failed to write '{key}': {e}", key=key) from e

    def delete(self, key: str) -> bool:
        try:
            conn = self._get_connection()
            with conn:
                cursor = conn.execute("DELETE FROM collections WHERE key = ?", (key,))
        except (sqlite3.Error, OSError) as e:
            raise PersistenceError(f"Failed to delete '{key}': {e}", key=key) from e
        return cursor.rowcount > 0

    def keys(self) -> list[str]:
        try:
            rows = self._get_connection().execute(
                "SELECT key FROM collections ORDER BY key"
            ).fetchall()
        except (sqlite3.Error, OSError) as e:
            raise PersistenceError(f"Failed to list keys: {e}", key="*") from e
        return [row["key"] for row in rows]

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
