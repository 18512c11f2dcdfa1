"""Opaque key/value blob stores and the persistence adapter over them."""

from __future__ import annotations

import sqlite3
from datetime import UTC, datetime
from pathlib import Path
from typing import Protocol

SCHEMA_VERSION = 1
DEFAULT_STORAGE_KEY = "arcane_pathways_progress"


class BlobStore(Protocol):
    """Get/set-bytes storage medium."""

    def get(self, key: str) -> bytes | None: ...

    def set(self, key: str, data: bytes) -> None: ...


class MemoryBlobStore:
    """Dict-backed blob store for tests and ephemeral sessions."""

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self._blobs: dict[str, bytes] = dict(initial or {})

    def get(self, key: str) -> bytes | None:
        return self._blobs.get(key)

    def set(self, key: str, data: bytes) -> None:
        self._blobs[key] = bytes(data)


class SqliteBlobStore:
    """SQLite-backed blob store."""

    def __init__(self, db_path: Path | str) -> None:
        """Open the database and bring its schema up to date."""
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

        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS schema_migrations (
                    version INTEGER PRIMARY KEY,
                    applied_at TEXT NOT NULL
                )
                """)

        for version in range(current + 1, SCHEMA_VERSION + 1):
            if version == 1:
                self._migrate_to_v1()
            with self._conn:
                self._conn.execute(f"PRAGMA user_version = {version}")
                self._conn.execute(
                    "INSERT OR REPLACE INTO schema_migrations (version, applied_at) VALUES (?, ?)",
                    (version, datetime.now(UTC).isoformat()),
                )

    def _migrate_to_v1(self) -> None:
        """Create the blob table."""
        with self._conn:
            self._conn.execute("""
                CREATE TABLE IF NOT EXISTS blobs (
                    key TEXT PRIMARY KEY,
                    data BLOB NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """)

    def get(self, key: str) -> bytes | None:
        """Return stored bytes for a key, if any."""
        row = self._conn.execute("SELECT data FROM blobs WHERE key = ?", (key,)).fetchone()
        if row is None:
            return None
        return bytes(row["data"])

    def set(self, key: str, data: bytes) -> None:
        """Insert or replace the bytes stored under a key."""
        now = datetime.now(UTC).isoformat()
        with self._conn:
            self._conn.execute(
                """
                INSERT INTO blobs (key, data, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    data = excluded.data,
                    updated_at = excluded.updated_at
                """,
                (key, sqlite3.Binary(data), now),
            )

    def close(self) -> None:
        """Close db connection."""
        self._conn.close()

    def __del__(self) -> None:  # pragma: no cover
        """Best-effort connection cleanup."""
        try:
            self.close()
        except Exception:
            pass


class PersistenceAdapter:
    """Reads and writes the snapshot blob under one fixed key."""

    def __init__(self, store: BlobStore, key: str = DEFAULT_STORAGE_KEY) -> None:
        self.store = store
        self.key = key

    def load(self) -> bytes | None:
        return self.store.get(self.key)

    def save(self, data: bytes) -> None:
        self.store.set(self.key, data)
