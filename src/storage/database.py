"""SQLite-backed durable key/value store for translation state."""

import asyncio
import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)

PROGRESS_NAMESPACE = "progress"
CHUNKS_NAMESPACE = "chunks"
NAMESPACES: tuple[str, ...] = (PROGRESS_NAMESPACE, CHUNKS_NAMESPACE)


class StoreError(Exception):
    """A durable store read or write failed."""


def get_connection(db_path: str | Path) -> sqlite3.Connection:
    """Create a connection to the SQLite database.

    Args:
        db_path: Path to the SQLite database file.

    Returns:
        A sqlite3 Connection with row_factory set to Row.
    """
    conn = sqlite3.connect(str(db_path), timeout=30)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    return conn


def initialize_database(db_path: str | Path) -> None:
    """Create the database schema if it doesn't exist.

    Args:
        db_path: Path to the SQLite database file.
    """
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = get_connection(db_path)
    try:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS kv_store (
                namespace TEXT NOT NULL,
                key TEXT NOT NULL,
                value TEXT NOT NULL,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                PRIMARY KEY (namespace, key)
            );
            """
        )
        conn.commit()
    finally:
        conn.close()


def _check_namespace(namespace: str) -> None:
    if namespace not in NAMESPACES:
        raise ValueError(
            f"Unknown namespace: '{namespace}'. Supported: {', '.join(NAMESPACES)}"
        )


class SQLiteStore:
    """Namespaced async get/put/clear over a single SQLite file.

    Each operation opens its own connection inside a worker thread, so
    concurrent chunk writes from one event loop do not share a connection.

    Args:
        db_path: Path to the SQLite database file. The schema is created
                 on construction.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path)
        try:
            initialize_database(self._db_path)
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot initialize store at {self._db_path}: {exc}") from exc

    @property
    def db_path(self) -> Path:
        return self._db_path

    async def get(self, namespace: str, key: str) -> str | None:
        """Return the stored value, or None when the key is absent."""
        _check_namespace(namespace)
        return await asyncio.to_thread(self._get_sync, namespace, key)

    async def put(self, namespace: str, key: str, value: str) -> None:
        """Insert or overwrite a value."""
        _check_namespace(namespace)
        await asyncio.to_thread(self._put_sync, namespace, key, value)

    async def delete(self, namespace: str, key: str) -> None:
        """Remove a single key; missing keys are ignored."""
        _check_namespace(namespace)
        await asyncio.to_thread(
            self._execute, "DELETE FROM kv_store WHERE namespace = ? AND key = ?", (namespace, key)
        )

    async def clear(self, namespace: str) -> None:
        """Remove every key of one namespace."""
        _check_namespace(namespace)
        await asyncio.to_thread(
            self._execute, "DELETE FROM kv_store WHERE namespace = ?", (namespace,)
        )

    async def clear_all(self) -> None:
        """Remove every key of every namespace."""
        await asyncio.to_thread(self._execute, "DELETE FROM kv_store", ())
        logger.info("Cleared all stored state in %s", self._db_path)

    async def count(self, namespace: str) -> int:
        """Number of keys stored in a namespace."""
        _check_namespace(namespace)
        return await asyncio.to_thread(self._count_sync, namespace)

    def _get_sync(self, namespace: str, key: str) -> str | None:
        try:
            conn = get_connection(self._db_path)
            try:
                row = conn.execute(
                    "SELECT value FROM kv_store WHERE namespace = ? AND key = ?",
                    (namespace, key),
                ).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to read {namespace}/{key}: {exc}") from exc
        return row["value"] if row else None

    def _put_sync(self, namespace: str, key: str, value: str) -> None:
        self._execute(
            """
            INSERT INTO kv_store (namespace, key, value, updated_at)
            VALUES (?, ?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(namespace, key) DO UPDATE SET
                value = excluded.value,
                updated_at = excluded.updated_at
            """,
            (namespace, key, value),
        )

    def _count_sync(self, namespace: str) -> int:
        try:
            conn = get_connection(self._db_path)
            try:
                row = conn.execute(
                    "SELECT COUNT(*) FROM kv_store WHERE namespace = ?", (namespace,)
                ).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to count {namespace}: {exc}") from exc
        return int(row[0])

    def _execute(self, sql: str, params: tuple) -> None:
        try:
            conn = get_connection(self._db_path)
            try:
                conn.execute(sql, params)
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as exc:
            raise StoreError(f"Store write failed: {exc}") from exc
