# ruff: noqa: BLE001
"""Key-value store collaborators backing the result cache.

``KeyValueStore`` is the protocol the cache depends on. Two implementations are provided: an
in-process dictionary and an SQLite file in WAL mode that survives process restarts.
"""

from __future__ import annotations

import sqlite3
import time
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

__all__: list[str] = ["KeyValueStore", "MemoryKeyValueStore", "SQLiteKeyValueStore"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


@runtime_checkable
class KeyValueStore(Protocol):
    """String key-value store with optional per-key TTL."""

    async def get(self, key: str) -> str | None: ...

    async def set(self, key: str, value: str, ttl_ms: int | None = None) -> None: ...

    async def delete(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """In-process key-value store.

    Args:
        clock (Callable[[], float]): Monotonic clock in seconds, injectable for tests.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock: Callable[[], float] = clock
        self._data: dict[str, tuple[str, float | None]] = {}

    def __len__(self) -> int:
        return len(self._data)

    async def get(self, key: str) -> str | None:
        item: tuple[str, float | None] | None = self._data.get(key)
        if item is None:
            return None
        value, expires_at = item
        if expires_at is not None and self._clock() >= expires_at:
            del self._data[key]
            return None
        return value

    async def set(self, key: str, value: str, ttl_ms: int | None = None) -> None:
        expires_at: float | None = self._clock() + ttl_ms / 1000 if ttl_ms else None
        self._data[key] = (value, expires_at)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)


class SQLiteKeyValueStore:
    """Key-value store persisted in an SQLite database with WAL journaling.

    Expiry is stored as epoch seconds so that it remains meaningful after a restart. Expired rows
    are invisible to ``get`` and are removed by ``purge_expired``.

    Args:
        db_path (str | Path): Database file path.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path: Path = Path(db_path)
        self._db_conn: sqlite3.Connection | None = None
        logger.debug("SQLiteKeyValueStore instance created for '%s'", self._db_path)

    @property
    def is_initialized(self) -> bool:
        return self._db_conn is not None

    @property
    def _conn(self) -> sqlite3.Connection:
        if self._db_conn is None:
            msg = "SQLiteKeyValueStore is not initialized"
            raise RuntimeError(msg)
        return self._db_conn

    async def component_load(self) -> None:
        """Open the database and create the table.

        Raises:
            RuntimeError: If the database cannot be initialized.
        """
        logger.info("SQLiteKeyValueStore initialization started")
        try:
            self._db_conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
            self._db_conn.execute("PRAGMA journal_mode=WAL")
            self._db_conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    expires_at REAL
                )
                """
            )
            self._db_conn.execute("CREATE INDEX IF NOT EXISTS idx_kv_expires ON kv_store(expires_at)")
            self._db_conn.commit()
        except sqlite3.Error as err:
            self._db_conn = None
            msg: str = f"Database initialization failed: {err}"
            logger.critical(msg)
            raise RuntimeError(msg) from err
        logger.info("SQLiteKeyValueStore initialized with WAL mode")

    async def component_teardown(self) -> None:
        """Close the database connection."""
        if self._db_conn is not None:
            try:
                self._db_conn.close()
                logger.info("Database connection closed")
            except Exception as err:
                logger.error("Error closing database connection: %s", err)
        self._db_conn = None

    async def get(self, key: str) -> str | None:
        cursor: sqlite3.Cursor = self._conn.execute(
            "SELECT value FROM kv_store WHERE key = ? AND (expires_at IS NULL OR expires_at > ?)",
            (key, time.time()),
        )
        row = cursor.fetchone()
        return None if row is None else row[0]

    async def set(self, key: str, value: str, ttl_ms: int | None = None) -> None:
        expires_at: float | None = time.time() + ttl_ms / 1000 if ttl_ms else None
        self._conn.execute(
            "INSERT OR REPLACE INTO kv_store (key, value, expires_at) VALUES (?, ?, ?)",
            (key, value, expires_at),
        )
        self._conn.commit()

    async def delete(self, key: str) -> None:
        self._conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
        self._conn.commit()

    async def purge_expired(self) -> int:
        """Delete expired rows.

        Returns:
            int: Number of deleted rows, 0 on error.
        """
        try:
            cursor: sqlite3.Cursor = self._conn.execute(
                "DELETE FROM kv_store WHERE expires_at IS NOT NULL AND expires_at <= ?", (time.time(),)
            )
            self._conn.commit()
        except sqlite3.Error as err:
            logger.error("Error during expired entry cleanup: %s", err)
            return 0
        else:
            logger.info("Deleted %d expired entries", cursor.rowcount)
            return cursor.rowcount
