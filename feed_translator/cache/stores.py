"""Key-value store backends with per-key TTL and metadata.

The engine only relies on atomic per-key get/put/delete and on the store
evicting a key once its TTL has elapsed. Two backends are provided:

- MemoryStore: process-local, backed by a cachetools TLRUCache
- SQLiteStore: file-backed, survives restarts
"""

import asyncio
import json
import sqlite3
import threading
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, Dict, NamedTuple, Optional, Tuple

import structlog
from cachetools import TLRUCache

logger = structlog.get_logger(__name__)

Metadata = Dict[str, Any]


class KeyValueStore(ABC):
    """Interface of a TTL key-value store holding text values."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the value stored under key, or None."""

    @abstractmethod
    async def get_with_metadata(self, key: str) -> Tuple[Optional[str], Optional[Metadata]]:
        """Return value and metadata of key in one read."""

    @abstractmethod
    async def put(
        self, key: str, value: str, ttl_seconds: int, metadata: Optional[Metadata] = None
    ) -> None:
        """Store value under key, replacing any previous value and metadata."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove key if present."""

    async def close(self) -> None:
        """Release backend resources."""


class _Entry(NamedTuple):
    value: str
    metadata: Optional[Metadata]
    ttl: int


class MemoryStore(KeyValueStore):
    """In-process store with per-key expiry.

    Args:
        maxsize: Maximum number of keys kept before LRU eviction
        timer: Clock used for expiry, in seconds
    """

    def __init__(self, maxsize: int = 1024, timer: Callable[[], float] = time.monotonic):
        self._cache = TLRUCache(maxsize=maxsize, ttu=self._time_to_use, timer=timer)
        self._lock = threading.RLock()

    @staticmethod
    def _time_to_use(key: str, entry: _Entry, now: float) -> float:
        return now + entry.ttl

    async def get(self, key: str) -> Optional[str]:
        value, _ = await self.get_with_metadata(key)
        return value

    async def get_with_metadata(self, key: str) -> Tuple[Optional[str], Optional[Metadata]]:
        with self._lock:
            entry = self._cache.get(key)
        if entry is None:
            return None, None
        return entry.value, entry.metadata

    async def put(
        self, key: str, value: str, ttl_seconds: int, metadata: Optional[Metadata] = None
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        with self._lock:
            self._cache[key] = _Entry(value, dict(metadata) if metadata else None, ttl_seconds)

    async def delete(self, key: str) -> None:
        with self._lock:
            self._cache.pop(key, None)

    def __len__(self) -> int:
        return len(self._cache)


class SQLiteStore(KeyValueStore):
    """SQLite-backed store.

    Expired rows are filtered on read and removed lazily. Each call runs in a
    worker thread with its own connection.
    """

    _SCHEMA = """
        CREATE TABLE IF NOT EXISTS kv_entries (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL,
            metadata TEXT,
            expires_at REAL NOT NULL
        )
    """

    def __init__(self, db_path: str, timer: Callable[[], float] = time.time):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._timer = timer

        conn = self._get_connection()
        try:
            with conn:
                conn.execute(self._SCHEMA)
        finally:
            conn.close()

    def _get_connection(self) -> sqlite3.Connection:
        """Get SQLite connection with row factory."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _read(self, key: str) -> Tuple[Optional[str], Optional[Metadata]]:
        conn = self._get_connection()
        try:
            with conn:
                row = conn.execute(
                    "SELECT value, metadata, expires_at FROM kv_entries WHERE key = ?", (key,)
                ).fetchone()
                if row is None:
                    return None, None
                if row["expires_at"] <= self._timer():
                    conn.execute(
                        "DELETE FROM kv_entries WHERE key = ? AND expires_at <= ?",
                        (key, self._timer()),
                    )
                    return None, None
        finally:
            conn.close()

        metadata = None
        if row["metadata"]:
            try:
                metadata = json.loads(row["metadata"])
            except json.JSONDecodeError:
                logger.warning("Discarding unreadable metadata", key=key)
        return row["value"], metadata

    def _write(self, key: str, value: str, ttl_seconds: int, metadata: Optional[Metadata]) -> None:
        conn = self._get_connection()
        try:
            with conn:
                conn.execute(
                    """
                    INSERT INTO kv_entries (key, value, metadata, expires_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value = excluded.value,
                        metadata = excluded.metadata,
                        expires_at = excluded.expires_at
                    """,
                    (
                        key,
                        value,
                        json.dumps(metadata) if metadata is not None else None,
                        self._timer() + ttl_seconds,
                    ),
                )
        finally:
            conn.close()

    def _remove(self, key: str) -> None:
        conn = self._get_connection()
        try:
            with conn:
                conn.execute("DELETE FROM kv_entries WHERE key = ?", (key,))
        finally:
            conn.close()

    async def get(self, key: str) -> Optional[str]:
        value, _ = await asyncio.to_thread(self._read, key)
        return value

    async def get_with_metadata(self, key: str) -> Tuple[Optional[str], Optional[Metadata]]:
        return await asyncio.to_thread(self._read, key)

    async def put(
        self, key: str, value: str, ttl_seconds: int, metadata: Optional[Metadata] = None
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        await asyncio.to_thread(self._write, key, value, ttl_seconds, metadata)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._remove, key)
