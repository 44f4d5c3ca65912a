"""Typed access to a key-value store.

Structured values are stored as JSON, strings are stored as-is. Feed content
is written as a CacheRecord whose generation time travels in the store
metadata as ``{"timestamp": <epoch millis>}``.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

import structlog

from feed_translator.cache.stores import KeyValueStore

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CacheRecord:
    """Cached content of one key.

    Attributes:
        key: Cache key
        content: Cached text
        stored_at: Generation time in epoch seconds, None if the metadata is missing
        ttl_seconds: Store TTL used for the write, None when read back
    """

    key: str
    content: str
    stored_at: Optional[float]
    ttl_seconds: Optional[int] = None

    @property
    def metadata(self) -> Optional[Dict[str, Any]]:
        if self.stored_at is None:
            return None
        return {"timestamp": int(self.stored_at * 1000)}


def _timestamp_seconds(metadata: Optional[Dict[str, Any]]) -> Optional[float]:
    if not metadata:
        return None
    timestamp = metadata.get("timestamp")
    if not isinstance(timestamp, (int, float)) or isinstance(timestamp, bool):
        return None
    return timestamp / 1000.0


class KeyValueCache:
    """Serializing wrapper around a KeyValueStore."""

    def __init__(self, store: KeyValueStore, default_ttl: int = 60):
        """Initialize the cache.

        Args:
            store: Backend store
            default_ttl: TTL in seconds used when a put does not specify one
        """
        self.store = store
        self.default_ttl = default_ttl

    async def get(self, key: str) -> Optional[Any]:
        """Get a value, decoding JSON when possible.

        Args:
            key: Cache key to look up

        Returns:
            The decoded value, the raw string if it is not JSON, or None
        """
        value = await self.store.get(key)
        if value is None:
            logger.debug("Key not found", key=key)
            return None

        logger.debug("Cache hit", key=key)
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value

    async def get_metadata(self, key: str) -> Optional[Dict[str, Any]]:
        _, metadata = await self.store.get_with_metadata(key)
        return metadata

    async def get_record(self, key: str) -> Optional[CacheRecord]:
        """Read content and metadata of key in a single store call.

        The content is returned undecoded.
        """
        value, metadata = await self.store.get_with_metadata(key)
        if value is None:
            return None
        return CacheRecord(key=key, content=value, stored_at=_timestamp_seconds(metadata))

    async def put(
        self,
        key: str,
        value: Any,
        ttl_seconds: Optional[int] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Store a value, serializing non-string values as JSON.

        Args:
            key: Cache key
            value: Value to store
            ttl_seconds: Expiry in seconds, defaults to the cache default
            metadata: Small JSON-serializable metadata object
        """
        ttl = ttl_seconds or self.default_ttl
        serialized = value if isinstance(value, str) else json.dumps(value)
        await self.store.put(key, serialized, ttl, metadata)
        logger.debug("Stored value", key=key, ttl=ttl, has_metadata=metadata is not None)

    async def put_record(self, record: CacheRecord) -> None:
        await self.put(record.key, record.content, record.ttl_seconds, record.metadata)

    async def delete(self, key: str) -> None:
        await self.store.delete(key)
        logger.debug("Deleted key", key=key)
