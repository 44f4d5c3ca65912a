"""Caching package for the feed translator.

This package provides:
- TTL key-value store backends (in-memory and SQLite)
- A serializing cache wrapper with per-record generation timestamps
- Freshness classification for stale-while-revalidate reads
"""

from feed_translator.cache.freshness import Freshness, FreshnessPolicy, FreshnessWindow, classify
from feed_translator.cache.kv_cache import CacheRecord, KeyValueCache
from feed_translator.cache.stores import KeyValueStore, MemoryStore, SQLiteStore

__all__ = [
    "CacheRecord",
    "Freshness",
    "FreshnessPolicy",
    "FreshnessWindow",
    "KeyValueCache",
    "KeyValueStore",
    "MemoryStore",
    "SQLiteStore",
    "classify",
]
