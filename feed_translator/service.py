"""Wiring of the feed translator components.

One service is built per process at startup and shared by every request
handler.
"""

import time
from typing import Callable, Optional

import structlog

from feed_translator.cache.kv_cache import KeyValueCache
from feed_translator.cache.stores import KeyValueStore, MemoryStore, SQLiteStore
from feed_translator.config.feeds import FeedDescriptor, FileFeedsSource
from feed_translator.config.settings import Settings
from feed_translator.core.engine import FeedCacheEngine
from feed_translator.core.registry import FeedRegistry
from feed_translator.feeds.generator import build_generator
from feed_translator.feeds.source import FeedFetcher
from feed_translator.translator import TranslationClient

logger = structlog.get_logger(__name__)


def build_store(settings: Settings) -> KeyValueStore:
    """Create the store backend selected in the settings."""
    if settings.cache_backend == "sqlite":
        logger.info("Using sqlite cache store", path=settings.cache_db_path)
        return SQLiteStore(settings.cache_db_path)
    return MemoryStore()


class FeedTranslatorService:
    """Owns the store, clients and feed registry of a process."""

    def __init__(
        self,
        settings: Settings,
        store: Optional[KeyValueStore] = None,
        fetcher: Optional[FeedFetcher] = None,
        translator: Optional[TranslationClient] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings
        self.clock = clock
        self.store = store if store is not None else build_store(settings)
        self.cache = KeyValueCache(self.store, default_ttl=settings.hard_ttl)
        self.fetcher = fetcher or FeedFetcher(timeout=settings.fetch_timeout)
        self.translator = translator or TranslationClient(settings.translation)
        self.registry = FeedRegistry(
            self.cache,
            FileFeedsSource(settings.feeds_config),
            self.build_engine,
            config_ttl=settings.config_ttl,
        )

    def build_engine(self, descriptor: FeedDescriptor) -> FeedCacheEngine:
        return FeedCacheEngine(
            descriptor.name,
            self.cache,
            build_generator(descriptor, self.fetcher, self.translator),
            self.settings.window,
            clock=self.clock,
        )

    async def start(self) -> None:
        await self.registry.initialize()

    async def close(self) -> None:
        """Wait for background refreshes, then release clients and the store."""
        await self.registry.drain()
        await self.fetcher.close()
        await self.translator.close()
        await self.store.close()
