"""Registry of configured feeds and their cache engines."""

import asyncio
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

import structlog

from feed_translator.cache.kv_cache import KeyValueCache
from feed_translator.config.feeds import FeedDescriptor, FeedsConfig, FileFeedsSource
from feed_translator.core.engine import CachedResult, CacheState, FeedCacheEngine
from feed_translator.core.errors import ConfigurationError, FeedNotFoundError

logger = structlog.get_logger(__name__)

CONFIG_KEY = "feeds:config"
CONFIG_TTL = 86400  # 24 hours

EngineFactory = Callable[[FeedDescriptor], FeedCacheEngine]


@dataclass(frozen=True)
class RefreshResult:
    """Outcome of refreshing one feed."""

    name: str
    ok: bool
    state: Optional[CacheState] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "feed": self.name,
            "ok": self.ok,
            "state": self.state.value if self.state else None,
            "error": self.error,
        }


class FeedRegistry:
    """Maps feed names to engines.

    The feeds configuration is read cache-first and stored with its own,
    longer TTL. Lookups are case-insensitive.
    """

    def __init__(
        self,
        cache: KeyValueCache,
        feeds_source: FileFeedsSource,
        engine_factory: EngineFactory,
        config_ttl: int = CONFIG_TTL,
    ):
        """Initialize the registry.

        Args:
            cache: Shared key-value cache
            feeds_source: Loads the feeds configuration on a cache miss
            engine_factory: Builds the engine of one feed
            config_ttl: TTL in seconds of the cached configuration
        """
        self.cache = cache
        self.feeds_source = feeds_source
        self.engine_factory = engine_factory
        self.config_ttl = config_ttl
        self._engines: Dict[str, FeedCacheEngine] = {}
        self._descriptors: List[FeedDescriptor] = []
        self.initialized = False

    @property
    def descriptors(self) -> List[FeedDescriptor]:
        return list(self._descriptors)

    @property
    def engines(self) -> List[FeedCacheEngine]:
        return list(self._engines.values())

    async def load_config(self) -> FeedsConfig:
        """Load the feeds configuration, preferring the cached copy.

        Raises:
            ConfigurationError: If the configuration cannot be loaded
        """
        cached = await self.cache.get(CONFIG_KEY)
        if cached is not None:
            try:
                config = FeedsConfig.from_dict(cached)
                logger.debug("Using cached feeds configuration", feeds=len(config.feeds))
                return config
            except ConfigurationError as e:
                logger.warning("Ignoring invalid cached feeds configuration", error=str(e))

        config = await self.feeds_source.load()
        await self.cache.put(CONFIG_KEY, config.to_dict(), ttl_seconds=self.config_ttl)
        logger.info("Feeds configuration cached", feeds=len(config.feeds), ttl=self.config_ttl)
        return config

    async def initialize(self) -> None:
        """Build one engine per configured feed.

        Raises:
            ConfigurationError: If the configuration cannot be loaded
        """
        if self.initialized:
            return

        logger.info("Initializing feed registry")
        config = await self.load_config()

        engines = {}
        for feed in config.feeds:
            engines[feed.key] = self.engine_factory(feed)
            logger.debug("Feed initialized", feed=feed.name, url=feed.source_url)

        self._engines = engines
        self._descriptors = list(config.feeds)
        self.initialized = True
        logger.info("Feed registry initialized", feeds=len(engines))

    def resolve(self, name: str) -> FeedCacheEngine:
        """Return the engine of a feed.

        Raises:
            FeedNotFoundError: If no feed of that name is configured
        """
        engine = self._engines.get(name.lower())
        if engine is None:
            logger.warning("Feed not found", feed=name)
            raise FeedNotFoundError(name)
        return engine

    async def get_feed(self, name: str) -> CachedResult:
        return await self.resolve(name).resolve()

    async def _refresh_one(self, engine: FeedCacheEngine, force: bool) -> CacheState:
        if force:
            await engine.regenerate()
            return CacheState.MISS
        result = await engine.resolve()
        return result.state

    async def refresh_all(self, force: bool = False) -> List[RefreshResult]:
        """Resolve every feed concurrently and wait for all of them.

        A failing feed does not stop the others.

        Args:
            force: Regenerate every feed instead of reading through the cache

        Returns:
            One result per feed, in configuration order
        """
        engines = self.engines
        logger.info("Refreshing all feeds", feeds=len(engines), force=force)
        outcomes = await asyncio.gather(
            *(self._refresh_one(engine, force) for engine in engines), return_exceptions=True
        )

        results = []
        for engine, outcome in zip(engines, outcomes):
            if isinstance(outcome, Exception):
                logger.error("Error refreshing feed", feed=engine.name, error=str(outcome))
                results.append(RefreshResult(engine.name, ok=False, error=str(outcome)))
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                results.append(RefreshResult(engine.name, ok=True, state=outcome))

        failed = sum(1 for result in results if not result.ok)
        logger.info("Feeds refreshed", feeds=len(results), failed=failed)
        return results

    async def clear_config_cache(self) -> None:
        """Evict the cached feeds configuration."""
        await self.cache.delete(CONFIG_KEY)
        logger.info("Feeds configuration evicted from cache")

    async def drain(self) -> None:
        """Wait for background refreshes of all feeds."""
        await asyncio.gather(*(engine.drain() for engine in self.engines))
