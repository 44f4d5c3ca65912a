"""Stale-while-revalidate cache engine for a single feed.

Every read is classified against the engine's freshness window:

- FRESH: cached content is returned, nothing else happens
- STALE: cached content is returned and one background regeneration starts
- MISS: content is generated synchronously, stored, then returned

Generation failures reach the caller only on the MISS path. A failed
background refresh is logged and the stale record keeps serving until the
store evicts it.
"""

import asyncio
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

import structlog

from feed_translator.cache.freshness import Freshness, FreshnessPolicy, FreshnessWindow
from feed_translator.cache.kv_cache import CacheRecord, KeyValueCache
from feed_translator.feeds.generator import ContentGenerator
from feed_translator.metrics import feed_metrics, metrics

logger = structlog.get_logger(__name__)


class CacheState(Enum):
    """Whether a read was served from cache."""

    HIT = "HIT"
    MISS = "MISS"


@dataclass(frozen=True)
class CachedResult:
    """Content returned by an engine read.

    Attributes:
        content: Feed document
        state: HIT when served from cache, MISS when generated for this read
        cache_control: Cache-Control header value for the response
    """

    content: str
    state: CacheState
    cache_control: str


class FeedCacheEngine:
    """Serves one feed from cache, regenerating it as it ages."""

    def __init__(
        self,
        name: str,
        cache: KeyValueCache,
        generator: ContentGenerator,
        window: FreshnessWindow,
        clock: Callable[[], float] = time.time,
    ):
        """Initialize the engine.

        Args:
            name: Feed name, the cache key is derived from its lower-cased form
            cache: Shared key-value cache
            generator: Produces fresh content for the feed
            window: Fresh and hard TTLs
            clock: Wall clock in epoch seconds
        """
        self.name = name
        self.cache = cache
        self.generator = generator
        self.window = window
        self.policy = FreshnessPolicy(window)
        self.clock = clock
        self.cache_key = f"feed:{name.lower()}"
        self._miss_task: Optional[asyncio.Task] = None
        self._refresh_task: Optional[asyncio.Task] = None
        logger.debug(
            "Engine constructed",
            key=self.cache_key,
            fresh_ttl=window.fresh_ttl,
            hard_ttl=window.hard_ttl,
        )

    @property
    def cache_control(self) -> str:
        return self.window.cache_control

    @property
    def refresh_in_progress(self) -> bool:
        return self._refresh_task is not None and not self._refresh_task.done()

    async def resolve(self) -> CachedResult:
        """Return the current content of the feed.

        Returns:
            Content, cache state and Cache-Control value

        Raises:
            SourceUnavailableError, TranslationError, StructuralParseError:
                If content has to be generated for this read and generation fails
        """
        record = await self.cache.get_record(self.cache_key)
        freshness = self.policy.classify(self.clock(), record)
        logger.debug(
            "Cache lookup",
            key=self.cache_key,
            freshness=freshness.value,
            stored_at=record.stored_at if record else None,
        )

        if freshness is Freshness.MISS:
            logger.info("Cache miss, generating fresh content", key=self.cache_key)
            metrics.cache_misses.labels(feed=self.name).inc()
            content = await self._generate_shared()
            return CachedResult(content, CacheState.MISS, self.cache_control)

        if freshness is Freshness.STALE:
            metrics.stale_reads.labels(feed=self.name).inc()
            self.schedule_refresh()

        metrics.cache_hits.labels(feed=self.name).inc()
        return CachedResult(record.content, CacheState.HIT, self.cache_control)

    async def generate(self) -> str:
        """Produce fresh content without touching the cache."""
        start_time = time.perf_counter()
        try:
            content = await self.generator.generate()
        except Exception:
            feed_metrics.generate_failure.labels(feed=self.name).inc()
            raise
        finally:
            feed_metrics.generate_time.observe(time.perf_counter() - start_time)

        feed_metrics.content_size.observe(len(content.encode("utf-8")))
        return content

    async def regenerate(self) -> CacheRecord:
        """Generate content and overwrite the cached record.

        The record is stamped when generation completes and stored with the
        hard TTL. Nothing is written if generation fails.
        """
        content = await self.generate()
        record = CacheRecord(
            key=self.cache_key,
            content=content,
            stored_at=self.clock(),
            ttl_seconds=self.window.hard_ttl,
        )
        await self.cache.put_record(record)
        logger.info("Stored fresh content", key=self.cache_key, ttl=self.window.hard_ttl)
        return record

    async def _generate_shared(self) -> str:
        # Concurrent misses in this process wait on the same generation.
        if self._miss_task is None or self._miss_task.done():
            self._miss_task = asyncio.create_task(self.regenerate())
        record = await asyncio.shield(self._miss_task)
        return record.content

    def schedule_refresh(self) -> bool:
        """Start a background regeneration unless one is already running.

        Returns:
            True if a new refresh was started
        """
        if self.refresh_in_progress:
            logger.debug("Refresh already in progress", key=self.cache_key)
            return False

        logger.info("Cache is stale, triggering background refresh", key=self.cache_key)
        self._refresh_task = asyncio.create_task(
            self._refresh(), name=f"refresh:{self.cache_key}"
        )
        return True

    async def _refresh(self) -> None:
        try:
            await self.regenerate()
        except Exception as e:
            metrics.refreshes.labels(feed=self.name, status="failure").inc()
            logger.error(
                "Background cache refresh failed",
                key=self.cache_key,
                error=str(e),
                error_type=type(e).__name__,
            )
            return
        metrics.refreshes.labels(feed=self.name, status="success").inc()
        logger.debug("Cache refreshed successfully", key=self.cache_key)

    async def drain(self) -> None:
        """Wait for a running background refresh to finish."""
        if self.refresh_in_progress:
            await self._refresh_task
