"""Metrics collection for the feed translator.

This module provides Prometheus counters and histograms for cache reads,
background refreshes and content generation.
"""

import os

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram


class CacheMetrics:
    """Metrics for feed cache reads and background refreshes.

    Tracks hits, misses, stale reads and the outcome of background refreshes.
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        """Initialize cache metrics.

        Args:
            registry: Prometheus registry to use for metrics
        """
        self.registry = registry
        # Check if metrics already exist in registry
        existing_metrics = [name for name in registry._names_to_collectors.keys()]

        def create_counter(name: str, help_text: str, labels=()) -> Counter:
            if name not in existing_metrics:
                return Counter(name, help_text, labels, registry=registry)
            return registry._names_to_collectors[name]

        self.cache_hits = create_counter(
            "feed_cache_hits_total", "Number of feed reads served from cache", ["feed"]
        )
        self.cache_misses = create_counter(
            "feed_cache_misses_total", "Number of feed reads that regenerated content", ["feed"]
        )
        self.stale_reads = create_counter(
            "feed_cache_stale_reads_total", "Number of feed reads served stale", ["feed"]
        )
        self.refreshes = create_counter(
            "feed_cache_refreshes_total", "Background refreshes by outcome", ["feed", "status"]
        )


class FeedMetrics:
    """Metrics for feed generation.

    Tracks generation times, failures, content sizes and translated titles.
    """

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        """Initialize feed generation metrics.

        Args:
            registry: Prometheus registry to use for metrics
        """
        existing_metrics = [name for name in registry._names_to_collectors.keys()]

        def create_counter(name: str, help_text: str, labels=()) -> Counter:
            if name not in existing_metrics:
                return Counter(name, help_text, labels, registry=registry)
            return registry._names_to_collectors[name]

        def create_histogram(name: str, help_text: str, buckets) -> Histogram:
            if name not in existing_metrics:
                return Histogram(name, help_text, buckets=buckets, registry=registry)
            return registry._names_to_collectors[name]

        self.generate_time = create_histogram(
            "feed_generate_seconds",
            "Time spent generating feed content",
            buckets=(0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0),
        )
        self.generate_failure = create_counter(
            "feed_generate_failure_total", "Number of failed generation attempts", ["feed"]
        )
        self.content_size = create_histogram(
            "feed_content_bytes",
            "Size of generated feed content in bytes",
            buckets=(1000, 10000, 100000, 1000000),
        )
        self.titles_translated = create_counter(
            "feed_titles_translated_total", "Number of item titles replaced by a translation"
        )


# Metrics registry management
_test_registry = None
_metrics = None
_feed_metrics = None


def get_registry() -> CollectorRegistry:
    """Get the appropriate metrics registry.

    Returns:
        CollectorRegistry: Registry to use for metrics
    """
    global _test_registry
    if bool(os.getenv("PYTEST_CURRENT_TEST")):
        if _test_registry is None:
            _test_registry = CollectorRegistry()
        return _test_registry
    return REGISTRY


def get_metrics() -> CacheMetrics:
    """Get the cache metrics instance.

    Returns:
        CacheMetrics: Cache metrics instance
    """
    global _metrics
    if _metrics is None:
        _metrics = CacheMetrics(registry=get_registry())
    return _metrics


def get_feed_metrics() -> FeedMetrics:
    """Get the feed metrics instance.

    Returns:
        FeedMetrics: Feed metrics instance
    """
    global _feed_metrics
    if _feed_metrics is None:
        _feed_metrics = FeedMetrics(registry=get_registry())
    return _feed_metrics


# Convenience accessors
metrics = get_metrics()
feed_metrics = get_feed_metrics()

__all__ = [
    "metrics",
    "feed_metrics",
    "CacheMetrics",
    "FeedMetrics",
    "get_registry",
]
