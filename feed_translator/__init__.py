"""Feed translator: a caching proxy serving RSS feeds with translated titles."""

from .core.engine import CachedResult, CacheState, FeedCacheEngine
from .core.registry import FeedRegistry, RefreshResult
from .service import FeedTranslatorService

__version__ = "1.0.0"

__all__ = [
    "CachedResult",
    "CacheState",
    "FeedCacheEngine",
    "FeedRegistry",
    "FeedTranslatorService",
    "RefreshResult",
]
