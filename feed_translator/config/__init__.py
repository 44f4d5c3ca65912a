"""Configuration package for the feed translator."""

from .feeds import DEFAULT_FEEDS_PATH, FeedDescriptor, FeedsConfig, FileFeedsSource
from .settings import Settings

__all__ = ["DEFAULT_FEEDS_PATH", "FeedDescriptor", "FeedsConfig", "FileFeedsSource", "Settings"]
