"""Feed fetching and RSS title handling."""

from feed_translator.feeds.rss import FeedDocument, TitleSlot, parse_feed
from feed_translator.feeds.source import FeedFetcher

__all__ = ["FeedDocument", "FeedFetcher", "TitleSlot", "parse_feed"]
