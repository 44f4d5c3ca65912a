import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from feed_translator.cache.kv_cache import KeyValueCache
from feed_translator.cache.stores import MemoryStore

SAMPLE_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:dc="http://purl.org/dc/elements/1.1/">
  <channel>
    <title>Hacker News: Front Page</title>
    <link>https://news.ycombinator.com/</link>
    <description>Hacker News RSS, café edition</description>
    <item>
      <title>Show HN: Tools &amp; tricks</title>
      <link>https://example.com/1</link>
      <dc:title>Not an item title</dc:title>
    </item>
    <item>
      <title><![CDATA[Ask HN: <Who> is hiring?]]></title>
      <link>https://example.com/2</link>
    </item>
    <item>
      <title attr="a>b">Launch HN: Über fast builds</title>
      <description><![CDATA[<p>Comments</p>]]></description>
    </item>
  </channel>
</rss>
"""

SAMPLE_TITLES = ["Show HN: Tools & tricks", "Ask HN: <Who> is hiring?", "Launch HN: Über fast builds"]


class FakeClock:
    """Manually advanced clock, in seconds."""

    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    """Fixture providing a fake clock."""
    return FakeClock()


@pytest.fixture
def store(clock):
    """Fixture providing an in-memory store driven by the fake clock."""
    return MemoryStore(timer=clock)


@pytest.fixture
def cache(store):
    """Fixture providing a key-value cache over the in-memory store."""
    return KeyValueCache(store, default_ttl=60)


@pytest.fixture
def feeds_file(tmp_path):
    """Fixture providing a feeds configuration file with two feeds."""
    path = tmp_path / "feeds.json"
    path.write_text(
        json.dumps(
            {
                "feeds": [
                    {"name": "HN", "url": "https://example/hn.xml"},
                    {"name": "Raw", "url": "https://example/raw.xml", "translate": False},
                ]
            }
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def mock_fetcher():
    """Fixture providing a fetcher that always returns the sample feed."""
    fetcher = MagicMock()
    fetcher.fetch = AsyncMock(return_value=SAMPLE_FEED)
    fetcher.close = AsyncMock()
    return fetcher


@pytest.fixture
def mock_translator():
    """Fixture providing a translator that prefixes every title."""
    translator = MagicMock()
    translator.translate = AsyncMock(side_effect=lambda titles: [f"[zh] {t}" for t in titles])
    translator.close = AsyncMock()
    return translator


@pytest.fixture
def sample_feed():
    """Fixture providing an RSS document with three item titles."""
    return SAMPLE_FEED


@pytest.fixture
def sample_titles():
    """Fixture providing the item titles of the sample feed."""
    return list(SAMPLE_TITLES)
