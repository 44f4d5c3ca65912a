"""Content generators: how a feed's cached content is produced.

Each engine is built with one generator. ``FetchOnlyGenerator`` serves the
source document unchanged, ``TranslatingGenerator`` rewrites its titles.
"""

from abc import ABC, abstractmethod

import structlog

from feed_translator.config.feeds import FeedDescriptor
from feed_translator.feeds.source import FeedFetcher
from feed_translator.translator import TranslationClient, translate_feed_titles

logger = structlog.get_logger(__name__)


class ContentGenerator(ABC):
    """Produces the content cached for one feed."""

    def __init__(self, descriptor: FeedDescriptor, fetcher: FeedFetcher):
        self.descriptor = descriptor
        self.fetcher = fetcher

    async def source(self) -> str:
        """Fetch the raw feed document.

        Raises:
            SourceUnavailableError: If the feed cannot be fetched
        """
        return await self.fetcher.fetch(self.descriptor.source_url)

    @abstractmethod
    async def generate(self) -> str:
        """Produce fresh content for the feed."""


class FetchOnlyGenerator(ContentGenerator):
    """Serves the source document as fetched."""

    async def generate(self) -> str:
        return await self.source()


class TranslatingGenerator(ContentGenerator):
    """Fetches the source document and translates its item titles."""

    def __init__(
        self, descriptor: FeedDescriptor, fetcher: FeedFetcher, translator: TranslationClient
    ):
        super().__init__(descriptor, fetcher)
        self.translator = translator

    async def transform(self, content: str) -> str:
        """Translate the item titles of a fetched document.

        Raises:
            TranslationError: If the translation backend fails
            StructuralParseError: If the document has no channel, items or titles
        """
        return await translate_feed_titles(content, self.translator)

    async def generate(self) -> str:
        raw = await self.source()
        logger.debug("Translating content", feed=self.descriptor.name, size=len(raw))
        return await self.transform(raw)


def build_generator(
    descriptor: FeedDescriptor, fetcher: FeedFetcher, translator: TranslationClient
) -> ContentGenerator:
    """Select the generator variant configured for a feed."""
    if descriptor.translate:
        return TranslatingGenerator(descriptor, fetcher, translator)
    return FetchOnlyGenerator(descriptor, fetcher)
