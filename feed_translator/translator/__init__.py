"""Feed title translation."""

import structlog

from feed_translator.feeds.rss import parse_feed
from feed_translator.metrics import feed_metrics
from feed_translator.translator.client import (
    PROVIDERS,
    TranslationClient,
    TranslationSettings,
    parse_translations,
)

logger = structlog.get_logger(__name__)


async def translate_feed_titles(xml: str, client: TranslationClient) -> str:
    """Translate the item titles of an RSS document.

    Everything outside the title bodies is kept byte for byte. If the
    provider returns fewer translations than there are titles, the trailing
    titles stay untranslated.

    Args:
        xml: RSS document
        client: Translation client

    Returns:
        The document with translated titles

    Raises:
        TranslationError: If the client is misconfigured or the provider fails
        StructuralParseError: If the document has no channel, items or titles
    """
    client.validate()

    document = parse_feed(xml)
    translations = await client.translate(document.texts)

    replaced = min(len(translations), len(document.titles))
    if replaced < len(document.titles):
        logger.warning(
            "Partial translation, keeping original titles",
            titles=len(document.titles),
            translated=replaced,
        )
    feed_metrics.titles_translated.inc(replaced)
    return document.replace_titles(translations)


__all__ = [
    "PROVIDERS",
    "TranslationClient",
    "TranslationSettings",
    "parse_translations",
    "translate_feed_titles",
]
