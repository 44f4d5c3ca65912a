"""Locating and rewriting item titles inside an RSS document.

Titles are found with an expat parser that reports byte offsets, so a rebuilt
document differs from its source only inside the replaced title bodies.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence
from xml.parsers import expat
from xml.sax.saxutils import escape

import structlog

from feed_translator.core.errors import StructuralParseError

logger = structlog.get_logger(__name__)

_CHANNEL_PATH = ["rss", "channel"]
_ITEM_PATH = ["rss", "channel", "item"]
_TITLE_DEPTH = 4

_QUOTES = (ord('"'), ord("'"))
_TAG_END = ord(">")


@dataclass(frozen=True)
class TitleSlot:
    """Body of one item title.

    Attributes:
        start: Byte offset of the first byte after the opening tag
        end: Byte offset of the closing tag
        text: Decoded title text, surrounding whitespace removed
        cdata: Whether the body was written as a CDATA section
    """

    start: int
    end: int
    text: str
    cdata: bool = False

    def render(self, replacement: str) -> bytes:
        if self.cdata:
            body = "<![CDATA[" + replacement.replace("]]>", "]]]]><![CDATA[>") + "]]>"
        else:
            body = escape(replacement)
        return body.encode("utf-8")


@dataclass
class FeedDocument:
    """An RSS document with the positions of its item titles."""

    data: bytes
    titles: List[TitleSlot] = field(default_factory=list)

    @property
    def texts(self) -> List[str]:
        return [slot.text for slot in self.titles]

    def replace_titles(self, translations: Sequence[str]) -> str:
        """Rebuild the document with translated titles.

        Titles are replaced positionally. When fewer translations than titles
        are given, the remaining titles keep their original text.

        Args:
            translations: Replacement texts in document order

        Returns:
            The rebuilt document
        """
        parts = []
        cursor = 0
        for slot, replacement in zip(self.titles, translations):
            parts.append(self.data[cursor : slot.start])
            parts.append(slot.render(replacement))
            cursor = slot.end
        parts.append(self.data[cursor:])
        return b"".join(parts).decode("utf-8")


class _TitleScanner:
    def __init__(self, data: bytes):
        self.data = data
        self.path: List[str] = []
        self.has_channel = False
        self.item_count = 0
        self.titles: List[TitleSlot] = []
        self._item_has_title = False
        self._title_start: Optional[int] = None
        self._title_parts: List[str] = []
        self._title_cdata = False

        # The document's own encoding declaration is overridden; data is UTF-8.
        self.parser = expat.ParserCreate(encoding="UTF-8")
        self.parser.StartElementHandler = self._start
        self.parser.EndElementHandler = self._end
        self.parser.CharacterDataHandler = self._text
        self.parser.StartCdataSectionHandler = self._cdata

    def scan(self) -> None:
        self.parser.Parse(self.data, True)

    def _in_title(self) -> bool:
        return self._title_start is not None and len(self.path) == _TITLE_DEPTH

    def _end_of_start_tag(self, position: int) -> int:
        quote = None
        for index in range(position, len(self.data)):
            byte = self.data[index]
            if quote is not None:
                if byte == quote:
                    quote = None
            elif byte in _QUOTES:
                quote = byte
            elif byte == _TAG_END:
                return index + 1
        raise StructuralParseError("Unterminated title tag", context={"offset": position})

    def _start(self, name, attrs):
        self.path.append(name)
        if self.path == _CHANNEL_PATH:
            self.has_channel = True
        elif self.path == _ITEM_PATH:
            self.item_count += 1
            self._item_has_title = False
        elif (
            len(self.path) == _TITLE_DEPTH
            and self.path[:3] == _ITEM_PATH
            and name == "title"
            and not self._item_has_title
        ):
            # Only the first title of an item is considered.
            self._item_has_title = True
            self._title_start = self._end_of_start_tag(self.parser.CurrentByteIndex)
            self._title_parts = []
            self._title_cdata = False

    def _end(self, name):
        if self._in_title():
            end = self.parser.CurrentByteIndex
            text = "".join(self._title_parts).strip()
            if text and end >= self._title_start:
                self.titles.append(
                    TitleSlot(start=self._title_start, end=end, text=text, cdata=self._title_cdata)
                )
            self._title_start = None
        self.path.pop()

    def _text(self, data):
        if self._in_title():
            self._title_parts.append(data)

    def _cdata(self):
        if self._in_title():
            self._title_cdata = True


def parse_feed(xml: str) -> FeedDocument:
    """Find the translatable item titles of an RSS document.

    Args:
        xml: The feed document

    Returns:
        The document with its title positions

    Raises:
        StructuralParseError: If the document is not well-formed, has no
            channel, no items or no non-empty item titles
    """
    data = xml.encode("utf-8")
    scanner = _TitleScanner(data)
    try:
        scanner.scan()
    except expat.ExpatError as e:
        raise StructuralParseError(f"Invalid feed document: {e}") from e

    if not scanner.has_channel:
        logger.error("Invalid feed structure: channel not found")
        raise StructuralParseError("Invalid feed structure: channel not found")
    if scanner.item_count == 0:
        logger.error("Invalid feed structure: items not found")
        raise StructuralParseError("Invalid feed structure: items not found")
    if not scanner.titles:
        logger.error("Invalid feed structure: no item titles", items=scanner.item_count)
        raise StructuralParseError(
            "Invalid feed structure: no item titles found",
            context={"items": scanner.item_count},
        )

    logger.debug("Extracted titles", count=len(scanner.titles), items=scanner.item_count)
    return FeedDocument(data=data, titles=scanner.titles)
