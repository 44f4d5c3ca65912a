"""Tests for locating and rewriting RSS item titles."""

import pytest

from feed_translator.core.errors import StructuralParseError
from feed_translator.feeds.rss import TitleSlot, parse_feed


def test_parse_feed_finds_item_titles(sample_feed, sample_titles):
    """Test that only the first title of each item is extracted."""
    document = parse_feed(sample_feed)

    assert document.texts == sample_titles
    assert [slot.cdata for slot in document.titles] == [False, True, False]


def test_replace_titles_keeps_everything_else(sample_feed):
    """Test that only the title bodies change."""
    document = parse_feed(sample_feed)

    result = document.replace_titles(["工具与技巧", "谁在招聘 <Who>?", "超快构建"])

    expected = (
        sample_feed.replace("Show HN: Tools &amp; tricks", "工具与技巧")
        .replace("Ask HN: <Who> is hiring?", "谁在招聘 <Who>?")
        .replace("Launch HN: Über fast builds", "超快构建")
    )
    assert result == expected
    assert "<title>Hacker News: Front Page</title>" in result
    assert "<dc:title>Not an item title</dc:title>" in result


def test_replace_titles_escapes_markup(sample_feed):
    """Test that replacement text is escaped outside CDATA."""
    document = parse_feed(sample_feed)

    result = document.replace_titles(["A & <B>"])

    assert "<title>A &amp; &lt;B&gt;</title>" in result


def test_replace_titles_partial(sample_feed):
    """Test that missing translations leave the trailing titles untouched."""
    document = parse_feed(sample_feed)

    result = document.replace_titles(["Eins"])

    assert result == sample_feed.replace("Show HN: Tools &amp; tricks", "Eins")


def test_replace_titles_empty_is_identity(sample_feed):
    """Test that no translations returns the source document."""
    assert parse_feed(sample_feed).replace_titles([]) == sample_feed


def test_cdata_body_splits_terminator():
    """Test that a CDATA terminator inside a replacement stays inert."""
    slot = TitleSlot(start=0, end=0, text="x", cdata=True)

    assert slot.render("a]]>b") == b"<![CDATA[a]]]]><![CDATA[>b]]>"


def test_empty_titles_are_skipped():
    """Test that whitespace-only titles are not sent for translation."""
    xml = (
        "<rss><channel>"
        "<item><title>  </title></item>"
        "<item><title>Kept</title></item>"
        "</channel></rss>"
    )
    document = parse_feed(xml)

    assert document.texts == ["Kept"]
    assert document.replace_titles(["Gardé"]) == xml.replace("Kept", "Gardé")


def test_declared_encoding_is_ignored():
    """Test parsing text whose declaration names another encoding."""
    xml = '<?xml version="1.0" encoding="ISO-8859-1"?><rss><channel><item><title>Café</title></item></channel></rss>'

    assert parse_feed(xml).texts == ["Café"]


@pytest.mark.parametrize(
    "xml, message",
    [
        ("<rss><foo/></rss>", "channel not found"),
        ('<feed xmlns="http://www.w3.org/2005/Atom"><entry><title>x</title></entry></feed>', "channel not found"),
        ("<rss><channel><title>Only</title></channel></rss>", "items not found"),
        ("<rss><channel><item><link>x</link></item></channel></rss>", "no item titles found"),
        ("<rss><channel><item><title>open</item></channel></rss>", "Invalid feed document"),
        ("not xml at all", "Invalid feed document"),
    ],
)
def test_parse_feed_rejects_invalid_documents(xml, message):
    """Test structural errors for documents without translatable titles."""
    with pytest.raises(StructuralParseError) as exc_info:
        parse_feed(xml)

    assert message in str(exc_info.value)
