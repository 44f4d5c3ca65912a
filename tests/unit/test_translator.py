"""Tests for the translation client."""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from feed_translator.core.errors import StructuralParseError, TranslationError
from feed_translator.translator import (
    PROVIDERS,
    TranslationClient,
    TranslationSettings,
    parse_translations,
    translate_feed_titles,
)
from feed_translator.translator.client import CohereProvider, Provider, build_prompt


@pytest.fixture
def settings():
    """Fixture providing complete translation settings."""
    return TranslationSettings(provider="mistral", model="mistral-small", api_key="secret")


@pytest.fixture
def client(settings):
    """Fixture providing a translation client."""
    return TranslationClient(settings)


def chat_reply(content):
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


@pytest.mark.parametrize(
    "text, expected",
    [
        ('{"data": ["一", "二"]}', ["一", "二"]),
        ('["一", "二"]', ["一", "二"]),
        ('```json\n{"data": ["一"]}\n```', ["一"]),
        ('  {"data": []}  ', []),
    ],
)
def test_parse_translations(text, expected):
    """Test accepted reply shapes."""
    assert parse_translations(text) == expected


@pytest.mark.parametrize(
    "text",
    ["not json", '{"result": ["a"]}', '{"data": "a"}', '{"data": [1, 2]}', "42"],
)
def test_parse_translations_rejects_invalid_replies(text):
    """Test that anything but a list of strings is an error."""
    with pytest.raises(TranslationError):
        parse_translations(text)


def test_build_prompt_mentions_language_and_titles():
    """Test the prompt sent to the model."""
    prompt = build_prompt(["Über"], "Chinese")

    assert prompt.startswith("Translate the following titles to Chinese")
    assert '["Über"]' in prompt


@pytest.mark.parametrize(
    "settings",
    [
        TranslationSettings(provider="", model="m", api_key="k"),
        TranslationSettings(provider="mistral", model="", api_key="k"),
        TranslationSettings(provider="mistral", model="m", api_key=""),
    ],
)
def test_validate_requires_provider_model_and_key(settings):
    """Test that incomplete settings are rejected."""
    with pytest.raises(TranslationError) as exc_info:
        TranslationClient(settings).validate()

    assert "Provider or API key or model not provided" in str(exc_info.value)


def test_validate_rejects_unknown_provider():
    """Test that an unsupported provider is rejected."""
    client = TranslationClient(TranslationSettings(provider="babel", model="m", api_key="k"))

    with pytest.raises(TranslationError) as exc_info:
        client.validate()

    assert str(exc_info.value) == "Provider babel not supported"


def test_validate_is_case_insensitive():
    """Test provider lookup ignores case."""
    client = TranslationClient(TranslationSettings(provider="OpenRouter", model="m", api_key="k"))

    assert client.validate() is PROVIDERS["openrouter"]


def test_cohere_extracts_text_parts():
    """Test reading the Cohere v2 reply shape."""
    body = {"message": {"content": [{"type": "text", "text": '{"data": '}, {"type": "text", "text": '["一"]}'}]}}

    assert CohereProvider("cohere", "http://unused").extract_text(body) == '{"data": ["一"]}'


@pytest.mark.asyncio
async def test_translate_empty_list_skips_request(client):
    """Test that no request is made for an empty batch."""
    with patch.object(client, "_post", new_callable=AsyncMock) as mock_post:
        assert await client.translate([]) == []

    mock_post.assert_not_called()


@pytest.mark.asyncio
async def test_translate_truncates_extra_translations(client):
    """Test that surplus translations are dropped."""
    reply = chat_reply(json.dumps({"data": ["一", "二", "三"]}))
    with patch.object(client, "_post", new=AsyncMock(return_value=reply)):
        assert await client.translate(["one", "two"]) == ["一", "二"]


@pytest.mark.asyncio
async def test_translate_returns_short_lists(client):
    """Test that fewer translations than titles are passed through."""
    reply = chat_reply(json.dumps({"data": ["一"]}))
    with patch.object(client, "_post", new=AsyncMock(return_value=reply)):
        assert await client.translate(["one", "two"]) == ["一"]


@pytest.mark.asyncio
async def test_translate_malformed_body(client):
    """Test that an unexpected reply body is a translation error."""
    with patch.object(client, "_post", new=AsyncMock(return_value={"choices": []})):
        with pytest.raises(TranslationError):
            await client.translate(["one"])


@pytest.mark.asyncio
async def test_translate_against_http_endpoint(settings):
    """Test a full request against a local chat endpoint."""
    received = {}

    async def handler(request):
        received["auth"] = request.headers["Authorization"]
        received["payload"] = await request.json()
        return web.json_response(chat_reply(json.dumps({"data": ["你好", "世界"]})))

    app = web.Application()
    app.router.add_post("/chat", handler)
    async with TestServer(app) as server:
        provider = Provider("mistral", str(server.make_url("/chat")))
        client = TranslationClient(settings)
        try:
            with patch.dict(PROVIDERS, {"mistral": provider}):
                result = await client.translate(["Hello", "World"])
        finally:
            await client.close()

    assert result == ["你好", "世界"]
    assert received["auth"] == "Bearer secret"
    assert received["payload"]["model"] == "mistral-small"
    assert received["payload"]["response_format"] == {"type": "json_object"}
    assert "Hello" in received["payload"]["messages"][0]["content"]


@pytest.mark.asyncio
async def test_translate_http_error_status(settings):
    """Test that a non-200 reply is a translation error."""

    async def handler(request):
        return web.json_response({"error": "rate limited"}, status=429)

    app = web.Application()
    app.router.add_post("/chat", handler)
    async with TestServer(app) as server:
        client = TranslationClient(settings)
        try:
            with patch.dict(PROVIDERS, {"mistral": Provider("mistral", str(server.make_url("/chat")))}):
                with pytest.raises(TranslationError) as exc_info:
                    await client.translate(["Hello"])
        finally:
            await client.close()

    assert exc_info.value.context["status"] == 429


@pytest.mark.asyncio
async def test_translate_feed_titles(sample_feed):
    """Test translating a whole document."""
    client = MagicMock()
    client.translate = AsyncMock(return_value=["一", "二", "三"])

    result = await translate_feed_titles(sample_feed, client)

    client.validate.assert_called_once()
    assert "<title>一</title>" in result
    assert "<title><![CDATA[二]]></title>" in result
    assert '<title attr="a>b">三</title>' in result


@pytest.mark.asyncio
async def test_translate_feed_titles_validates_before_parsing():
    """Test that misconfiguration is reported before the document is read."""
    client = TranslationClient(TranslationSettings())

    with pytest.raises(TranslationError):
        await translate_feed_titles("not xml", client)


@pytest.mark.asyncio
async def test_translate_feed_titles_structural_error():
    """Test that a document without titles is not sent to the provider."""
    client = MagicMock()
    client.translate = AsyncMock()

    with pytest.raises(StructuralParseError):
        await translate_feed_titles("<rss><channel></channel></rss>", client)

    client.translate.assert_not_called()
