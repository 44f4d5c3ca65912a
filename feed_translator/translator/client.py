"""Title translation through hosted LLM providers."""

import asyncio
import json
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import aiohttp
import structlog

from feed_translator.core.errors import TranslationError

logger = structlog.get_logger(__name__)

_CODE_FENCE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


@dataclass(frozen=True)
class TranslationSettings:
    """Provider selection and credentials.

    Attributes:
        provider: Provider identifier (mistral, cohere or openrouter)
        model: Model identifier understood by the provider
        api_key: Provider credential
        target_language: Language titles are translated to
        timeout: Total timeout in seconds for one translation call
    """

    provider: str = ""
    model: str = ""
    api_key: str = ""
    target_language: str = "Chinese"
    timeout: float = 60.0


class Provider:
    """A chat endpoint speaking the OpenAI chat completions schema."""

    def __init__(self, name: str, url: str):
        self.name = name
        self.url = url

    def build_payload(self, model: str, prompt: str) -> Dict[str, Any]:
        return {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "response_format": {"type": "json_object"},
        }

    def extract_text(self, body: Dict[str, Any]) -> str:
        return body["choices"][0]["message"]["content"]


class CohereProvider(Provider):
    """Cohere v2 chat endpoint."""

    def extract_text(self, body: Dict[str, Any]) -> str:
        return "".join(
            part.get("text", "")
            for part in body["message"]["content"]
            if part.get("type") == "text"
        )


PROVIDERS: Dict[str, Provider] = {
    "mistral": Provider("mistral", "https://api.mistral.ai/v1/chat/completions"),
    "openrouter": Provider("openrouter", "https://openrouter.ai/api/v1/chat/completions"),
    "cohere": CohereProvider("cohere", "https://api.cohere.com/v2/chat"),
}


def build_prompt(titles: List[str], target_language: str) -> str:
    return (
        f"Translate the following titles to {target_language}. "
        'Respond with a JSON object of the form {"data": [...]} holding the '
        "translated titles as strings, in the same order: "
        f"{json.dumps(titles, ensure_ascii=False)}"
    )


def parse_translations(text: str) -> List[str]:
    """Parse the JSON list of translations out of a model reply.

    Accepts ``{"data": [...]}`` or a bare JSON array, optionally wrapped in a
    Markdown code fence.

    Raises:
        TranslationError: If the reply is not a list of strings
    """
    text = text.strip()
    fenced = _CODE_FENCE.match(text)
    if fenced:
        text = fenced.group(1)

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise TranslationError(f"Translation response is not JSON: {e}") from e

    if isinstance(parsed, dict):
        parsed = parsed.get("data")
    if not isinstance(parsed, list) or not all(isinstance(item, str) for item in parsed):
        raise TranslationError("Translation response is not a list of strings")
    return parsed


class TranslationClient:
    """Translates batches of titles with the configured provider."""

    def __init__(self, settings: TranslationSettings):
        self.settings = settings
        self.session: Optional[aiohttp.ClientSession] = None

    def validate(self) -> Provider:
        """Check provider, model and credential.

        Returns:
            The configured provider

        Raises:
            TranslationError: If anything is missing or the provider is unsupported
        """
        settings = self.settings
        if not settings.provider or not settings.model or not settings.api_key:
            logger.error("Provider or API key or model not provided")
            raise TranslationError(
                "Provider or API key or model not provided, please check your configuration"
            )
        provider = PROVIDERS.get(settings.provider.lower())
        if provider is None:
            raise TranslationError(
                f"Provider {settings.provider} not supported",
                context={"supported": sorted(PROVIDERS)},
            )
        return provider

    async def _init_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.settings.timeout)
            )
        return self.session

    async def _post(self, provider: Provider, payload: Dict[str, Any]) -> Dict[str, Any]:
        session = await self._init_session()
        headers = {
            "Authorization": f"Bearer {self.settings.api_key}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        try:
            async with session.post(provider.url, json=payload, headers=headers) as response:
                if response.status != 200:
                    error_body = await response.text()
                    logger.error(
                        "Translation request failed",
                        provider=provider.name,
                        status=response.status,
                        body=error_body[:500],
                    )
                    raise TranslationError(
                        f"Provider {provider.name} returned HTTP {response.status}",
                        context={"status": response.status},
                    )
                return await response.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise TranslationError(
                f"Translation request timed out after {self.settings.timeout}s"
            ) from e
        except aiohttp.ClientError as e:
            raise TranslationError(f"Translation request failed: {e}") from e

    async def translate(self, titles: List[str]) -> List[str]:
        """Translate titles, preserving order.

        The provider may return fewer strings than it was given.

        Args:
            titles: Source titles

        Returns:
            Translated titles, positionally aligned with the input
        """
        provider = self.validate()
        if not titles:
            return []

        logger.debug("Translating titles", provider=provider.name, count=len(titles))
        payload = provider.build_payload(
            self.settings.model, build_prompt(titles, self.settings.target_language)
        )
        body = await self._post(provider, payload)
        try:
            text = provider.extract_text(body)
        except (KeyError, IndexError, TypeError) as e:
            raise TranslationError(f"Malformed response from {provider.name}") from e

        translations = parse_translations(text)
        if len(translations) != len(titles):
            logger.warning(
                "Translation count mismatch",
                provider=provider.name,
                expected=len(titles),
                received=len(translations),
            )
        return translations[: len(titles)]

    async def close(self) -> None:
        """Close the client session."""
        if self.session:
            await self.session.close()
            self.session = None
