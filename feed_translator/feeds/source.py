"""HTTP fetching of feed documents."""

import asyncio
from typing import Optional

import aiohttp
import chardet
import structlog

from feed_translator.core.errors import SourceUnavailableError

logger = structlog.get_logger(__name__)


class FeedFetcher:
    """Fetches raw feed documents over HTTP.

    A single aiohttp session is created lazily and shared by all feeds.
    """

    def __init__(self, timeout: float = 30.0, user_agent: str = "FeedTranslator/1.0"):
        """Initialize the fetcher.

        Args:
            timeout: Total timeout in seconds for one fetch
            user_agent: User-Agent header sent with every request
        """
        self.timeout = timeout
        self.user_agent = user_agent
        self.session: Optional[aiohttp.ClientSession] = None

    async def _init_session(self) -> aiohttp.ClientSession:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                headers={"Accept": "application/xml", "User-Agent": self.user_agent},
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        return self.session

    @staticmethod
    def _decode(body: bytes, charset: Optional[str]) -> str:
        encoding = charset
        if not encoding:
            encoding = chardet.detect(body)["encoding"] or "utf-8"
        try:
            return body.decode(encoding)
        except (LookupError, UnicodeDecodeError):
            return body.decode("utf-8", errors="replace")

    async def fetch(self, url: str) -> str:
        """Fetch a feed document.

        Args:
            url: Feed URL

        Returns:
            The response body as text

        Raises:
            SourceUnavailableError: On a non-2xx status, transport failure or timeout
        """
        session = await self._init_session()
        logger.debug("Fetching feed", url=url)
        try:
            async with session.get(url) as response:
                if not 200 <= response.status < 300:
                    raise SourceUnavailableError(
                        f"Feed source returned HTTP {response.status}",
                        context={"url": url, "status": response.status},
                    )
                body = await response.read()
                charset = response.charset
        except asyncio.TimeoutError as e:
            logger.error("Timed out fetching feed", url=url, timeout=self.timeout)
            raise SourceUnavailableError(
                f"Timed out fetching feed after {self.timeout}s", context={"url": url}
            ) from e
        except aiohttp.ClientError as e:
            logger.error("Error fetching feed", url=url, error=str(e))
            raise SourceUnavailableError(
                f"Failed to fetch feed: {e}", context={"url": url}
            ) from e

        logger.debug("Feed fetched", url=url, size=len(body))
        return self._decode(body, charset)

    async def close(self) -> None:
        """Close the client session."""
        if self.session:
            await self.session.close()
            self.session = None
