"""Feed descriptors and the feeds configuration document.

The document is a JSON object listing the feeds to serve::

    {"feeds": [{"name": "HN", "url": "https://hnrss.org/frontpage"}]}
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from feed_translator.core.errors import ConfigurationError

logger = structlog.get_logger(__name__)

DEFAULT_FEEDS_PATH = Path(__file__).parent / "feeds.json"


class FeedDescriptor(BaseModel):
    """One configured feed."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str = Field(min_length=1)
    source_url: str = Field(alias="url", min_length=1)
    translate: bool = True

    @property
    def key(self) -> str:
        """Case-insensitive lookup key."""
        return self.name.lower()


class FeedsConfig(BaseModel):
    """The list of configured feeds."""

    feeds: List[FeedDescriptor]

    @model_validator(mode="after")
    def check_unique_names(self) -> "FeedsConfig":
        seen = set()
        for feed in self.feeds:
            if feed.key in seen:
                raise ValueError(f"Duplicate feed name: {feed.name}")
            seen.add(feed.key)
        return self

    @classmethod
    def from_dict(cls, data: Any) -> "FeedsConfig":
        """Validate a decoded configuration document.

        Raises:
            ConfigurationError: If the document does not describe a feed list
        """
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid feeds configuration: {e}") from e

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class FileFeedsSource:
    """Loads the feeds configuration from a JSON file."""

    def __init__(self, path: Union[str, Path] = DEFAULT_FEEDS_PATH):
        self.path = Path(path)

    def _read(self) -> Any:
        with open(self.path, "r", encoding="utf-8") as f:
            return json.load(f)

    async def load(self) -> FeedsConfig:
        """Read and validate the configuration file.

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        logger.info("Loading feeds configuration", path=str(self.path))
        try:
            data = await asyncio.to_thread(self._read)
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Failed to load feeds configuration", path=str(self.path), error=str(e))
            raise ConfigurationError(
                f"Failed to load feeds configuration: {e}", context={"path": str(self.path)}
            ) from e
        return FeedsConfig.from_dict(data)
