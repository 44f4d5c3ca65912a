"""Error types for the feed translator.

Synchronous failures (cache miss, configuration load) propagate to the caller.
Failures raised while refreshing stale content in the background are logged
and counted, never surfaced to the request that triggered them.
"""

from typing import Any, Dict, Optional


class BaseError(Exception):
    """Base exception class for all feed translator errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        """Initialize base error with optional context.

        Args:
            message: Error message
            context: Optional error context
        """
        super().__init__(message)
        self.context = context or {}

    def __str__(self) -> str:
        """Return string representation of error."""
        return str(super().__str__())

    def __repr__(self) -> str:
        """Return detailed string representation of error."""
        return f"{self.__class__.__name__}({super().__str__()}, context={self.context})"


class ConfigurationError(BaseError):
    """Use this error when the feed configuration cannot be loaded or used."""

    pass


class FeedNotFoundError(ConfigurationError):
    """Use this error when a feed name is not configured."""

    def __init__(self, name: str):
        super().__init__(f"Feed not found: {name}", context={"feed": name})
        self.name = name


class SourceUnavailableError(BaseError):
    """Use this error when a feed source cannot be fetched."""

    pass


class TranslationError(BaseError):
    """Use this error when the translation backend fails or is misconfigured."""

    pass


class StructuralParseError(BaseError):
    """Use this error when a feed document lacks the expected RSS structure."""

    pass
