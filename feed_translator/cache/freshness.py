"""Freshness classification for cached feed content.

A record is served as-is while it is younger than the fresh TTL, served and
refreshed in the background while it sits between the fresh and hard TTLs,
and treated as missing once it reaches the hard TTL.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from feed_translator.cache.kv_cache import CacheRecord


class Freshness(Enum):
    """Outcome of classifying a cache read."""

    FRESH = "fresh"
    STALE = "stale"
    MISS = "miss"


@dataclass(frozen=True)
class FreshnessWindow:
    """Fresh and hard TTLs of one engine, in seconds.

    Attributes:
        fresh_ttl: Age up to which content is served without side effects
        hard_ttl: Age at which the store evicts the record
    """

    fresh_ttl: int
    hard_ttl: int

    def __post_init__(self) -> None:
        if self.fresh_ttl < 0:
            raise ValueError(f"fresh_ttl must not be negative, got {self.fresh_ttl}")
        if self.fresh_ttl >= self.hard_ttl:
            raise ValueError(
                f"fresh_ttl ({self.fresh_ttl}) must be lower than hard_ttl ({self.hard_ttl})"
            )

    @property
    def stale_window(self) -> int:
        """Seconds during which stale content may be served while revalidating."""
        return self.hard_ttl - self.fresh_ttl

    @property
    def cache_control(self) -> str:
        """Cache-Control header value derived from the window."""
        return f"public, max-age={self.fresh_ttl}, stale-while-revalidate={self.stale_window}"


def classify(
    now: float,
    stored_at: Optional[float],
    fresh_ttl: float,
    hard_ttl: float,
    present: bool = True,
) -> Freshness:
    """Classify a cache read.

    Args:
        now: Current time in epoch seconds
        stored_at: Generation time of the record in epoch seconds, None when
            the record carries no timestamp metadata
        fresh_ttl: Fresh window in seconds
        hard_ttl: Hard expiry in seconds
        present: Whether a record exists at all

    Returns:
        The freshness of the record
    """
    if not present:
        return Freshness.MISS
    if stored_at is None:
        # Missing metadata never forces a synchronous regeneration.
        return Freshness.FRESH

    age = now - stored_at
    if age <= fresh_ttl:
        return Freshness.FRESH
    if age < hard_ttl:
        return Freshness.STALE
    return Freshness.MISS


class FreshnessPolicy:
    """Classifies cache records against a fixed freshness window."""

    def __init__(self, window: FreshnessWindow):
        self.window = window

    def classify(self, now: float, record: Optional[CacheRecord]) -> Freshness:
        if record is None:
            return classify(now, None, self.window.fresh_ttl, self.window.hard_ttl, present=False)
        return classify(now, record.stored_at, self.window.fresh_ttl, self.window.hard_ttl)
