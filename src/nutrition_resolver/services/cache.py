"""Nutrition result cache contracts."""

from datetime import datetime, timedelta
from typing import Protocol

from nutrition_resolver.domain.cache import CacheEntry
from nutrition_resolver.domain.nutrition import NutritionData


class CacheRepository(Protocol):
    """Persistence interface for cached nutrition resolutions."""

    def lookup(self, food_query: str, now: datetime) -> CacheEntry | None:
        """Return the entry for a key if it has not expired."""

    def record_hit(self, entry: CacheEntry) -> None:
        """Increment the hit count of an entry."""

    def upsert(self, entry: CacheEntry) -> None:
        """Replace the whole row for the entry's key."""

    def clear(self, food_query: str | None = None) -> int:
        """Delete one key, or every row when no key is given."""

    def list_popular(self, limit: int, now: datetime) -> list[CacheEntry]:
        """Return unexpired entries ordered by hit count."""


def build_entry(  # noqa: PLR0913
    food_query: str,
    data: NutritionData,
    confidence_score: float,
    ai_provider: str,
    now: datetime,
    ttl: timedelta,
) -> CacheEntry:
    """Create a fresh entry for a newly resolved key."""
    return CacheEntry(
        food_query=food_query,
        nutrition_data=data,
        confidence_score=confidence_score,
        ai_provider=ai_provider,
        hit_count=1,
        created_at=now,
        expires_at=now + ttl,
    )
