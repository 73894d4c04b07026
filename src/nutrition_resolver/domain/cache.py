"""Domain models for the nutrition result cache."""

from dataclasses import dataclass
from datetime import datetime

from nutrition_resolver.domain.nutrition import NutritionData


@dataclass(frozen=True)
class CacheEntry:
    """Cached resolution for a normalized food query."""

    food_query: str
    nutrition_data: NutritionData
    confidence_score: float
    ai_provider: str
    hit_count: int
    created_at: datetime
    expires_at: datetime


def normalize_query(food_text: str) -> str:
    """Return the cache key for free food text."""
    return food_text.strip().lower()
