"""Favorite food domain models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class FavoriteFood:
    """A food a caller uses often, with its usual portion."""

    user_id: str
    food_label: str
    standard_portion_qty: float = 100.0
    standard_portion_unit: str = "g"
    frequency_score: int = 1
    last_used_at: datetime | None = None
