"""Services for a caller's favorite foods."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Protocol

from nutrition_resolver.domain.favorites import FavoriteFood
from nutrition_resolver.errors import ValidationError

FAVORITES_LIMIT = 20


class FavoriteFoodRepository(Protocol):
    """Persistence interface for favorite foods."""

    def list_for_user(self, user_id: str, limit: int) -> list[FavoriteFood]:
        """Return favorites, most frequent and most recently used first."""

    def upsert(self, favorite: FavoriteFood) -> FavoriteFood:
        """Insert or replace the favorite keyed by user and label."""


@dataclass
class FavoriteFoodService:
    """Application service for favorite food operations."""

    repository: FavoriteFoodRepository
    clock: Callable[[], datetime] = field(default=lambda: datetime.now(tz=UTC))

    def list_favorites(
        self, user_id: str, limit: int = FAVORITES_LIMIT
    ) -> list[FavoriteFood]:
        """Return the caller's favorite foods."""
        return self.repository.list_for_user(user_id, limit)

    def save_favorite(
        self,
        user_id: str,
        food_label: str | None,
        portion_qty: float = 100.0,
        portion_unit: str = "g",
    ) -> FavoriteFood:
        """Add or refresh a favorite food for the caller."""
        label = (food_label or "").strip()
        if not label:
            raise ValidationError("Food label is required")
        if portion_qty <= 0:
            raise ValidationError("Portion quantity must be positive")
        favorite = FavoriteFood(
            user_id=user_id,
            food_label=label,
            standard_portion_qty=portion_qty,
            standard_portion_unit=portion_unit.strip() or "g",
            frequency_score=1,
            last_used_at=self.clock(),
        )
        return self.repository.upsert(favorite)
